"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter

from viberecipe import __version__
from viberecipe.config import settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check() -> Dict[str, Any]:
    """
    Readiness probe.

    Gemini and Tandoor credentials normally arrive per request, so the only
    thing worth reporting is whether a server-side Gemini key is configured.
    """
    return {
        "status": "ready",
        "version": __version__,
        "dependencies": {
            "gemini_model": settings.gemini_model,
            "server_gemini_key": bool(settings.gemini_api_key),
        },
    }
