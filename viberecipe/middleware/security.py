"""Security headers, CORS and compression."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from viberecipe.config import settings

# The browser UI sends credentials in these custom headers
CREDENTIAL_HEADERS = ["x-gemini-api-key", "x-tandoor-url", "x-tandoor-token"]


def setup_cors(app: FastAPI) -> None:
    """Setup CORS middleware."""
    origins = settings.cors_origins_list

    # A wildcard origin cannot be combined with credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["content-type", "x-request-id", *CREDENTIAL_HEADERS],
        expose_headers=["X-Request-ID"],
    )


def setup_compression(app: FastAPI) -> None:
    """Setup GZip compression middleware."""
    app.add_middleware(GZipMiddleware, minimum_size=1000)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers."""

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # API responses carry recipes built from caller credentials
        response.headers["Cache-Control"] = "no-store"

        return response
