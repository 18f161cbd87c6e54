"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from viberecipe import __version__
from viberecipe.api.routes import extract, health, tandoor
from viberecipe.config import settings
from viberecipe.middleware.logging import RequestLoggingMiddleware
from viberecipe.middleware.rate_limit import get_rate_limit_exceeded_handler, limiter
from viberecipe.middleware.security import SecurityHeadersMiddleware, setup_compression, setup_cors
from viberecipe.utils.exceptions import (
    AuthenticationError,
    AuthError,
    CreateError,
    ExtractionError,
    FetchError,
    NativeImportError,
    NotARecipeError,
    ParseError,
    StaleResultError,
    TandoorError,
    ValidationError,
    VibeRecipeException,
)
from viberecipe.utils.logging_config import get_request_id, setup_logging

# Setup logging
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown."""
    logger.info("VibeRecipe API starting up...")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Gemini model: {settings.gemini_model}, timeout {settings.ai_timeout:.0f}s")
    yield
    logger.info("VibeRecipe API shutting down")


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="VibeRecipe API",
    description="Turn recipe URLs, text and photos into structured recipes and send them to Tandoor",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, get_rate_limit_exceeded_handler())


def _upstream_status(exc: TandoorError) -> int:
    """Pass Tandoor's 4xx through; anything else is a bad gateway."""
    if exc.status_code is not None and 400 <= exc.status_code < 500:
        return exc.status_code
    return status.HTTP_502_BAD_GATEWAY


def describe_error(exc: VibeRecipeException) -> Tuple[int, str]:
    """Map an exception to (HTTP status, short error message)."""
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED, "Missing credentials"
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST, "Validation error"
    if isinstance(exc, FetchError):
        return status.HTTP_502_BAD_GATEWAY, "Failed to fetch URL"
    if isinstance(exc, NotARecipeError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, "Not a recipe"
    if isinstance(exc, ExtractionError):
        return status.HTTP_502_BAD_GATEWAY, "Extraction failed"
    if isinstance(exc, ParseError):
        return status.HTTP_502_BAD_GATEWAY, "Failed to parse API response"
    if isinstance(exc, StaleResultError):
        return status.HTTP_409_CONFLICT, "Superseded by a newer extraction"
    if isinstance(exc, AuthError):
        return status.HTTP_401_UNAUTHORIZED, "Tandoor rejected the token"
    if isinstance(exc, NativeImportError):
        if exc.status_code == 500:
            return status.HTTP_502_BAD_GATEWAY, "Tandoor failed to import this URL directly"
        return _upstream_status(exc), "Tandoor import failed"
    if isinstance(exc, CreateError):
        return _upstream_status(exc), "Tandoor failed to save the recipe"
    if isinstance(exc, TandoorError):
        return status.HTTP_502_BAD_GATEWAY, "Tandoor API error"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with detailed messages."""
    request_id = get_request_id()

    logger.warning(
        f"Validation error: {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "detail": exc.errors(),
            "request_id": request_id,
        },
    )


@app.exception_handler(VibeRecipeException)
async def viberecipe_exception_handler(request: Request, exc: VibeRecipeException) -> JSONResponse:
    """Turn pipeline failures into typed JSON errors."""
    status_code, error_message = describe_error(exc)

    content: Dict[str, Any] = {
        "error": error_message,
        "detail": str(exc),
        "request_id": get_request_id(),
    }
    if isinstance(exc, ParseError):
        content["raw"] = exc.raw_text
    if isinstance(exc, TandoorError):
        content["upstream_status"] = exc.status_code
        if exc.body:
            content["upstream_body"] = exc.body[:2000]
    if isinstance(exc, CreateError) and exc.parsed is not None:
        content["parsed"] = exc.parsed

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Exception: {error_message}",
        extra={"error_detail": str(exc), "error_type": type(exc).__name__, "path": request.url.path},
        exc_info=status_code >= 500,
    )

    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unexpected exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred",
            "request_id": get_request_id(),
        },
    )


# Add middleware (last added runs first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
setup_compression(app)
setup_cors(app)

# Include routers
app.include_router(health.router)
app.include_router(extract.router)
app.include_router(tandoor.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "VibeRecipe API",
        "version": __version__,
        "docs": "/docs",
    }
