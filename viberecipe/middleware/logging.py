"""Request/response logging middleware."""

import logging
import time
from typing import Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from viberecipe.utils.logging_config import generate_request_id, mask_token, set_request_id

logger = logging.getLogger(__name__)

# Headers that carry caller credentials
SENSITIVE_HEADERS = ("x-gemini-api-key", "x-tandoor-token", "authorization")
LOGGED_HEADERS = ("content-type", "user-agent", "x-tandoor-url") + SENSITIVE_HEADERS


def loggable_headers(request: Request) -> Dict[str, str]:
    """Pick the interesting headers, masking credentials."""
    headers: Dict[str, str] = {}
    for name in LOGGED_HEADERS:
        value = request.headers.get(name)
        if value is None:
            continue
        headers[name] = mask_token(value) if name in SENSITIVE_HEADERS else value
    return headers


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and responses with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or generate_request_id()
        set_request_id(request_id)
        request.state.request_id = request_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        logger.info(
            f"API Request: {method} {path}",
            extra={
                "method": method,
                "path": path,
                "query": dict(request.query_params) or None,
                "headers": loggable_headers(request),
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"API Error: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "process_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        logger.info(
            f"API Response: {method} {path} - {response.status_code}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response
