"""Rate limiting using slowapi."""

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from viberecipe.config import settings

# Keyed on client address: callers bring their own Gemini/Tandoor keys, so
# those are not a stable identity for limiting.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_hour}/hour"],
    storage_uri="memory://",
)


def get_rate_limit_exceeded_handler():
    """Get rate limit exceeded handler."""
    return _rate_limit_exceeded_handler


def rate_limit_dependency(request: Request) -> None:
    """
    Rate limit dependency for FastAPI.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    # slowapi has no public "check" helper outside its middleware;
    # `_check_request_limit` raises RateLimitExceeded when the limit is hit.
    limiter._check_request_limit(request, endpoint_func=None)
