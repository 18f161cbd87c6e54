"""Input validation utilities."""

import re
from urllib.parse import urlparse

from viberecipe.utils.exceptions import ValidationError

_AUTH_PREFIX = re.compile(r"^(Bearer|Token)\s+", re.IGNORECASE)

BLOCKED_HOSTS = {
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "::1",
}


def validate_url(url: str) -> str:
    """
    Validate a recipe URL supplied by a user before fetching it.

    Args:
        url: URL to validate

    Returns:
        Validated URL string

    Raises:
        ValidationError: If URL is invalid or points at a private address
    """
    if not url or not isinstance(url, str):
        raise ValidationError("URL must be a non-empty string")

    url = url.strip()

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {str(e)}") from e

    if parsed.scheme not in ("http", "https"):
        raise ValidationError("URL must use http or https protocol")

    hostname = parsed.hostname
    if not hostname:
        raise ValidationError("URL must have a valid hostname")

    if hostname.lower() in BLOCKED_HOSTS:
        raise ValidationError("URL cannot point to localhost or private IPs")

    if hostname.startswith("10.") or hostname.startswith("192.168."):
        raise ValidationError("URL cannot point to private IP ranges")

    # 172.16.0.0/12
    parts = hostname.split(".")
    if len(parts) == 4 and parts[0] == "172" and parts[1].isdigit():
        if 16 <= int(parts[1]) <= 31:
            raise ValidationError("URL cannot point to private IP ranges")

    return url


def validate_base_url(base_url: str) -> str:
    """Validate a Tandoor base URL. Self-hosted instances may live on a LAN."""
    if not base_url or not isinstance(base_url, str):
        raise ValidationError("Tandoor URL must be a non-empty string")

    base_url = base_url.strip()
    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Tandoor URL must be an absolute http(s) URL")
    return base_url.rstrip("/")


def clean_auth_token(token: str) -> str:
    """Strip a leading 'Token ' or 'Bearer ' so the scheme is never doubled."""
    return _AUTH_PREFIX.sub("", token or "").strip()
