"""Resolve the recipe image field to exactly one usable URL."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

from viberecipe.config import settings

logger = logging.getLogger(__name__)

FALLBACK_QUERY = "model=flux&width=1024&height=1024"


def pick_candidate(raw: Any) -> Optional[str]:
    """
    Reduce an image field to a single candidate string.

    Accepts None, a string, a list (first element, string or object with `url`),
    or an ImageObject-like dict with `url`.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw.strip() or None
    if isinstance(raw, (list, tuple)):
        return pick_candidate(raw[0]) if raw else None
    if isinstance(raw, dict):
        url = raw.get("url") or raw.get("contentUrl")
        return url.strip() if isinstance(url, str) and url.strip() else None
    return None


def _ingredient_label(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return str(item.get("food") or item.get("name") or "")
    return str(getattr(item, "food", "") or "")


def fallback_url(name: Optional[str], ingredients: Optional[Sequence[Any]] = None) -> str:
    """Build a generated-image URL from the recipe name and first three ingredients."""
    leading = ", ".join(
        label for label in (_ingredient_label(i) for i in list(ingredients or [])[:3]) if label
    )
    prompt = (
        f"Professional food photography of {name or 'delicious food'}, "
        f"{leading}, high quality, lush lighting"
    )
    return f"{settings.image_fallback_base_url}/{quote(prompt, safe='')}?{FALLBACK_QUERY}"


class ImageResolver:
    """Checks candidate image URLs and falls back to a generated image."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.image_check_timeout

    async def resolve(
        self,
        raw: Any,
        name: Optional[str] = None,
        ingredients: Optional[Sequence[Any]] = None,
    ) -> str:
        """Always returns a single URL string."""
        candidate = pick_candidate(raw)
        if candidate and candidate.startswith("http") and await self.is_reachable(candidate):
            return candidate

        if candidate:
            logger.info(f"Discarding image candidate: {candidate[:200]}")
        return fallback_url(name, ingredients)

    async def is_reachable(self, url: str) -> bool:
        """HEAD the URL. Any failure means the candidate is rejected."""
        try:
            if self._http_client is not None:
                response = await self._http_client.head(
                    url, timeout=self.timeout, follow_redirects=True
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.head(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info(f"Image existence check failed for {url[:200]}: {e}")
            return False
        return response.is_success
