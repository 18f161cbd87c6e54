"""Fetch a web page and reduce it to plain text for the model."""

from __future__ import annotations

import logging
import re
import time
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from viberecipe.config import settings
from viberecipe.utils.exceptions import FetchError

logger = logging.getLogger(__name__)

# Markup that never carries recipe text
NON_CONTENT_TAGS = ("script", "style", "nav", "footer", "header", "aside", "noscript", "iframe", "svg")

_WHITESPACE = re.compile(r"\s+")


def html_to_text(html: str) -> str:
    """Strip non-content markup and collapse whitespace."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()

    root = soup.body or soup
    text = root.get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()


class FetcherService:
    """Retrieves recipe pages with a browser-like identity."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.fetch_timeout

    async def fetch_text(self, url: str) -> str:
        """
        GET the page and return its cleaned body text.

        Raises:
            FetchError: on transport errors, timeouts and non-success statuses.
        """
        headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
        }
        t0 = time.perf_counter()

        try:
            if self._http_client is not None:
                response = await self._http_client.get(
                    url, headers=headers, timeout=self.timeout, follow_redirects=True
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"Timed out fetching {url}")
            raise FetchError(f"Timed out fetching {url}") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Fetching {url} returned HTTP {e.response.status_code}")
            raise FetchError(f"Failed to fetch URL: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning(f"Fetching {url} failed: {e}")
            raise FetchError(f"Failed to fetch URL: {e}") from e

        text = html_to_text(response.text)
        logger.info(
            "Fetched page content",
            extra={
                "url": url[:200],
                "html_chars": len(response.text),
                "text_chars": len(text),
                "fetch_ms": round((time.perf_counter() - t0) * 1000.0, 2),
            },
        )
        return text
