"""Shared API dependencies.

Credentials arrive per request in headers; nothing here reads stored settings
other than the optional server-side Gemini key.
"""

from typing import AsyncIterator, Optional

from fastapi import Header

from viberecipe.config import settings
from viberecipe.services.gemini_service import GeminiService
from viberecipe.services.recipe_extractor import RecipeExtractor
from viberecipe.services.tandoor_client import TandoorClient
from viberecipe.utils.exceptions import AuthenticationError
from viberecipe.utils.validators import validate_base_url


def get_recipe_extractor(
    x_gemini_api_key: Optional[str] = Header(None, description="Gemini API key"),
) -> RecipeExtractor:
    """Build an extractor for this request's Gemini key."""
    api_key = x_gemini_api_key or settings.gemini_api_key
    if not api_key:
        raise AuthenticationError("Missing Gemini API Key")
    return RecipeExtractor(GeminiService(api_key=api_key))


async def get_tandoor_client(
    x_tandoor_url: Optional[str] = Header(None, description="Tandoor base URL"),
    x_tandoor_token: Optional[str] = Header(None, description="Tandoor API token"),
) -> AsyncIterator[TandoorClient]:
    """One client, and so one auth-scheme cache, per request."""
    if not x_tandoor_url or not x_tandoor_token:
        raise AuthenticationError("Missing Tandoor configuration")

    async with TandoorClient(validate_base_url(x_tandoor_url), x_tandoor_token) as client:
        yield client
