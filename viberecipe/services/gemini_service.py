"""
Gemini service for recipe extraction.

One call per extraction: a fixed system instruction plus either page/pasted
text or inline image bytes. The raw text response is returned untouched;
repairing it is the response normalizer's job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, List, Optional, Union

from google import genai
from google.genai import types

from viberecipe.config import settings
from viberecipe.utils.exceptions import ExtractionError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are a recipe extraction machine.
Extract the recipe from the provided content.
Output strictly valid JSON-LD adhering to schema.org/Recipe
(name, description, image, prepTime, cookTime, totalTime, recipeYield,
recipeIngredient, recipeInstructions).

RULES:
1. Convert all units to the metric system (grams, ml, Celsius).
2. If a value is missing, infer a reasonable value or omit the field.
3. Durations use ISO 8601, e.g. "PT1H30M".
4. For images, describe the dish in the description.
5. Output ONLY the raw JSON object. Do not use markdown blocks (```json).
6. If the input is NOT a recipe, return { "error": "Not a recipe" }.
""".strip()

IMAGE_PROMPT = "Extract the recipe shown in this image."


class GeminiService:
    """Service for interacting with Gemini API."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model or settings.gemini_model
        self.timeout = timeout if timeout is not None else settings.ai_timeout
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        """Get or create Gemini client (lazy initialization)."""
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    async def extract_from_text(self, text: str) -> str:
        logger.info("Extracting recipe from text (%d chars)", len(text))
        return await self._generate(text)

    async def extract_from_image(self, image_data: bytes, mime_type: str) -> str:
        logger.info("Extracting recipe from image (mime_type=%s, bytes=%d)", mime_type, len(image_data))
        contents = [
            IMAGE_PROMPT,
            types.Part.from_bytes(data=image_data, mime_type=mime_type),
        ]
        return await self._generate(contents)

    async def _generate(self, contents: Union[str, List[Any]]) -> str:
        """
        Single Gemini call, bounded by `self.timeout`.

        Raises:
            ExtractionError: on SDK errors, timeouts or an empty response.
        """
        def _sync_call() -> Any:
            return self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    temperature=settings.gemini_temperature,
                ),
            )

        t0 = time.perf_counter()
        try:
            resp = await asyncio.wait_for(asyncio.to_thread(_sync_call), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Gemini call timed out after %.0fs", self.timeout)
            raise ExtractionError(f"Recipe extraction timed out after {self.timeout:.0f}s") from e
        except Exception as e:
            logger.error("Gemini call failed: %s", str(e), exc_info=True)
            raise ExtractionError(f"Extraction failed: {str(e)}") from e

        text = getattr(resp, "text", None)
        if not text or not text.strip():
            raise ExtractionError("Gemini returned empty response")

        logger.info(
            "Gemini call finished",
            extra={"model": self.model, "gemini_ms": round((time.perf_counter() - t0) * 1000.0, 2)},
        )
        logger.debug("Gemini raw response:\n%s", text)
        return text.strip()
