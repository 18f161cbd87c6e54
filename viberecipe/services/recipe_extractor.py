"""Extraction pipeline: fetch -> Gemini -> normalize -> enrich."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from viberecipe.models.recipe import ExtractionInput, ImageInput, Recipe, TextInput, UrlInput
from viberecipe.services.fetcher_service import FetcherService
from viberecipe.services.gemini_service import GeminiService
from viberecipe.services.image_resolver import ImageResolver
from viberecipe.services.image_service import ImageService
from viberecipe.utils.exceptions import (
    ParseError,
    StaleResultError,
    ValidationError,
    VibeRecipeException,
)
from viberecipe.utils.recipe_normalization import normalize_recipe_data
from viberecipe.utils.response_normalizer import parse_candidate

logger = logging.getLogger(__name__)


class RecipeExtractor:
    """
    Turns one URL, text blob or photo into a finished Recipe.

    There are no automatic retries. `retry()` re-runs the whole flow with the
    exact input of the last `extract()` call.

    When `extract()` is called again before an earlier call on the same
    extractor has finished, the earlier call raises StaleResultError instead
    of returning, so only the newest result can reach the caller.
    """

    def __init__(
        self,
        gemini_service: GeminiService,
        fetcher_service: Optional[FetcherService] = None,
        image_resolver: Optional[ImageResolver] = None,
    ) -> None:
        self.gemini_service = gemini_service
        self.fetcher_service = fetcher_service or FetcherService()
        self.image_resolver = image_resolver or ImageResolver()
        self._generation = 0
        self._last_input: Optional[ExtractionInput] = None

    async def extract(self, source: ExtractionInput) -> Recipe:
        self._generation += 1
        generation = self._generation
        self._last_input = source

        try:
            recipe = await self._run(source)
        except VibeRecipeException as e:
            if generation != self._generation:
                raise StaleResultError("A newer extraction superseded this one") from e
            raise

        if generation != self._generation:
            logger.info("Discarding stale extraction result", extra={"generation": generation})
            raise StaleResultError("A newer extraction superseded this one")
        return recipe

    async def retry(self) -> Recipe:
        """Re-run the last extraction from the start with identical input."""
        if self._last_input is None:
            raise ValidationError("Nothing to retry: no extraction has been started")
        logger.info(f"[retry] Re-running {self._last_input.kind} extraction")
        return await self.extract(self._last_input)

    async def extract_from_url(self, url: str) -> Recipe:
        return await self.extract(UrlInput(url=url))

    async def extract_from_text(self, text: str) -> Recipe:
        return await self.extract(TextInput(text=text))

    async def extract_from_image(self, image_data: bytes, mime_type: Optional[str] = None) -> Recipe:
        return await self.extract(ImageInput(data=image_data, mime_type=mime_type or "image/jpeg"))

    async def _run(self, source: ExtractionInput) -> Recipe:
        # Start / Extracting
        if isinstance(source, UrlInput):
            logger.info(f"[extract] Fetching {source.url}")
            text = await self.fetcher_service.fetch_text(source.url)
            raw = await self.gemini_service.extract_from_text(text)
        elif isinstance(source, TextInput):
            raw = await self.gemini_service.extract_from_text(source.text)
        else:
            data, mime_type = ImageService.validate_image(source.data, source.mime_type)
            data, mime_type = ImageService.prepare_for_vision(data, mime_type)
            raw = await self.gemini_service.extract_from_image(data, mime_type)

        # Normalizing
        candidate = normalize_recipe_data(parse_candidate(raw))
        raw_image = candidate.pop("image", None)
        if isinstance(source, UrlInput) and not candidate.get("url"):
            candidate["url"] = source.url

        try:
            recipe = Recipe.model_validate(candidate)
        except PydanticValidationError as e:
            logger.warning(f"Candidate recipe failed validation: {e.error_count()} errors")
            raise ParseError(f"Model response is not a usable recipe: {e}", raw_text=raw) from e

        # Enriching
        recipe.image = await self.image_resolver.resolve(
            raw_image, recipe.name, recipe.recipeIngredient
        )
        logger.info(
            "Recipe extracted",
            extra={
                "recipe_name": recipe.name,
                "ingredients": len(recipe.recipeIngredient),
                "steps": len(recipe.recipeInstructions),
            },
        )
        return recipe
