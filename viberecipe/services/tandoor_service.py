"""Export flows to Tandoor: AI-extracted recipes and native URL import."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from viberecipe.models.recipe import Recipe
from viberecipe.models.tandoor import ExportResult
from viberecipe.services.tandoor_adapter import build_payload, refine_steps
from viberecipe.services.tandoor_client import TandoorClient
from viberecipe.utils.exceptions import AuthError, CreateError, UploadError

logger = logging.getLogger(__name__)


class TandoorExporter:
    """Runs create -> image upload strictly in sequence; the upload is best effort."""

    def __init__(self, client: TandoorClient) -> None:
        self.client = client

    async def export_recipe(self, recipe: Recipe) -> ExportResult:
        """Send a finished recipe to Tandoor."""
        payload = build_payload(recipe)
        logger.info(f"[export] Creating '{recipe.name}' with {len(payload.steps)} steps")
        created = await self.client.create_recipe(payload)
        return await self._attach_image(created, recipe.image)

    async def import_from_url(self, url: str) -> ExportResult:
        """Parse a URL with Tandoor's own importer, then create the recipe."""
        parsed = await self.client.parse_from_url(url)
        logger.info(f"[import] Parsed '{parsed.get('name')}', creating recipe")

        if isinstance(parsed.get("steps"), list):
            parsed["steps"] = refine_steps(parsed["steps"])

        try:
            created = await self.client.create_recipe(parsed)
        except CreateError as e:
            raise CreateError(
                f"Import parsed but failed to save: {e}",
                status_code=e.status_code,
                body=e.body,
                parsed=parsed,
            ) from e

        return await self._attach_image(created, parsed.get("image"))

    async def _attach_image(self, created: Dict[str, Any], image_url: Optional[str]) -> ExportResult:
        recipe_id = created.get("id")
        if not image_url or recipe_id is None:
            return ExportResult(recipe=created)

        try:
            await self.client.upload_image(recipe_id, image_url)
        except (UploadError, AuthError) as e:
            # The recipe already exists; report the failure without undoing it
            logger.warning(f"Image upload failed for recipe {recipe_id}: {e}")
            return ExportResult(recipe=created, image_uploaded=False, image_error=str(e))

        return ExportResult(recipe=created, image_uploaded=True)
