"""Endpoints that push recipes into a Tandoor instance."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from viberecipe.api.dependencies import get_tandoor_client
from viberecipe.middleware.rate_limit import rate_limit_dependency
from viberecipe.models.recipe import Recipe
from viberecipe.models.tandoor import ExportResult, ImportRequest
from viberecipe.services.tandoor_adapter import recipe_from_payload
from viberecipe.services.tandoor_client import TandoorClient
from viberecipe.services.tandoor_service import TandoorExporter
from viberecipe.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tandoor", tags=["tandoor"])

RECIPE_EXAMPLE = Recipe.model_config["json_schema_extra"]["example"]


@router.post("", response_model=ExportResult, status_code=status.HTTP_201_CREATED)
async def send_to_tandoor(
    payload: Dict[str, Any] = Body(..., examples=[RECIPE_EXAMPLE]),
    _: None = Depends(rate_limit_dependency),
    client: TandoorClient = Depends(get_tandoor_client),
) -> ExportResult:
    """
    Create a finished recipe in Tandoor.

    The body is a Recipe; `steps` and `ingredients` are accepted in place of
    `recipeInstructions` and `recipeIngredient`.
    Destination comes from the `x-tandoor-url` and `x-tandoor-token` headers.
    A failed image upload is reported in `image_error`; the recipe still exists.
    """
    recipe = recipe_from_payload(payload)
    logger.info(
        "Route /api/tandoor called",
        extra={
            "route": "/api/tandoor",
            "params": {
                "recipe_name": recipe.name,
                "steps": len(recipe.recipeInstructions),
                "ingredients": len(recipe.recipeIngredient),
                "base_url": client.base_url,
            },
        },
    )
    return await TandoorExporter(client).export_recipe(recipe)


@router.post("/import", response_model=ExportResult, status_code=status.HTTP_201_CREATED)
async def import_into_tandoor(
    body: ImportRequest,
    _: None = Depends(rate_limit_dependency),
    client: TandoorClient = Depends(get_tandoor_client),
) -> ExportResult:
    """
    Import a recipe URL with Tandoor's own parser, bypassing Gemini entirely.
    """
    url = body.url.strip()
    if not url.startswith(("http://", "https://")):
        raise ValidationError("URL must use http or https protocol")

    logger.info(
        "Route /api/tandoor/import called",
        extra={"route": "/api/tandoor/import", "params": {"url": url[:200], "base_url": client.base_url}},
    )
    return await TandoorExporter(client).import_from_url(url)
