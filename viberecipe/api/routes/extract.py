"""Recipe extraction endpoint."""

import logging

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from viberecipe.api.dependencies import get_recipe_extractor
from viberecipe.middleware.rate_limit import rate_limit_dependency
from viberecipe.models.recipe import ExtractRequest, Recipe
from viberecipe.services.recipe_extractor import RecipeExtractor
from viberecipe.utils.exceptions import ValidationError
from viberecipe.utils.validators import validate_url

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["extract"])


@router.post("/extract", response_model=Recipe, response_model_exclude_none=True)
async def extract_recipe(
    request: Request,
    _: None = Depends(rate_limit_dependency),
    recipe_extractor: RecipeExtractor = Depends(get_recipe_extractor),
) -> Recipe:
    """
    Extract a recipe from a URL, pasted text or a photo.

    Accepts either:
    - JSON body: `{"content": "...", "type": "url" | "text"}`
    - multipart/form-data with an image in the `file` field
    """
    content_type = request.headers.get("content-type", "").lower()

    if "multipart/form-data" in content_type:
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise ValidationError("No file provided")

        logger.info(
            "Route /api/extract called",
            extra={
                "route": "/api/extract",
                "params": {"filename": upload.filename, "content_type": upload.content_type},
            },
        )
        image_data = await upload.read()
        return await recipe_extractor.extract_from_image(image_data, upload.content_type)

    try:
        body = ExtractRequest.model_validate(await request.json())
    except ValueError as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e

    logger.info(
        "Route /api/extract called",
        extra={
            "route": "/api/extract",
            "params": {"type": body.type, "content": body.content[:200]},
        },
    )

    if body.type == "url":
        return await recipe_extractor.extract_from_url(validate_url(body.content))
    return await recipe_extractor.extract_from_text(body.content)
