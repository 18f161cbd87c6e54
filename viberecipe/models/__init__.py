"""Pydantic models."""

from viberecipe.models.recipe import (
    ExtractionInput,
    ExtractRequest,
    ImageInput,
    Recipe,
    RecipeIngredient,
    RecipeInstruction,
    TextInput,
    UrlInput,
)
from viberecipe.models.tandoor import (
    ExportResult,
    ImportRequest,
    TandoorIngredient,
    TandoorRecipePayload,
    TandoorStep,
)

__all__ = [
    "ExportResult",
    "ExtractionInput",
    "ExtractRequest",
    "ImageInput",
    "ImportRequest",
    "Recipe",
    "RecipeIngredient",
    "RecipeInstruction",
    "TandoorIngredient",
    "TandoorRecipePayload",
    "TandoorStep",
    "TextInput",
    "UrlInput",
]
