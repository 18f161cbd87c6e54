"""Recipe Pydantic models."""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RecipeIngredient(BaseModel):
    """Structured ingredient."""

    model_config = ConfigDict(extra="allow")

    food: str = Field(..., description="Ingredient name")
    unit: Optional[str] = Field(None, description="Unit of measurement (e.g., 'g', 'ml')")
    quantity: Optional[Union[int, float, str]] = Field(None, description="Amount (e.g., 200, '1/2')")
    note: Optional[str] = Field(None, description="Preparation notes")


class RecipeInstruction(BaseModel):
    """Structured step. Either `text` or `instruction` carries the body."""

    model_config = ConfigDict(extra="allow")

    text: Optional[str] = Field(None, description="Step body (schema.org HowToStep)")
    instruction: Optional[str] = Field(None, description="Step body (legacy shape)")
    name: Optional[str] = Field(None, description="Optional step title")

    @property
    def body(self) -> Optional[str]:
        return self.text or self.instruction


class Recipe(BaseModel):
    """Finished recipe record, following schema.org/Recipe field names."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "name": "Pasta al limone",
                "description": "Bright, creamy lemon pasta.",
                "url": "https://example.com/pasta-al-limone",
                "image": "https://example.com/pasta.jpg",
                "prepTime": "PT10M",
                "cookTime": "PT15M",
                "totalTime": "PT25M",
                "recipeYield": "4 servings",
                "recipeIngredient": [
                    "400 g spaghetti",
                    {"food": "lemon", "quantity": 2, "unit": None},
                ],
                "recipeInstructions": [
                    "Boil the pasta in salted water.",
                    {"text": "Toss with lemon zest, juice and butter."},
                ],
            }
        },
    )

    name: str = Field(..., description="Recipe title")
    description: Optional[str] = Field(None, description="Brief description of the dish")
    url: Optional[str] = Field(None, description="Source URL when scraped from the web")
    image: Optional[str] = Field(None, description="Single image URL")
    prepTime: Optional[str] = Field(None, description="ISO 8601 duration, e.g. PT30M")
    cookTime: Optional[str] = Field(None, description="ISO 8601 duration")
    totalTime: Optional[str] = Field(None, description="ISO 8601 duration")
    recipeYield: Optional[Union[int, float, str]] = Field(None, description="Servings or yield text")
    recipeIngredient: List[Union[str, RecipeIngredient]] = Field(
        default_factory=list, description="Ingredients, plain or structured"
    )
    recipeInstructions: List[Union[str, RecipeInstruction]] = Field(
        default_factory=list, description="Ordered steps, plain or structured"
    )


class ExtractRequest(BaseModel):
    """JSON body of the extract endpoint."""

    content: str = Field(..., min_length=1)
    type: Literal["url", "text"] = "text"


class UrlInput(BaseModel):
    kind: Literal["url"] = "url"
    url: str


class TextInput(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class ImageInput(BaseModel):
    kind: Literal["image"] = "image"
    data: bytes
    mime_type: str = "image/jpeg"


ExtractionInput = Union[UrlInput, TextInput, ImageInput]
