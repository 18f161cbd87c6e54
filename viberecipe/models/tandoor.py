"""Tandoor Recipes API models."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

AuthScheme = Literal["Token", "Bearer"]


class TandoorFood(BaseModel):
    name: str


class TandoorUnit(BaseModel):
    name: str


class TandoorIngredient(BaseModel):
    """Ingredient as Tandoor expects it inside a step."""

    food: TandoorFood
    unit: Optional[TandoorUnit] = None
    amount: float = 0
    note: str = ""


class TandoorStep(BaseModel):
    instruction: str
    ingredients: List[TandoorIngredient] = Field(default_factory=list)
    show_ingredients_table: Optional[bool] = None


class TandoorRecipePayload(BaseModel):
    """Body of POST /api/recipe/."""

    name: str
    description: str
    steps: List[TandoorStep] = Field(default_factory=list)
    source_url: Optional[str] = None
    working_time: int = 0
    waiting_time: int = 0
    servings: int = 1
    servings_text: str = ""
    internal: bool = True

    def to_request(self) -> Dict[str, Any]:
        """JSON body for Tandoor. Unset optional keys are left out, `unit: null` is kept."""
        data = self.model_dump(mode="json")
        if data.get("source_url") is None:
            data.pop("source_url")
        for step in data["steps"]:
            if step.get("show_ingredients_table") is None:
                step.pop("show_ingredients_table", None)
        return data


class ImportRequest(BaseModel):
    """Body of the native-import endpoint."""

    url: str = Field(..., min_length=1)


class ExportResult(BaseModel):
    """Outcome of one export. A failed image upload does not undo the recipe."""

    recipe: Dict[str, Any] = Field(..., description="Recipe as created by Tandoor")
    image_uploaded: bool = False
    image_error: Optional[str] = None
