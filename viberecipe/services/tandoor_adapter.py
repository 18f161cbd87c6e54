"""Map finished recipes onto Tandoor's stricter recipe schema."""

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from viberecipe.config import settings
from viberecipe.models.recipe import Recipe, RecipeIngredient, RecipeInstruction
from viberecipe.models.tandoor import (
    TandoorFood,
    TandoorIngredient,
    TandoorRecipePayload,
    TandoorStep,
    TandoorUnit,
)
from viberecipe.utils.exceptions import ValidationError
from viberecipe.utils.recipe_normalization import apply_field_aliases

logger = logging.getLogger(__name__)

_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")
_FIRST_INT = re.compile(r"(\d+)")

PLACEHOLDER_STEP = "Prepare ingredients"


def parse_duration(value: Optional[str]) -> int:
    """
    Minutes in a PT#H#M duration.

    >>> parse_duration("PT1H30M")
    90
    """
    if not value or not isinstance(value, str):
        return 0
    match = _DURATION.search(value)
    if not match:
        return 0
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * 60 + minutes


def parse_servings(value: Union[int, float, str, None]) -> Tuple[int, str]:
    """
    Split a yield into (serving count, descriptive text).

    >>> parse_servings("4 servings")
    (4, '4 servings')
    """
    if isinstance(value, bool) or value is None:
        return 1, ""
    if isinstance(value, (int, float)):
        return (int(value) if value else 1), ""

    text = str(value).strip()
    if not text:
        return 1, ""
    match = _FIRST_INT.search(text)
    return (int(match.group(1)) if match else 1), text


def _parse_amount(quantity: Any) -> float:
    try:
        amount = float(quantity)
    except (TypeError, ValueError):
        return 0.0
    # NaN and infinity would serialize as invalid JSON
    return amount if math.isfinite(amount) else 0.0


def map_ingredient(item: Union[str, RecipeIngredient]) -> TandoorIngredient:
    if isinstance(item, str):
        return TandoorIngredient(food=TandoorFood(name=item), unit=None, amount=0, note="")
    return TandoorIngredient(
        food=TandoorFood(name=item.food),
        unit=TandoorUnit(name=item.unit) if item.unit else None,
        amount=_parse_amount(item.quantity),
        note="",
    )


def instruction_text(step: Union[str, RecipeInstruction]) -> str:
    """Step body: text, then instruction, then the whole step rendered as JSON."""
    if isinstance(step, str):
        return step
    return step.text or step.instruction or json.dumps(step.model_dump(exclude_none=True))


def map_steps(
    instructions: Sequence[Union[str, RecipeInstruction]],
    ingredients: Sequence[Union[str, RecipeIngredient]],
) -> List[TandoorStep]:
    """
    Build Tandoor steps. All ingredients go on the first step; mapping each
    ingredient to the step that uses it is not attempted.
    """
    mapped = [map_ingredient(i) for i in ingredients]
    steps = [
        TandoorStep(
            instruction=instruction_text(step),
            ingredients=mapped if index == 0 else [],
        )
        for index, step in enumerate(instructions)
    ]
    if not steps and mapped:
        steps.append(TandoorStep(instruction=PLACEHOLDER_STEP, ingredients=mapped))
    return steps


def recipe_from_payload(data: Dict[str, Any]) -> Recipe:
    """
    Validate an export request body.

    Accepts the Recipe shape as well as the export form's
    `{steps: [{instruction}], ingredients: [...]}` shape.

    Raises:
        ValidationError: if the body is not a usable recipe.
    """
    try:
        return Recipe.model_validate(apply_field_aliases(data))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid recipe: {e}") from e


def build_payload(recipe: Recipe) -> TandoorRecipePayload:
    """Adapt a finished recipe into the body of POST /api/recipe/."""
    servings, servings_text = parse_servings(recipe.recipeYield)
    return TandoorRecipePayload(
        name=recipe.name,
        description=recipe.description or settings.default_description,
        steps=map_steps(recipe.recipeInstructions, recipe.recipeIngredient),
        source_url=recipe.url,
        working_time=parse_duration(recipe.prepTime),
        waiting_time=parse_duration(recipe.cookTime),
        servings=servings,
        servings_text=servings_text,
        internal=True,
    )


def refine_steps(steps: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Split a single newline-separated step from Tandoor's importer into one step
    per line. Anything other than exactly one multi-line step is returned as is.

    The first resulting step keeps the original ingredients and ingredient
    table flag (default True); later steps get no ingredients and no table.
    """
    if not steps or len(steps) != 1:
        return steps

    single = steps[0]
    instruction = single.get("instruction")
    if not isinstance(instruction, str) or "\n" not in instruction:
        return steps

    lines = [line.strip() for line in instruction.split("\n") if line.strip()]
    if len(lines) <= 1:
        return steps

    logger.info(f"Splitting single imported step into {len(lines)} steps")
    show_table = single.get("show_ingredients_table")
    return [
        {
            **single,
            "instruction": line,
            "ingredients": single.get("ingredients", []) if index == 0 else [],
            "show_ingredients_table": (True if show_table is None else show_table) if index == 0 else False,
        }
        for index, line in enumerate(lines)
    ]
