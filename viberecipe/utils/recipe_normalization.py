"""Normalize candidate recipe dicts from Gemini into the Recipe model's shapes."""

import logging
from typing import Any, Dict, List, Optional, Union

from viberecipe.utils.exceptions import NotARecipeError

logger = logging.getLogger(__name__)

InstructionItem = Union[str, Dict[str, Any]]
IngredientItem = Union[str, Dict[str, Any]]

INSTRUCTION_ALIASES = ("steps", "instructions", "instruction")
INGREDIENT_ALIASES = ("ingredients",)


def normalize_recipe_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a candidate record so it validates as a Recipe.

    Handles:
    - Wrapped responses (``{"recipe": {...}}``) and JSON-LD ``@graph`` arrays
    - The explicit ``{"error": "Not a recipe"}`` signal
    - ``recipeInstructions`` as a string, HowToSection, or the legacy
      top-level ``instruction`` field
    - ``recipeIngredient`` as a single string or objects keyed by ``name``
    - ``recipeYield`` lists and non-string durations

    ``image`` is deliberately left alone; the image resolver owns it.
    """
    data = _unwrap(data)

    if "error" in data and not data.get("name"):
        raise NotARecipeError(f"Input is not a recipe: {data.get('error')}")

    normalized = apply_field_aliases(data)

    recipe_yield = normalized.get("recipeYield")
    if isinstance(recipe_yield, list):
        normalized["recipeYield"] = recipe_yield[0] if recipe_yield else None

    for key in ("prepTime", "cookTime", "totalTime"):
        value = normalized.get(key)
        if value is not None and not isinstance(value, str):
            normalized[key] = str(value)
        elif value == "":
            normalized[key] = None

    if isinstance(normalized.get("name"), str):
        normalized["name"] = normalized["name"].strip()

    return normalized


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _unwrap(data: Dict[str, Any]) -> Dict[str, Any]:
    graph = data.get("@graph")
    if isinstance(graph, list):
        for node in graph:
            if isinstance(node, dict) and _is_recipe_type(node.get("@type")):
                logger.info("Unwrapping Recipe node from JSON-LD @graph")
                return node

    if len(data) == 1:
        key, inner = next(iter(data.items()))
        if isinstance(inner, dict) and "recipe" in key.lower():
            logger.info(f"Unwrapping nested JSON response from key: {key}")
            return inner

    return data


def apply_field_aliases(data: Dict[str, Any]) -> Dict[str, Any]:
    """Move alternative step/ingredient keys onto the schema.org names and normalize both.

    The export form sends ``steps`` and ``ingredients``; older responses use a
    top-level ``instruction``. An empty schema.org field yields to an alias.
    """
    normalized: Dict[str, Any] = dict(data)

    if not normalized.get("recipeInstructions"):
        for key in INSTRUCTION_ALIASES:
            if normalized.get(key):
                normalized["recipeInstructions"] = normalized.pop(key)
                break
    if not normalized.get("recipeIngredient"):
        for key in INGREDIENT_ALIASES:
            if normalized.get(key):
                normalized["recipeIngredient"] = normalized.pop(key)
                break

    normalized["recipeInstructions"] = normalize_instructions(normalized.get("recipeInstructions"))
    normalized["recipeIngredient"] = normalize_ingredients(normalized.get("recipeIngredient"))
    return normalized


def _is_recipe_type(value: Any) -> bool:
    if isinstance(value, list):
        return "Recipe" in value
    return value == "Recipe"


def normalize_instructions(value: Any) -> List[InstructionItem]:
    """Flatten every accepted instruction shape into a list of steps."""
    if value is None:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return [str(value)]

    steps: List[InstructionItem] = []
    for item in value:
        if isinstance(item, str):
            if item.strip():
                steps.append(item.strip())
        elif isinstance(item, dict):
            # HowToSection groups its steps under itemListElement
            nested = item.get("itemListElement")
            if nested is not None and not (item.get("text") or item.get("instruction")):
                steps.extend(normalize_instructions(nested))
            else:
                steps.append(item)
        elif item is not None:
            steps.append(str(item))
    return steps


def normalize_ingredients(value: Any) -> List[IngredientItem]:
    """Return ingredients as plain strings or dicts carrying a `food` key."""
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        return [str(value)]

    ingredients: List[IngredientItem] = []
    for item in value:
        if isinstance(item, str):
            if item.strip():
                ingredients.append(item.strip())
        elif isinstance(item, dict):
            fixed = _fix_structured_ingredient(item)
            if fixed is not None:
                ingredients.append(fixed)
        elif item is not None:
            ingredients.append(str(item))
    return ingredients


def _fix_structured_ingredient(item: Dict[str, Any]) -> Optional[IngredientItem]:
    fixed = dict(item)
    food = fixed.get("food")
    if isinstance(food, dict):
        food = food.get("name")
    if not food:
        food = fixed.pop("name", None) or fixed.get("text")
    if not food:
        return None
    fixed["food"] = str(food).strip()

    unit = fixed.get("unit")
    if isinstance(unit, dict):
        fixed["unit"] = unit.get("name")
    if "amount" in fixed and "quantity" not in fixed:
        fixed["quantity"] = fixed.pop("amount")
    return fixed
