from datetime import date, timedelta
from typing import Callable, Iterable, List, Mapping, Optional, Union

from mealcart.logging import get_logger
from mealcart.services.shopping.models import ExpandedLine, PlannedMealSnapshot, RecipeSnapshot
from mealcart.services.shopping.normalizer import normalize

logger = get_logger(__name__)

RecipeLookup = Union[Mapping[str, RecipeSnapshot], Callable[[str], Optional[RecipeSnapshot]]]


def week_start_for(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def week_bounds(week_start: date) -> tuple[date, date]:
    monday = week_start_for(week_start)
    return monday, monday + timedelta(days=6)


def meals_in_week(meals: Iterable[PlannedMealSnapshot], week_start: date) -> List[PlannedMealSnapshot]:
    start, end = week_bounds(week_start)
    return [m for m in meals if start <= m.date <= end]


def serving_multiplier(target_servings: float, recipe_servings: float) -> float:
    # recipe servings of 0 (or less) would divide by zero; such a recipe contributes nothing
    if not recipe_servings or recipe_servings <= 0:
        return 0.0
    return float(target_servings) / float(recipe_servings)


def _resolve(lookup: RecipeLookup, recipe_id: str) -> Optional[RecipeSnapshot]:
    if callable(lookup):
        return lookup(recipe_id)
    return lookup.get(recipe_id)


def expand(meals: Iterable[PlannedMealSnapshot], recipe_lookup: RecipeLookup) -> List[ExpandedLine]:
    """
    Flatten planned meals into scaled ingredient lines.
    Meals whose recipe no longer resolves are skipped rather than failing the batch.
    """
    lines: List[ExpandedLine] = []
    skipped = 0
    for meal in meals:
        recipe = _resolve(recipe_lookup, meal.recipe_id)
        if recipe is None:
            skipped += 1
            logger.debug("expand.recipe_missing meal_id=%s recipe_id=%s", meal.id, meal.recipe_id)
            continue
        multiplier = serving_multiplier(meal.servings, recipe.servings)
        if multiplier == 0 and meal.servings:
            logger.warning("expand.zero_servings recipe_id=%s servings=%s", recipe.id, recipe.servings)
        for ing in recipe.ingredients:
            lines.append(
                ExpandedLine(
                    key=normalize(ing.name, ing.unit),
                    name=ing.name.strip(),
                    quantity=float(ing.quantity) * multiplier,
                    unit=ing.unit,
                    source_recipe_id=recipe.id,
                )
            )
    if skipped:
        logger.info("expand.skipped_meals count=%s", skipped)
    return lines
