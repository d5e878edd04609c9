import datetime as dt
from typing import Iterable

from sqlalchemy import delete, update
from sqlmodel import Session, select

from mealcart.config import settings
from mealcart.errors import UnknownReferenceError, ValidationFailure
from mealcart.logging import get_logger
from mealcart.services.shopping.models import LIST_TYPES, MEAL_TYPES
from mealcart.storage.models import (
    AggregatedMarker,
    PlannedMeal,
    QuickList,
    QuickListItem,
    Recipe,
    RecipeIngredient,
    ShoppingItem,
    ShoppingList,
)

logger = get_logger(__name__)


# recipes


def create_recipe(session: Session, recipe: Recipe, ingredients: Iterable[RecipeIngredient]) -> Recipe:
    if recipe.servings is None or recipe.servings < 1:
        raise ValidationFailure(f"servings must be >= 1, got {recipe.servings}")
    session.add(recipe)
    session.flush()
    lines = list(ingredients)
    for position, line in enumerate(lines):
        line.recipe_id = recipe.id
        line.position = position
    session.add_all(lines)
    session.commit()
    session.refresh(recipe)
    logger.info("recipe.created id=%s name=%s servings=%s ingredients=%s", recipe.id, recipe.name, recipe.servings, len(lines))
    return recipe


def list_recipes(session: Session) -> list[Recipe]:
    return list(session.exec(select(Recipe).order_by(Recipe.name)))


def get_recipe(session: Session, recipe_id: str) -> Recipe:
    recipe = session.get(Recipe, recipe_id)
    if recipe is None:
        raise UnknownReferenceError("recipe", recipe_id)
    return recipe


def get_recipe_ingredients(session: Session, recipe_ids: Iterable[str]) -> dict[str, list[RecipeIngredient]]:
    ids = list(set(recipe_ids))
    out: dict[str, list[RecipeIngredient]] = {rid: [] for rid in ids}
    if not ids:
        return out
    rows = session.exec(
        select(RecipeIngredient)
        .where(RecipeIngredient.recipe_id.in_(ids))
        .order_by(RecipeIngredient.recipe_id, RecipeIngredient.position)
    )
    for row in rows:
        out[row.recipe_id].append(row)
    return out


def get_recipes_by_ids(session: Session, recipe_ids: Iterable[str]) -> list[Recipe]:
    ids = list(set(recipe_ids))
    if not ids:
        return []
    return list(session.exec(select(Recipe).where(Recipe.id.in_(ids))))


def delete_recipe(session: Session, recipe_id: str) -> None:
    """Delete a recipe and its ingredient lines. Planned meals referencing it are left alone."""
    recipe = get_recipe(session, recipe_id)
    session.exec(delete(RecipeIngredient).where(RecipeIngredient.recipe_id == recipe_id))
    session.delete(recipe)
    session.commit()
    logger.info("recipe.deleted id=%s", recipe_id)


# meal plans


def list_planned_meals(session: Session, start: dt.date, end: dt.date) -> list[PlannedMeal]:
    order = {meal_type: i for i, meal_type in enumerate(MEAL_TYPES)}
    rows = list(session.exec(select(PlannedMeal).where(PlannedMeal.date >= start, PlannedMeal.date <= end)))
    return sorted(rows, key=lambda m: (m.date, order.get(m.meal_type, len(order)), m.created_at))


def _validate_servings(servings: int) -> None:
    if servings is None or servings < 1:
        raise ValidationFailure(f"servings must be >= 1, got {servings}")


def plan_meal(
    session: Session, date: dt.date, meal_type: str, recipe_id: str, servings: int
) -> tuple[PlannedMeal, bool]:
    """
    Assign a recipe to a (date, meal type) slot.
    A second assignment of the same recipe to the same slot updates the existing
    row's servings instead of inserting. Returns (meal, created).
    """
    if meal_type not in MEAL_TYPES:
        raise ValidationFailure(f"Invalid meal type: {meal_type}. Must be one of {', '.join(MEAL_TYPES)}")
    _validate_servings(servings)
    get_recipe(session, recipe_id)
    existing = session.exec(
        select(PlannedMeal).where(
            PlannedMeal.date == date,
            PlannedMeal.meal_type == meal_type,
            PlannedMeal.recipe_id == recipe_id,
        )
    ).first()
    if existing:
        existing.servings = servings
        session.add(existing)
        session.commit()
        session.refresh(existing)
        logger.info("meal_plan.merged id=%s date=%s meal_type=%s servings=%s", existing.id, date, meal_type, servings)
        return existing, False
    meal = PlannedMeal(date=date, meal_type=meal_type, recipe_id=recipe_id, servings=servings)
    session.add(meal)
    session.commit()
    session.refresh(meal)
    logger.info("meal_plan.created id=%s date=%s meal_type=%s recipe_id=%s", meal.id, date, meal_type, recipe_id)
    return meal, True


def update_meal_servings(session: Session, meal_id: str, servings: int) -> PlannedMeal:
    _validate_servings(servings)
    meal = session.get(PlannedMeal, meal_id)
    if meal is None:
        raise UnknownReferenceError("meal_plan", meal_id)
    meal.servings = servings
    session.add(meal)
    session.commit()
    session.refresh(meal)
    return meal


def delete_planned_meal(session: Session, meal_id: str) -> None:
    meal = session.get(PlannedMeal, meal_id)
    if meal is None:
        raise UnknownReferenceError("meal_plan", meal_id)
    session.delete(meal)
    session.commit()
    logger.info("meal_plan.deleted id=%s", meal_id)


# shopping lists


def list_shopping_lists(session: Session, week_start: dt.date) -> list[ShoppingList]:
    """Lists of one week: weekly first, then midweek, then custom lists by creation time."""
    order = {list_type: i for i, list_type in enumerate(LIST_TYPES)}
    rows = list(session.exec(select(ShoppingList).where(ShoppingList.week_start == week_start)))
    return sorted(rows, key=lambda sl: (order.get(sl.list_type, len(order)), sl.created_at))


def create_shopping_list(
    session: Session, week_start: dt.date, name: str, list_type: str = "custom", commit: bool = True
) -> ShoppingList:
    if list_type not in LIST_TYPES:
        raise ValidationFailure(f"Invalid list type: {list_type}. Must be one of {', '.join(LIST_TYPES)}")
    if not (name or "").strip():
        raise ValidationFailure("list name must not be empty")
    shopping_list = ShoppingList(week_start=week_start, name=name.strip(), list_type=list_type)
    session.add(shopping_list)
    if commit:
        session.commit()
        session.refresh(shopping_list)
    logger.info("shopping_list.created id=%s week=%s type=%s", shopping_list.id, week_start, list_type)
    return shopping_list


def get_or_create_week_lists(session: Session, week_start: dt.date) -> list[ShoppingList]:
    lists = list_shopping_lists(session, week_start)
    if lists:
        return lists
    for name, list_type in settings.default_lists:
        create_shopping_list(session, week_start, name, list_type, commit=False)
    session.commit()
    return list_shopping_lists(session, week_start)


def get_shopping_list(session: Session, list_id: str) -> ShoppingList:
    shopping_list = session.get(ShoppingList, list_id)
    if shopping_list is None:
        raise UnknownReferenceError("shopping_list", list_id)
    return shopping_list


def delete_shopping_list(session: Session, list_id: str) -> None:
    shopping_list = get_shopping_list(session, list_id)
    session.exec(delete(ShoppingItem).where(ShoppingItem.list_id == list_id))
    session.exec(delete(AggregatedMarker).where(AggregatedMarker.list_id == list_id))
    # anything moved into this list reappears where it came from
    session.exec(update(ShoppingItem).where(ShoppingItem.moved_to_list_id == list_id).values(moved_to_list_id=None))
    session.exec(
        update(AggregatedMarker).where(AggregatedMarker.moved_to_list_id == list_id).values(moved_to_list_id=None)
    )
    session.delete(shopping_list)
    session.commit()
    logger.info("shopping_list.deleted id=%s", list_id)


# shopping items and markers


def list_shopping_items(session: Session, list_ids: Iterable[str]) -> list[ShoppingItem]:
    ids = list(list_ids)
    if not ids:
        return []
    return list(
        session.exec(
            select(ShoppingItem)
            .where(ShoppingItem.list_id.in_(ids))
            .order_by(ShoppingItem.category, ShoppingItem.name)
        )
    )


def upsert_shopping_items(session: Session, items: Iterable[ShoppingItem], commit: bool = True) -> None:
    for item in items:
        session.merge(item)
    if commit:
        session.commit()


def list_markers(session: Session, week_start: dt.date) -> list[AggregatedMarker]:
    return list(session.exec(select(AggregatedMarker).where(AggregatedMarker.week_start == week_start)))


def upsert_markers(session: Session, markers: Iterable[AggregatedMarker], commit: bool = True) -> None:
    """Insert or update markers by their (week, list, name, unit) identity."""
    for marker in markers:
        existing = session.exec(
            select(AggregatedMarker).where(
                AggregatedMarker.week_start == marker.week_start,
                AggregatedMarker.list_id == marker.list_id,
                AggregatedMarker.key_name == marker.key_name,
                AggregatedMarker.key_unit == marker.key_unit,
            )
        ).first()
        if existing is None:
            session.add(marker)
            continue
        existing.is_checked = marker.is_checked
        existing.is_deleted = marker.is_deleted
        existing.deleted_at = marker.deleted_at
        existing.moved_to_list_id = marker.moved_to_list_id
        session.add(existing)
    if commit:
        session.commit()


# quick lists


def list_quick_lists(session: Session) -> list[tuple[QuickList, list[QuickListItem]]]:
    lists = list(session.exec(select(QuickList).order_by(QuickList.name)))
    items = list(session.exec(select(QuickListItem).order_by(QuickListItem.category, QuickListItem.name)))
    by_list: dict[str, list[QuickListItem]] = {}
    for item in items:
        by_list.setdefault(item.quick_list_id, []).append(item)
    return [(ql, by_list.get(ql.id, [])) for ql in lists]


def get_quick_list(session: Session, quick_list_id: str) -> tuple[QuickList, list[QuickListItem]]:
    quick_list = session.get(QuickList, quick_list_id)
    if quick_list is None:
        raise UnknownReferenceError("quick_list", quick_list_id)
    items = list(session.exec(select(QuickListItem).where(QuickListItem.quick_list_id == quick_list_id)))
    return quick_list, items


def create_quick_list(session: Session, name: str) -> QuickList:
    if not (name or "").strip():
        raise ValidationFailure("quick list name must not be empty")
    quick_list = QuickList(name=name.strip())
    session.add(quick_list)
    session.commit()
    session.refresh(quick_list)
    logger.info("quick_list.created id=%s", quick_list.id)
    return quick_list


def rename_quick_list(session: Session, quick_list_id: str, name: str) -> QuickList:
    quick_list, _ = get_quick_list(session, quick_list_id)
    if not (name or "").strip():
        raise ValidationFailure("quick list name must not be empty")
    quick_list.name = name.strip()
    quick_list.updated_at = dt.datetime.now(dt.timezone.utc)
    session.add(quick_list)
    session.commit()
    session.refresh(quick_list)
    return quick_list


def delete_quick_list(session: Session, quick_list_id: str) -> None:
    quick_list, _ = get_quick_list(session, quick_list_id)
    session.exec(delete(QuickListItem).where(QuickListItem.quick_list_id == quick_list_id))
    session.delete(quick_list)
    session.commit()
    logger.info("quick_list.deleted id=%s", quick_list_id)


def add_quick_list_item(session: Session, quick_list_id: str, item: QuickListItem) -> QuickListItem:
    quick_list, _ = get_quick_list(session, quick_list_id)
    item.quick_list_id = quick_list_id
    quick_list.updated_at = dt.datetime.now(dt.timezone.utc)
    session.add(item)
    session.add(quick_list)
    session.commit()
    session.refresh(item)
    return item


def update_quick_list_item(
    session: Session,
    item_id: str,
    name: str,
    quantity: float,
    unit: str,
    category: str,
) -> QuickListItem:
    item = session.get(QuickListItem, item_id)
    if item is None:
        raise UnknownReferenceError("quick_list_item", item_id)
    item.name = name
    item.quantity = quantity
    item.unit = unit
    item.category = category
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def remove_quick_list_item(session: Session, item_id: str) -> None:
    item = session.get(QuickListItem, item_id)
    if item is None:
        raise UnknownReferenceError("quick_list_item", item_id)
    session.delete(item)
    session.commit()

