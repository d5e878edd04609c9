"""Bridge between storage rows and the engine's snapshots."""

import datetime as dt
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from mealcart.errors import PersistenceFailure
from mealcart.logging import get_logger
from mealcart.services.shopping.board import ShoppingBoard
from mealcart.services.shopping.expander import week_bounds, week_start_for
from mealcart.services.shopping.models import (
    AggregatedItemMarker,
    IngredientKey,
    IngredientLine,
    NewItem,
    PlannedMealSnapshot,
    QuickListTemplate,
    RecipeSnapshot,
    ShoppingListItem,
    ShoppingListSnapshot,
)
from mealcart.storage import repositories
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
from mealcart.utils.timing import time_span

logger = get_logger(__name__)


def recipe_snapshot(recipe: Recipe, ingredients: List[RecipeIngredient]) -> RecipeSnapshot:
    return RecipeSnapshot(
        id=recipe.id,
        name=recipe.name,
        servings=recipe.servings,
        ingredients=[IngredientLine(name=i.name, quantity=i.quantity, unit=i.unit, notes=i.notes) for i in ingredients],
    )


def meal_snapshot(meal: PlannedMeal) -> PlannedMealSnapshot:
    return PlannedMealSnapshot(
        id=meal.id,
        date=meal.date,
        meal_type=meal.meal_type,
        recipe_id=meal.recipe_id,
        servings=meal.servings,
    )


def list_snapshot(shopping_list: ShoppingList) -> ShoppingListSnapshot:
    return ShoppingListSnapshot(
        id=shopping_list.id,
        week_start=shopping_list.week_start,
        name=shopping_list.name,
        list_type=shopping_list.list_type,
    )


def item_from_row(row: ShoppingItem) -> ShoppingListItem:
    return ShoppingListItem(
        id=row.id,
        list_id=row.list_id,
        name=row.name,
        quantity=row.quantity,
        unit=row.unit,
        category=row.category,
        is_checked=row.is_checked,
        is_deleted=row.is_deleted,
        deleted_at=row.deleted_at,
        moved_to_list_id=row.moved_to_list_id,
        source_recipe_ids=[rid for rid in (row.source_recipe_ids or "").split(",") if rid],
        ingredient_id=row.ingredient_id,
    )


def item_to_row(item: ShoppingListItem) -> ShoppingItem:
    return ShoppingItem(
        id=item.id,
        list_id=item.list_id,
        ingredient_id=item.ingredient_id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category=item.category,
        is_checked=item.is_checked,
        is_deleted=item.is_deleted,
        deleted_at=item.deleted_at,
        moved_to_list_id=item.moved_to_list_id,
        source_recipe_ids=",".join(item.source_recipe_ids) or None,
    )


def marker_from_row(row: AggregatedMarker) -> AggregatedItemMarker:
    return AggregatedItemMarker(
        week_start=row.week_start,
        list_id=row.list_id,
        key=IngredientKey(name=row.key_name, unit=row.key_unit),
        is_checked=row.is_checked,
        is_deleted=row.is_deleted,
        deleted_at=row.deleted_at,
        moved_to_list_id=row.moved_to_list_id,
    )


def marker_to_row(marker: AggregatedItemMarker) -> AggregatedMarker:
    return AggregatedMarker(
        week_start=marker.week_start,
        list_id=marker.list_id,
        key_name=marker.key.name,
        key_unit=marker.key.unit,
        is_checked=marker.is_checked,
        is_deleted=marker.is_deleted,
        deleted_at=marker.deleted_at,
        moved_to_list_id=marker.moved_to_list_id,
    )


def quick_list_template(quick_list: QuickList, items: List[QuickListItem]) -> QuickListTemplate:
    return QuickListTemplate(
        id=quick_list.id,
        name=quick_list.name,
        items=[NewItem(name=i.name, quantity=i.quantity, unit=i.unit, category=i.category) for i in items],
    )


class SqlItemStore:
    """Writes lifecycle changes in one transaction. Any failure is rolled back and re-raised as PersistenceFailure."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, items: List[ShoppingListItem], markers: List[AggregatedItemMarker]) -> None:
        try:
            repositories.upsert_shopping_items(self.session, [item_to_row(i) for i in items], commit=False)
            repositories.upsert_markers(self.session, [marker_to_row(m) for m in markers], commit=False)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("shopping.persist_failed items=%s markers=%s error=%s", len(items), len(markers), e)
            raise PersistenceFailure(str(e)) from e


def load_board(session: Session, week_start: dt.date) -> ShoppingBoard:
    """Load everything one week's lists depend on, creating the default lists on first use."""
    monday = week_start_for(week_start)
    start, end = week_bounds(monday)
    with time_span("shopping.board.load", week=monday):
        lists = repositories.get_or_create_week_lists(session, monday)
        meals = repositories.list_planned_meals(session, start, end)
        recipe_ids = {m.recipe_id for m in meals}
        recipes = repositories.get_recipes_by_ids(session, recipe_ids)
        ingredients = repositories.get_recipe_ingredients(session, [r.id for r in recipes])
        items = repositories.list_shopping_items(session, [sl.id for sl in lists])
        markers = repositories.list_markers(session, monday)
        board = ShoppingBoard(
            monday,
            recipes=[recipe_snapshot(r, ingredients.get(r.id, [])) for r in recipes],
            meals=[meal_snapshot(m) for m in meals],
            lists=[list_snapshot(sl) for sl in lists],
            items=[item_from_row(i) for i in items],
            markers=[marker_from_row(m) for m in markers],
        )
    logger.info(
        "shopping.board.loaded week=%s lists=%s meals=%s recipes=%s items=%s",
        monday,
        len(lists),
        len(meals),
        len(recipes),
        len(items),
    )
    return board
