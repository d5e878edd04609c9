"""Per-week shopping state with eagerly recomputed derived views."""

from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from mealcart.config import settings
from mealcart.errors import UnknownReferenceError
from mealcart.logging import get_logger
from mealcart.services.shopping.aggregator import aggregate
from mealcart.services.shopping.expander import expand, meals_in_week, week_start_for
from mealcart.services.shopping.materializer import active_items, materialize
from mealcart.services.shopping.models import (
    AggregatedItemMarker,
    AggregatedShoppingItem,
    IngredientKey,
    PlannedMealSnapshot,
    RecipeSnapshot,
    ShoppingListItem,
    ShoppingListSnapshot,
)
from mealcart.utils.timing import time_span

logger = get_logger(__name__)

Listener = Callable[["ShoppingBoard"], None]


class ShoppingBoard:
    """
    Holds the read-only inputs for one week (recipes, planned meals, lists,
    stored items, aggregated markers) and the views derived from them.

    Every mutation goes through a method that ends in recompute(), so
    `aggregated` and `views` always reflect the latest inputs. Subscribers are
    called after each recompute.
    """

    def __init__(
        self,
        week_start,
        recipes: Iterable[RecipeSnapshot] = (),
        meals: Iterable[PlannedMealSnapshot] = (),
        lists: Iterable[ShoppingListSnapshot] = (),
        items: Iterable[ShoppingListItem] = (),
        markers: Iterable[AggregatedItemMarker] = (),
        category: Optional[str] = None,
    ):
        self.week_start = week_start_for(week_start)
        self.category = category or settings.aggregated_category
        self.recipes: Dict[str, RecipeSnapshot] = {r.id: r for r in recipes}
        self.meals: List[PlannedMealSnapshot] = list(meals)
        self.lists: Dict[str, ShoppingListSnapshot] = {sl.id: sl for sl in lists}
        self.items: Dict[str, ShoppingListItem] = {i.id: i for i in items}
        self.markers: Dict[Tuple[str, IngredientKey], AggregatedItemMarker] = {
            (m.list_id, m.key): m for m in markers
        }
        self.aggregated: List[AggregatedShoppingItem] = []
        self.views: Dict[str, List[ShoppingListItem]] = {}
        self._listeners: List[Listener] = []
        self.recompute()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def recompute(self) -> None:
        with time_span("shopping.board.recompute", week=self.week_start):
            week_meals = meals_in_week(self.meals, self.week_start)
            self.aggregated = aggregate(expand(week_meals, self.recipes), category=self.category)
            stored = list(self.items.values())
            self.views = {
                list_id: materialize(self.aggregated, stored, sl, self.markers_for(list_id))
                for list_id, sl in self.lists.items()
            }
        logger.debug(
            "board.recompute week=%s meals=%s aggregated=%s lists=%s",
            self.week_start,
            len(week_meals),
            len(self.aggregated),
            len(self.lists),
        )
        for listener in list(self._listeners):
            listener(self)

    # inputs

    def set_recipes(self, recipes: Iterable[RecipeSnapshot]) -> None:
        self.recipes = {r.id: r for r in recipes}
        self.recompute()

    def upsert_recipe(self, recipe: RecipeSnapshot) -> None:
        self.recipes[recipe.id] = recipe
        self.recompute()

    def remove_recipe(self, recipe_id: str) -> None:
        self.recipes.pop(recipe_id, None)
        self.recompute()

    def set_meals(self, meals: Iterable[PlannedMealSnapshot]) -> None:
        self.meals = list(meals)
        self.recompute()

    def upsert_meal(self, meal: PlannedMealSnapshot) -> None:
        self.meals = [m for m in self.meals if m.id != meal.id] + [meal]
        self.recompute()

    def remove_meal(self, meal_id: str) -> None:
        self.meals = [m for m in self.meals if m.id != meal_id]
        self.recompute()

    def add_list(self, shopping_list: ShoppingListSnapshot) -> None:
        self.lists[shopping_list.id] = shopping_list
        self.recompute()

    def remove_list(self, list_id: str) -> None:
        self.get_list(list_id)
        del self.lists[list_id]
        self.items = {
            k: replace(v, moved_to_list_id=None) if v.moved_to_list_id == list_id else v
            for k, v in self.items.items()
            if v.list_id != list_id
        }
        self.markers = {k: v for k, v in self.markers.items() if v.list_id != list_id}
        for marker in self.markers.values():
            if marker.moved_to_list_id == list_id:
                marker.moved_to_list_id = None
        self.recompute()

    def apply(
        self,
        items: Iterable[ShoppingListItem] = (),
        markers: Iterable[AggregatedItemMarker] = (),
    ) -> None:
        """Install committed item rows and markers, then recompute once."""
        for item in items:
            self.items[item.id] = item
        for marker in markers:
            self.markers[(marker.list_id, marker.key)] = marker
        self.recompute()

    # lookups

    def get_list(self, list_id: str) -> ShoppingListSnapshot:
        shopping_list = self.lists.get(list_id)
        if shopping_list is None:
            raise UnknownReferenceError("shopping_list", list_id)
        return shopping_list

    def markers_for(self, list_id: str) -> Dict[IngredientKey, AggregatedItemMarker]:
        return {key: m for (lid, key), m in self.markers.items() if lid == list_id}

    def view(self, list_id: str) -> List[ShoppingListItem]:
        self.get_list(list_id)
        return self.views.get(list_id, [])

    def active_view(self, list_id: str) -> List[ShoppingListItem]:
        return active_items(self.view(list_id))

    def find_item(self, list_id: str, item_id: str) -> ShoppingListItem:
        for item in self.view(list_id):
            if item.id == item_id:
                return item
        raise UnknownReferenceError("shopping_item", item_id)

    def aggregated_item(self, item_id: str) -> AggregatedShoppingItem:
        for item in self.aggregated:
            if item.id == item_id:
                return item
        raise UnknownReferenceError("aggregated_item", item_id)
