"""Shopping-list engine: expand planned meals, aggregate, materialize lists, manage item lifecycle."""

from mealcart.services.shopping.aggregator import aggregate
from mealcart.services.shopping.board import ShoppingBoard
from mealcart.services.shopping.expander import expand, meals_in_week, week_start_for
from mealcart.services.shopping.lifecycle import ItemLifecycleManager
from mealcart.services.shopping.materializer import active_items, group_by_category, group_by_recipe, materialize
from mealcart.services.shopping.normalizer import normalize

__all__ = [
    "aggregate",
    "ShoppingBoard",
    "expand",
    "meals_in_week",
    "week_start_for",
    "ItemLifecycleManager",
    "active_items",
    "group_by_category",
    "group_by_recipe",
    "materialize",
    "normalize",
]
