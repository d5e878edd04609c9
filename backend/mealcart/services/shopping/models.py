"""Value types shared by the shopping-list engine.

These are plain snapshots handed in by the storage layer; the engine never
talks to the database itself.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
LIST_TYPES = ("weekly", "midweek", "custom")

GROCERY_CATEGORIES = (
    "Produce",
    "Meat & Seafood",
    "Dairy & Eggs",
    "Bakery",
    "Pantry",
    "Frozen",
    "Beverages",
    "Snacks",
    "Other",
)
FALLBACK_CATEGORY = "Other"

_AGGREGATED_NAMESPACE = uuid.UUID("6f1d3a52-4c1e-4d8e-9a57-0b6c2f3e9d10")


@dataclass(frozen=True)
class IngredientKey:
    """Canonical identity of a shopping item: lowercased name plus verbatim unit."""

    name: str
    unit: str

    @property
    def virtual_id(self) -> str:
        # uuid5 over both fields separately so no separator can collide
        digest = uuid.uuid5(_AGGREGATED_NAMESPACE, f"{len(self.name)}:{self.name}|{self.unit}")
        return f"agg-{digest}"


@dataclass
class IngredientLine:
    name: str
    quantity: float
    unit: str
    notes: Optional[str] = None


@dataclass
class RecipeSnapshot:
    id: str
    name: str
    servings: int
    ingredients: List[IngredientLine] = field(default_factory=list)


@dataclass
class PlannedMealSnapshot:
    id: str
    date: date
    meal_type: str
    recipe_id: str
    servings: int


@dataclass
class ExpandedLine:
    key: IngredientKey
    name: str
    quantity: float
    unit: str
    source_recipe_id: str


@dataclass
class AggregatedShoppingItem:
    key: IngredientKey
    name: str
    quantity: float
    unit: str
    category: str = FALLBACK_CATEGORY
    is_on_hand: bool = False
    source_recipe_ids: List[str] = field(default_factory=list)
    is_manual: bool = False

    @property
    def id(self) -> str:
        return self.key.virtual_id


@dataclass
class ShoppingListSnapshot:
    id: str
    week_start: date
    name: str
    list_type: str


class ItemState(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"
    MOVED = "moved"


@dataclass
class ShoppingListItem:
    """A materialized list entry. Stored rows and virtual aggregated entries share this shape."""

    id: str
    list_id: str
    name: str
    quantity: float
    unit: str
    category: str = FALLBACK_CATEGORY
    is_checked: bool = False
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    moved_to_list_id: Optional[str] = None
    source_recipe_ids: List[str] = field(default_factory=list)
    ingredient_id: Optional[str] = None
    is_aggregated: bool = False

    @property
    def is_manual(self) -> bool:
        return not self.source_recipe_ids

    @property
    def state(self) -> ItemState:
        if self.moved_to_list_id is not None:
            return ItemState.MOVED
        if self.is_deleted:
            return ItemState.DELETED
        return ItemState.ACTIVE


@dataclass
class AggregatedItemMarker:
    """Per-week, per-list state for a virtual aggregated entry."""

    week_start: date
    list_id: str
    key: IngredientKey
    is_checked: bool = False
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    moved_to_list_id: Optional[str] = None


@dataclass
class NewItem:
    name: str
    quantity: float
    unit: str
    category: str = FALLBACK_CATEGORY
    source_recipe_ids: List[str] = field(default_factory=list)


@dataclass
class QuickListTemplate:
    id: str
    name: str
    items: List[NewItem] = field(default_factory=list)
