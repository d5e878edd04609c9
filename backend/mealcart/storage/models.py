import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def new_id() -> str:
    return str(uuid.uuid4())


class Recipe(SQLModel, table=True):
    __tablename__ = "recipes"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    description: str = ""
    servings: int = 1
    prep_time: int = 0  # minutes
    cook_time: int = 0  # minutes
    source_url: Optional[str] = None
    notes: Optional[str] = None
    tags: list = Field(default_factory=list, sa_column=Column(JSON, default=list))
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class RecipeIngredient(SQLModel, table=True):
    __tablename__ = "recipe_ingredients"

    id: str = Field(default_factory=new_id, primary_key=True)
    recipe_id: str = Field(foreign_key="recipes.id", index=True)
    position: int = 0
    name: str
    quantity: float
    unit: str = ""
    notes: Optional[str] = None


class PlannedMeal(SQLModel, table=True):
    __tablename__ = "meal_plans"
    __table_args__ = (UniqueConstraint("date", "meal_type", "recipe_id", name="uq_meal_plan_slot"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    date: dt.date = Field(index=True)
    meal_type: str  # breakfast | lunch | dinner | snack
    # no FK: a deleted recipe leaves its meals behind and they contribute nothing
    recipe_id: str = Field(index=True)
    servings: int
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class ShoppingList(SQLModel, table=True):
    __tablename__ = "shopping_lists"

    id: str = Field(default_factory=new_id, primary_key=True)
    week_start: dt.date = Field(index=True)
    name: str
    list_type: str = "custom"  # weekly | midweek | custom
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class ShoppingItem(SQLModel, table=True):
    __tablename__ = "shopping_list_items"

    id: str = Field(default_factory=new_id, primary_key=True)
    list_id: str = Field(foreign_key="shopping_lists.id", index=True)
    ingredient_id: Optional[str] = None
    name: str
    quantity: float
    unit: str = ""
    category: str = "Other"
    is_checked: bool = False
    is_deleted: bool = False
    deleted_at: Optional[dt.datetime] = None
    moved_to_list_id: Optional[str] = None
    source_recipe_ids: Optional[str] = None  # comma separated, empty for manual items
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class AggregatedMarker(SQLModel, table=True):
    """Check/delete/move state of a recipe-derived entry, which has no row of its own."""

    __tablename__ = "aggregated_item_markers"
    __table_args__ = (
        UniqueConstraint("week_start", "list_id", "key_name", "key_unit", name="uq_aggregated_marker"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    week_start: dt.date = Field(index=True)
    list_id: str = Field(foreign_key="shopping_lists.id")
    key_name: str
    key_unit: str = ""
    is_checked: bool = False
    is_deleted: bool = False
    deleted_at: Optional[dt.datetime] = None
    moved_to_list_id: Optional[str] = None


class QuickList(SQLModel, table=True):
    __tablename__ = "quick_lists"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
    updated_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class QuickListItem(SQLModel, table=True):
    __tablename__ = "quick_list_items"

    id: str = Field(default_factory=new_id, primary_key=True)
    quick_list_id: str = Field(foreign_key="quick_lists.id", index=True)
    name: str
    quantity: float = 1.0
    unit: str = ""
    category: str = "Other"
