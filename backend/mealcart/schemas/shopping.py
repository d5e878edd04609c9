import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field


class ShoppingItemOut(BaseModel):
    id: str
    list_id: str
    name: str
    quantity: float
    unit: str
    category: str
    is_checked: bool
    is_deleted: bool
    deleted_at: dt.datetime | None = None
    moved_to_list_id: str | None = None
    source_recipe_ids: list[str] = []
    is_manual: bool
    is_aggregated: bool
    state: str


class ShoppingListOut(BaseModel):
    id: str
    week_start: dt.date
    name: str
    list_type: str
    items: list[ShoppingItemOut] = []


class WeekOut(BaseModel):
    week_start: dt.date
    lists: list[ShoppingListOut]


class AggregatedItemOut(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    category: str
    is_on_hand: bool
    source_recipe_ids: list[str]
    is_manual: bool


class ItemGroupOut(BaseModel):
    key: str | None  # category name, or recipe id (None for manual items)
    label: str
    items: list[ShoppingItemOut]


class ShoppingListCreate(BaseModel):
    name: str = Field(min_length=1)


class ShoppingItemCreate(BaseModel):
    name: str = Field(min_length=1)
    quantity: float = Field(default=1.0, ge=0)
    unit: str = ""
    category: str = "Other"


class QuantityUpdate(BaseModel):
    quantity: float = Field(ge=0)


class MoveRequest(BaseModel):
    to_list_id: str


GroupBy = Literal["category", "recipe"]


class QuickListCreate(BaseModel):
    name: str = Field(min_length=1)


class QuickListItemIn(BaseModel):
    name: str = Field(min_length=1)
    quantity: float = Field(default=1.0, ge=0)
    unit: str = ""
    category: str = "Other"


class QuickListItemOut(QuickListItemIn):
    id: str
    quick_list_id: str


class QuickListOut(BaseModel):
    id: str
    name: str
    items: list[QuickListItemOut] = []
    created_at: dt.datetime
    updated_at: dt.datetime
