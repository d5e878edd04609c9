import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

MealType = Literal["breakfast", "lunch", "dinner", "snack"]


class MealPlanCreate(BaseModel):
    date: dt.date
    meal_type: MealType
    recipe_id: str
    servings: int = Field(ge=1)


class MealPlanUpdate(BaseModel):
    servings: int = Field(ge=1)


class MealPlanOut(BaseModel):
    id: str
    date: dt.date
    meal_type: str
    recipe_id: str
    servings: int
    created: bool | None = None  # set on POST: False when the request merged into an existing slot
