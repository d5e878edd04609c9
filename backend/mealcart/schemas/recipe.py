import datetime as dt

from pydantic import BaseModel, Field


class IngredientLineIn(BaseModel):
    name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    unit: str = ""
    notes: str | None = None


class RecipeCreate(BaseModel):
    name: str = Field(min_length=1)
    servings: int = Field(ge=1)
    description: str = ""
    prep_time: int = 0  # minutes
    cook_time: int = 0  # minutes
    source_url: str | None = None
    notes: str | None = None
    tags: list[str] = []
    ingredients: list[IngredientLineIn] = []


class IngredientLineOut(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    notes: str | None = None


class RecipeOut(BaseModel):
    id: str
    name: str
    servings: int
    description: str
    prep_time: int
    cook_time: int
    source_url: str | None = None
    notes: str | None = None
    tags: list[str] = []
    created_at: dt.datetime
    ingredients: list[IngredientLineOut] = []
