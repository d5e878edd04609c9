import sys
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from mealcart import main
from mealcart.services.shopping.models import (
    IngredientLine,
    PlannedMealSnapshot,
    RecipeSnapshot,
    ShoppingListSnapshot,
)
from mealcart.storage import db as db_module

# a Monday
WEEK = date(2024, 3, 4)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(monkeypatch, engine):
    monkeypatch.setattr(db_module, "engine", engine)

    client = TestClient(main.app)
    return client


@pytest.fixture
def tacos():
    return RecipeSnapshot(
        id="tacos-id",
        name="Tacos",
        servings=4,
        ingredients=[
            IngredientLine(name="Ground beef", quantity=500, unit="g"),
            IngredientLine(name="Tortillas", quantity=8, unit=""),
        ],
    )


@pytest.fixture
def chili():
    return RecipeSnapshot(
        id="chili-id",
        name="Chili",
        servings=2,
        ingredients=[
            IngredientLine(name="ground beef", quantity=300, unit="g"),
            IngredientLine(name="Beans", quantity=1, unit="can"),
        ],
    )


@pytest.fixture
def weekly():
    return ShoppingListSnapshot(id="weekly-id", week_start=WEEK, name="Weekly", list_type="weekly")


@pytest.fixture
def midweek():
    return ShoppingListSnapshot(id="midweek-id", week_start=WEEK, name="Midweek", list_type="midweek")


def meal(meal_id: str, recipe_id: str, servings: int, day: date = WEEK, meal_type: str = "dinner"):
    return PlannedMealSnapshot(id=meal_id, date=day, meal_type=meal_type, recipe_id=recipe_id, servings=servings)
