import logging
import math
from datetime import timedelta

import pytest

from conftest import WEEK, meal
from mealcart.services.shopping.expander import expand, meals_in_week, serving_multiplier, week_start_for
from mealcart.services.shopping.models import IngredientKey, IngredientLine, RecipeSnapshot


def test_tacos_scaled_to_target_servings(tacos):
    lines = expand([meal("m1", "tacos-id", 6)], {"tacos-id": tacos})
    beef = [line for line in lines if line.key == IngredientKey("ground beef", "g")]
    assert len(beef) == 1
    assert beef[0].quantity == 750
    assert beef[0].source_recipe_id == "tacos-id"
    assert beef[0].name == "Ground beef"


def test_second_meal_produces_its_own_lines(tacos):
    lines = expand([meal("m1", "tacos-id", 6), meal("m2", "tacos-id", 2, WEEK + timedelta(days=1))], {"tacos-id": tacos})
    beef = [line.quantity for line in lines if line.key.name == "ground beef"]
    assert beef == [750, 250]


def test_unresolved_recipe_is_skipped(tacos):
    lines = expand([meal("m1", "missing", 2), meal("m2", "tacos-id", 4)], {"tacos-id": tacos})
    assert {line.source_recipe_id for line in lines} == {"tacos-id"}
    assert len(lines) == 2


def test_zero_servings_recipe_yields_zero_quantities():
    broken = RecipeSnapshot(
        id="r0",
        name="Broken",
        servings=0,
        ingredients=[IngredientLine("Rice", 200, "g"), IngredientLine("Water", 1, "l")],
    )
    lines = expand([meal("m1", "r0", 4)], {"r0": broken})
    assert len(lines) == 2
    for line in lines:
        assert line.quantity == 0
        assert not math.isnan(line.quantity)
        assert not math.isinf(line.quantity)


def test_serving_multiplier_is_fractional():
    assert serving_multiplier(3, 4) == pytest.approx(0.75)
    assert serving_multiplier(2, 0) == 0.0
    assert serving_multiplier(2, -1) == 0.0


def test_recipe_lookup_may_be_callable(tacos):
    lines = expand([meal("m1", "tacos-id", 4)], lambda rid: tacos if rid == "tacos-id" else None)
    assert [line.quantity for line in lines] == [500, 8]


def test_week_start_is_monday():
    assert week_start_for(WEEK) == WEEK
    assert week_start_for(WEEK + timedelta(days=6)) == WEEK
    assert week_start_for(WEEK + timedelta(days=7)) == WEEK + timedelta(days=7)


def test_meals_in_week_filters_by_date():
    meals = [
        meal("before", "r", 1, WEEK - timedelta(days=1)),
        meal("monday", "r", 1, WEEK),
        meal("sunday", "r", 1, WEEK + timedelta(days=6)),
        meal("after", "r", 1, WEEK + timedelta(days=7)),
    ]
    assert [m.id for m in meals_in_week(meals, WEEK + timedelta(days=2))] == ["monday", "sunday"]


def test_zero_servings_recipe_is_logged_once(caplog):
    broken = RecipeSnapshot(id="r0", name="Broken", servings=0, ingredients=[IngredientLine("Rice", 200, "g")])
    with caplog.at_level(logging.WARNING):
        expand([meal("m1", "r0", 4)], {"r0": broken})
    assert [r.getMessage() for r in caplog.records] == ["expand.zero_servings recipe_id=r0 servings=0"]


def test_zero_target_servings_is_not_a_warning(tacos, caplog):
    with caplog.at_level(logging.WARNING):
        lines = expand([meal("m1", "tacos-id", 0)], {"tacos-id": tacos})
    assert [line.quantity for line in lines] == [0, 0]
    assert caplog.records == []
