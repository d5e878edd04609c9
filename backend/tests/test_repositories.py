from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import WEEK
from mealcart.errors import PersistenceFailure, UnknownReferenceError, ValidationFailure
from mealcart.services.shopping.lifecycle import ItemLifecycleManager
from mealcart.services.shopping.models import NewItem
from mealcart.services.shopping.normalizer import normalize
from mealcart.services.shopping.store import SqlItemStore, load_board, quick_list_template
from mealcart.storage import repositories
from mealcart.storage.models import QuickListItem, Recipe, RecipeIngredient


def _tacos(session):
    return repositories.create_recipe(
        session,
        Recipe(name="Tacos", servings=4),
        [
            RecipeIngredient(name="Ground beef", quantity=500, unit="g"),
            RecipeIngredient(name="Tortillas", quantity=8, unit=""),
        ],
    )


def test_create_recipe_keeps_ingredient_order(session):
    recipe = _tacos(session)
    lines = repositories.get_recipe_ingredients(session, [recipe.id])[recipe.id]
    assert [line.name for line in lines] == ["Ground beef", "Tortillas"]
    assert [line.position for line in lines] == [0, 1]


def test_create_recipe_rejects_zero_servings(session):
    with pytest.raises(ValidationFailure):
        repositories.create_recipe(session, Recipe(name="Broken", servings=0), [])


def test_plan_meal_merges_duplicate_slot(session):
    recipe = _tacos(session)
    first, created = repositories.plan_meal(session, WEEK, "dinner", recipe.id, 6)
    assert created
    second, created = repositories.plan_meal(session, WEEK, "dinner", recipe.id, 2)
    assert not created
    assert second.id == first.id
    assert second.servings == 2
    assert len(repositories.list_planned_meals(session, WEEK, WEEK)) == 1


def test_plan_meal_validates(session):
    recipe = _tacos(session)
    with pytest.raises(ValidationFailure):
        repositories.plan_meal(session, WEEK, "brunch", recipe.id, 2)
    with pytest.raises(ValidationFailure):
        repositories.plan_meal(session, WEEK, "lunch", recipe.id, 0)
    with pytest.raises(UnknownReferenceError):
        repositories.plan_meal(session, WEEK, "lunch", "missing", 2)


def test_list_planned_meals_orders_by_date_then_meal_type(session):
    recipe = _tacos(session)
    repositories.plan_meal(session, WEEK + timedelta(days=1), "breakfast", recipe.id, 1)
    repositories.plan_meal(session, WEEK, "dinner", recipe.id, 1)
    repositories.plan_meal(session, WEEK, "lunch", recipe.id, 1)
    meals = repositories.list_planned_meals(session, WEEK, WEEK + timedelta(days=6))
    assert [(m.date, m.meal_type) for m in meals] == [
        (WEEK, "lunch"),
        (WEEK, "dinner"),
        (WEEK + timedelta(days=1), "breakfast"),
    ]


def test_week_lists_created_once(session):
    lists = repositories.get_or_create_week_lists(session, WEEK)
    assert [(sl.name, sl.list_type) for sl in lists] == [("Weekly", "weekly"), ("Midweek", "midweek")]
    again = repositories.get_or_create_week_lists(session, WEEK)
    assert [sl.id for sl in again] == [sl.id for sl in lists]


def test_delete_recipe_keeps_planned_meals(session):
    recipe = _tacos(session)
    repositories.plan_meal(session, WEEK, "dinner", recipe.id, 4)
    repositories.delete_recipe(session, recipe.id)
    assert len(repositories.list_planned_meals(session, WEEK, WEEK)) == 1
    board = load_board(session, WEEK)
    assert board.aggregated == []


def test_load_board_and_persist_lifecycle(session):
    recipe = _tacos(session)
    repositories.plan_meal(session, WEEK + timedelta(days=2), "dinner", recipe.id, 6)
    board = load_board(session, WEEK + timedelta(days=3))
    assert board.week_start == WEEK
    weekly_id, midweek_id = list(board.lists)
    beef_id = normalize("Ground beef", "g").virtual_id
    assert board.find_item(weekly_id, beef_id).quantity == 750

    manager = ItemLifecycleManager(board, store=SqlItemStore(session))
    manager.add_item(midweek_id, NewItem(name="Milk", quantity=1, unit="gallon", category="Dairy & Eggs"))
    manager.move(weekly_id, beef_id, midweek_id)
    manager.toggle_on_hand(weekly_id, normalize("tortillas", "").virtual_id)

    reloaded = load_board(session, WEEK)
    assert [i.name for i in reloaded.active_view(weekly_id)] == ["Tortillas"]
    assert reloaded.active_view(weekly_id)[0].is_checked
    midweek = {i.name: i for i in reloaded.active_view(midweek_id)}
    assert set(midweek) == {"Milk", "Ground beef"}
    assert midweek["Ground beef"].source_recipe_ids == [recipe.id]


def test_marker_upsert_updates_in_place(session):
    recipe = _tacos(session)
    repositories.plan_meal(session, WEEK, "dinner", recipe.id, 4)
    board = load_board(session, WEEK)
    weekly_id = next(iter(board.lists))
    beef_id = normalize("Ground beef", "g").virtual_id
    manager = ItemLifecycleManager(board, store=SqlItemStore(session))
    manager.toggle_on_hand(weekly_id, beef_id)
    manager.toggle_on_hand(weekly_id, beef_id)
    markers = repositories.list_markers(session, WEEK)
    assert len(markers) == 1
    assert markers[0].is_checked is False


def test_delete_list_resets_markers_pointing_at_it(session):
    recipe = _tacos(session)
    repositories.plan_meal(session, WEEK, "dinner", recipe.id, 4)
    board = load_board(session, WEEK)
    weekly_id, midweek_id = list(board.lists)
    beef_id = normalize("Ground beef", "g").virtual_id
    ItemLifecycleManager(board, store=SqlItemStore(session)).move(weekly_id, beef_id, midweek_id)

    repositories.delete_shopping_list(session, midweek_id)
    reloaded = load_board(session, WEEK)
    assert list(reloaded.lists) == [weekly_id]
    assert reloaded.find_item(weekly_id, beef_id).moved_to_list_id is None
    assert repositories.list_shopping_items(session, [midweek_id]) == []


def test_delete_list_restores_stored_items_moved_into_it(session):
    board = load_board(session, WEEK)
    midweek_id = list(board.lists)[1]
    party = repositories.create_shopping_list(session, WEEK, "Party")
    board = load_board(session, WEEK)
    manager = ItemLifecycleManager(board, store=SqlItemStore(session))
    milk = manager.add_item(midweek_id, NewItem(name="Milk", quantity=2, unit="gallon"))
    manager.move(midweek_id, milk.id, party.id)

    repositories.delete_shopping_list(session, party.id)
    reloaded = load_board(session, WEEK)
    active = [(i.id, i.quantity) for i in reloaded.active_view(midweek_id) if i.name == "Milk"]
    assert active == [(milk.id, 2)]
    assert reloaded.items[milk.id].moved_to_list_id is None


def test_store_failure_rolls_back(session, monkeypatch):
    board = load_board(session, WEEK)
    weekly_id = next(iter(board.lists))

    def _fail():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", _fail)
    manager = ItemLifecycleManager(board, store=SqlItemStore(session))
    with pytest.raises(PersistenceFailure):
        manager.add_item(weekly_id, NewItem(name="Milk", quantity=1, unit="gallon"))
    assert board.view(weekly_id) == []
    monkeypatch.undo()
    assert repositories.list_shopping_items(session, [weekly_id]) == []


def test_quick_list_crud_and_apply(session):
    quick_list = repositories.create_quick_list(session, "Staples")
    repositories.add_quick_list_item(session, quick_list.id, QuickListItem(name="Milk", quantity=1, unit="gallon"))
    bread = repositories.add_quick_list_item(
        session, quick_list.id, QuickListItem(name="Bread", quantity=1, unit="loaf", category="Bakery")
    )
    repositories.update_quick_list_item(session, bread.id, "Bread", 2, "loaf", "Bakery")
    repositories.rename_quick_list(session, quick_list.id, "Weekly staples")

    [(stored, items)] = repositories.list_quick_lists(session)
    assert stored.name == "Weekly staples"
    assert {i.name: i.quantity for i in items} == {"Milk": 1, "Bread": 2}

    board = load_board(session, WEEK)
    midweek_id = list(board.lists)[1]
    ItemLifecycleManager(board, store=SqlItemStore(session)).add_quick_list(
        quick_list_template(stored, items), midweek_id
    )
    ItemLifecycleManager(board, store=SqlItemStore(session)).add_quick_list(
        quick_list_template(stored, items), midweek_id
    )
    rows = {r.name: r.quantity for r in repositories.list_shopping_items(session, [midweek_id])}
    assert rows == {"Milk": 2, "Bread": 4}

    repositories.remove_quick_list_item(session, bread.id)
    repositories.delete_quick_list(session, quick_list.id)
    assert repositories.list_quick_lists(session) == []
    with pytest.raises(UnknownReferenceError):
        repositories.get_quick_list(session, quick_list.id)
