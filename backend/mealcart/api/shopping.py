"""Weekly shopping lists: materialized views and item lifecycle actions."""

import datetime as dt

from fastapi import APIRouter, Query
from sqlmodel import Session

from mealcart.schemas.shopping import (
    AggregatedItemOut,
    GroupBy,
    ItemGroupOut,
    MoveRequest,
    QuantityUpdate,
    ShoppingItemCreate,
    ShoppingItemOut,
    ShoppingListCreate,
    ShoppingListOut,
    WeekOut,
)
from mealcart.services.shopping import (
    ItemLifecycleManager,
    ShoppingBoard,
    group_by_category,
    group_by_recipe,
    week_start_for,
)
from mealcart.services.shopping.models import NewItem, ShoppingListItem
from mealcart.services.shopping.store import SqlItemStore, load_board, quick_list_template
from mealcart.storage.db import get_session
from mealcart.storage.repositories import (
    create_shopping_list,
    delete_shopping_list,
    get_quick_list,
    get_shopping_list,
)

router = APIRouter(prefix="/shopping")

MANUAL_GROUP_LABEL = "Manual items"


def _item_out(item: ShoppingListItem) -> ShoppingItemOut:
    return ShoppingItemOut(
        id=item.id,
        list_id=item.list_id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category=item.category,
        is_checked=item.is_checked,
        is_deleted=item.is_deleted,
        deleted_at=item.deleted_at,
        moved_to_list_id=item.moved_to_list_id,
        source_recipe_ids=list(item.source_recipe_ids),
        is_manual=item.is_manual,
        is_aggregated=item.is_aggregated,
        state=item.state.value,
    )


def _list_out(board: ShoppingBoard, list_id: str, active_only: bool = False) -> ShoppingListOut:
    shopping_list = board.get_list(list_id)
    items = board.active_view(list_id) if active_only else board.view(list_id)
    return ShoppingListOut(
        id=shopping_list.id,
        week_start=shopping_list.week_start,
        name=shopping_list.name,
        list_type=shopping_list.list_type,
        items=[_item_out(i) for i in items],
    )


def _board_for_list(session: Session, list_id: str) -> ShoppingBoard:
    shopping_list = get_shopping_list(session, list_id)
    return load_board(session, shopping_list.week_start)


def _manager(session: Session, board: ShoppingBoard) -> ItemLifecycleManager:
    return ItemLifecycleManager(board, store=SqlItemStore(session))


@router.get("/weeks/{week_start}", response_model=WeekOut)
def get_week(week_start: dt.date, active_only: bool = Query(False)) -> WeekOut:
    """Lists for the week containing `week_start`. The default lists are created on first access."""
    with get_session() as session:
        board = load_board(session, week_start)
        return WeekOut(
            week_start=board.week_start,
            lists=[_list_out(board, list_id, active_only) for list_id in board.lists],
        )


@router.get("/weeks/{week_start}/aggregated", response_model=list[AggregatedItemOut])
def get_aggregated(week_start: dt.date) -> list[AggregatedItemOut]:
    with get_session() as session:
        board = load_board(session, week_start)
        return [
            AggregatedItemOut(
                id=item.id,
                name=item.name,
                quantity=item.quantity,
                unit=item.unit,
                category=item.category,
                is_on_hand=item.is_on_hand,
                source_recipe_ids=list(item.source_recipe_ids),
                is_manual=item.is_manual,
            )
            for item in board.aggregated
        ]


@router.get("/lists/{list_id}/groups", response_model=list[ItemGroupOut])
def get_groups(list_id: str, by: GroupBy = Query("category")) -> list[ItemGroupOut]:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        items = board.active_view(list_id)
        if by == "category":
            return [
                ItemGroupOut(key=category, label=category, items=[_item_out(i) for i in group])
                for category, group in group_by_category(items).items()
            ]
        groups = []
        for recipe_id, group in group_by_recipe(items).items():
            if recipe_id is None:
                label = MANUAL_GROUP_LABEL
            else:
                recipe = board.recipes.get(recipe_id)
                label = recipe.name if recipe else recipe_id
            groups.append(ItemGroupOut(key=recipe_id, label=label, items=[_item_out(i) for i in group]))
        return groups


@router.post("/weeks/{week_start}/lists", response_model=ShoppingListOut, status_code=201)
def post_list(week_start: dt.date, body: ShoppingListCreate) -> ShoppingListOut:
    with get_session() as session:
        monday = week_start_for(week_start)
        # make sure the default lists exist before the first custom one
        load_board(session, monday)
        shopping_list = create_shopping_list(session, monday, body.name, "custom")
        return ShoppingListOut(
            id=shopping_list.id,
            week_start=shopping_list.week_start,
            name=shopping_list.name,
            list_type=shopping_list.list_type,
            items=[],
        )


@router.delete("/lists/{list_id}")
def remove_list(list_id: str) -> dict:
    with get_session() as session:
        delete_shopping_list(session, list_id)
    return {"ok": True}


@router.post("/lists/{list_id}/items", response_model=ShoppingItemOut, status_code=201)
def post_item(list_id: str, body: ShoppingItemCreate) -> ShoppingItemOut:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        item = _manager(session, board).add_item(
            list_id,
            NewItem(name=body.name, quantity=body.quantity, unit=body.unit, category=body.category),
        )
        return _item_out(item)


@router.patch("/lists/{list_id}/items/{item_id}", response_model=ShoppingItemOut)
def patch_item(list_id: str, item_id: str, body: QuantityUpdate) -> ShoppingItemOut:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        return _item_out(_manager(session, board).update_quantity(list_id, item_id, body.quantity))


@router.post("/lists/{list_id}/items/{item_id}/toggle", response_model=ShoppingItemOut)
def toggle_item(list_id: str, item_id: str) -> ShoppingItemOut:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        return _item_out(_manager(session, board).toggle_on_hand(list_id, item_id))


@router.post("/lists/{list_id}/items/{item_id}/delete", response_model=ShoppingItemOut)
def delete_item(list_id: str, item_id: str) -> ShoppingItemOut:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        return _item_out(_manager(session, board).soft_delete(list_id, item_id))


@router.post("/lists/{list_id}/items/{item_id}/restore", response_model=ShoppingItemOut)
def restore_item(list_id: str, item_id: str) -> ShoppingItemOut:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        return _item_out(_manager(session, board).restore(list_id, item_id))


@router.post("/lists/{list_id}/items/{item_id}/move", response_model=ShoppingItemOut)
def move_item(list_id: str, item_id: str, body: MoveRequest) -> ShoppingItemOut:
    """Returns the item as it now stands in the destination list."""
    with get_session() as session:
        board = _board_for_list(session, list_id)
        return _item_out(_manager(session, board).move(list_id, item_id, body.to_list_id))


@router.post("/lists/{list_id}/quick-lists/{quick_list_id}", response_model=ShoppingListOut)
def apply_quick_list(list_id: str, quick_list_id: str) -> ShoppingListOut:
    with get_session() as session:
        board = _board_for_list(session, list_id)
        quick_list, items = get_quick_list(session, quick_list_id)
        _manager(session, board).add_quick_list(quick_list_template(quick_list, items), list_id)
        return _list_out(board, list_id)
