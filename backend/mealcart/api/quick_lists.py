from fastapi import APIRouter

from mealcart.schemas.shopping import QuickListCreate, QuickListItemIn, QuickListItemOut, QuickListOut
from mealcart.storage.db import get_session
from mealcart.storage.models import QuickList, QuickListItem
from mealcart.storage.repositories import (
    add_quick_list_item,
    create_quick_list,
    delete_quick_list,
    get_quick_list,
    list_quick_lists,
    remove_quick_list_item,
    rename_quick_list,
    update_quick_list_item,
)

router = APIRouter(prefix="/quick-lists")


def _item_out(item: QuickListItem) -> QuickListItemOut:
    return QuickListItemOut(
        id=item.id,
        quick_list_id=item.quick_list_id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category=item.category,
    )


def _quick_list_out(quick_list: QuickList, items: list[QuickListItem]) -> QuickListOut:
    return QuickListOut(
        id=quick_list.id,
        name=quick_list.name,
        items=[_item_out(i) for i in items],
        created_at=quick_list.created_at,
        updated_at=quick_list.updated_at,
    )


@router.get("", response_model=list[QuickListOut])
def get_quick_lists() -> list[QuickListOut]:
    with get_session() as session:
        return [_quick_list_out(ql, items) for ql, items in list_quick_lists(session)]


@router.post("", response_model=QuickListOut, status_code=201)
def post_quick_list(body: QuickListCreate) -> QuickListOut:
    with get_session() as session:
        return _quick_list_out(create_quick_list(session, body.name), [])


@router.patch("/{quick_list_id}", response_model=QuickListOut)
def patch_quick_list(quick_list_id: str, body: QuickListCreate) -> QuickListOut:
    with get_session() as session:
        quick_list = rename_quick_list(session, quick_list_id, body.name)
        _, items = get_quick_list(session, quick_list_id)
        return _quick_list_out(quick_list, items)


@router.delete("/{quick_list_id}")
def remove_quick_list(quick_list_id: str) -> dict:
    with get_session() as session:
        delete_quick_list(session, quick_list_id)
    return {"ok": True}


@router.post("/{quick_list_id}/items", response_model=QuickListItemOut, status_code=201)
def post_quick_list_item(quick_list_id: str, body: QuickListItemIn) -> QuickListItemOut:
    with get_session() as session:
        item = add_quick_list_item(
            session,
            quick_list_id,
            QuickListItem(name=body.name.strip(), quantity=body.quantity, unit=body.unit, category=body.category),
        )
        return _item_out(item)


@router.put("/items/{item_id}", response_model=QuickListItemOut)
def put_quick_list_item(item_id: str, body: QuickListItemIn) -> QuickListItemOut:
    with get_session() as session:
        item = update_quick_list_item(session, item_id, body.name.strip(), body.quantity, body.unit, body.category)
        return _item_out(item)


@router.delete("/items/{item_id}")
def remove_item(item_id: str) -> dict:
    with get_session() as session:
        remove_quick_list_item(session, item_id)
    return {"ok": True}
