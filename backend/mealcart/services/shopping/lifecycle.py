"""
Item lifecycle operations: check off, soft-delete/restore, move, add.

Every operation validates against the board, hands the changed rows to the
store, and only touches the board once the store has accepted them. A store
failure therefore leaves the derived views exactly as they were.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from mealcart.errors import InvalidStateTransition, ValidationFailure
from mealcart.logging import get_logger
from mealcart.services.shopping.board import ShoppingBoard
from mealcart.services.shopping.models import (
    FALLBACK_CATEGORY,
    AggregatedItemMarker,
    IngredientKey,
    ItemState,
    NewItem,
    QuickListTemplate,
    ShoppingListItem,
)
from mealcart.services.shopping.normalizer import normalize

logger = get_logger(__name__)


class ItemStore(Protocol):
    def save(self, items: List[ShoppingListItem], markers: List[AggregatedItemMarker]) -> None:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _union(first: Iterable[str], second: Iterable[str]) -> List[str]:
    return list(dict.fromkeys([*first, *second]))


class ItemLifecycleManager:
    def __init__(
        self,
        board: ShoppingBoard,
        store: Optional[ItemStore] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.board = board
        self.store = store
        self.clock = clock

    def _commit(
        self,
        items: Iterable[ShoppingListItem] = (),
        markers: Iterable[AggregatedItemMarker] = (),
    ) -> None:
        items = list(items)
        markers = list(markers)
        if self.store is not None:
            self.store.save(items, markers)
        self.board.apply(items, markers)

    def _require(self, operation: str, item: ShoppingListItem, *allowed: ItemState) -> None:
        if item.state not in allowed:
            raise InvalidStateTransition(operation, item.id, item.state.value)

    def _marker_for(self, item: ShoppingListItem) -> AggregatedItemMarker:
        key = self.board.aggregated_item(item.id).key
        existing = self.board.markers.get((item.list_id, key))
        if existing is not None:
            return replace(existing)
        return AggregatedItemMarker(week_start=self.board.week_start, list_id=item.list_id, key=key)

    def _stored(self, item: ShoppingListItem) -> ShoppingListItem:
        return self.board.items[item.id]

    def _find_equivalent(
        self, list_id: str, key: IngredientKey, pending: Dict[str, ShoppingListItem]
    ) -> Optional[ShoppingListItem]:
        candidates = list(pending.values()) + [i for i in self.board.items.values() if i.id not in pending]
        for item in candidates:
            if item.list_id != list_id or item.state is not ItemState.ACTIVE:
                continue
            if normalize(item.name, item.unit) == key:
                return item
        return None

    def _merge_or_create(
        self,
        list_id: str,
        new: NewItem,
        pending: Optional[Dict[str, ShoppingListItem]] = None,
        is_checked: bool = False,
        ingredient_id: Optional[str] = None,
    ) -> ShoppingListItem:
        pending = pending if pending is not None else {}
        existing = self._find_equivalent(list_id, normalize(new.name, new.unit), pending)
        if existing is not None:
            merged = replace(
                existing,
                quantity=existing.quantity + new.quantity,
                source_recipe_ids=_union(existing.source_recipe_ids, new.source_recipe_ids),
            )
            pending[merged.id] = merged
            logger.info(
                "shopping.item.merged id=%s list=%s quantity=%s",
                merged.id,
                list_id,
                merged.quantity,
            )
            return merged
        created = ShoppingListItem(
            id=str(uuid.uuid4()),
            list_id=list_id,
            name=new.name.strip(),
            quantity=new.quantity,
            unit=new.unit,
            category=new.category or FALLBACK_CATEGORY,
            is_checked=is_checked,
            source_recipe_ids=list(new.source_recipe_ids),
            ingredient_id=ingredient_id,
        )
        pending[created.id] = created
        return created

    @staticmethod
    def _validate(new: NewItem) -> None:
        if not (new.name or "").strip():
            raise ValidationFailure("item name must not be empty")
        if new.quantity is None or new.quantity < 0:
            raise ValidationFailure(f"quantity must be >= 0, got {new.quantity}")

    def add_item(self, list_id: str, new: NewItem) -> ShoppingListItem:
        """Add to a list, merging into an equivalent active item when one exists."""
        self.board.get_list(list_id)
        self._validate(new)
        item = self._merge_or_create(list_id, new)
        self._commit(items=[item])
        logger.info("shopping.item.added id=%s list=%s", item.id, list_id)
        return self.board.items[item.id]

    def add_quick_list(self, template: QuickListTemplate, list_id: str) -> List[ShoppingListItem]:
        """Copy every template line into the list through merge-on-add."""
        self.board.get_list(list_id)
        for line in template.items:
            self._validate(line)
        pending: Dict[str, ShoppingListItem] = {}
        for line in template.items:
            self._merge_or_create(list_id, line, pending)
        self._commit(items=pending.values())
        logger.info(
            "shopping.quick_list.applied quick_list=%s list=%s lines=%s rows=%s",
            template.id,
            list_id,
            len(template.items),
            len(pending),
        )
        return [self.board.items[item_id] for item_id in pending]

    def update_quantity(self, list_id: str, item_id: str, quantity: float) -> ShoppingListItem:
        item = self.board.find_item(list_id, item_id)
        self._require("update", item, ItemState.ACTIVE)
        if item.is_aggregated:
            raise ValidationFailure("aggregated quantities follow the meal plan and cannot be edited")
        if quantity is None or quantity < 0:
            raise ValidationFailure(f"quantity must be >= 0, got {quantity}")
        self._commit(items=[replace(self._stored(item), quantity=quantity)])
        return self.board.find_item(list_id, item_id)

    def toggle_on_hand(self, list_id: str, item_id: str) -> ShoppingListItem:
        item = self.board.find_item(list_id, item_id)
        self._require("toggle", item, ItemState.ACTIVE)
        if item.is_aggregated:
            marker = self._marker_for(item)
            marker.is_checked = not item.is_checked
            self._commit(markers=[marker])
        else:
            self._commit(items=[replace(self._stored(item), is_checked=not item.is_checked)])
        logger.info("shopping.item.toggled id=%s list=%s checked=%s", item_id, list_id, not item.is_checked)
        return self.board.find_item(list_id, item_id)

    def soft_delete(self, list_id: str, item_id: str) -> ShoppingListItem:
        item = self.board.find_item(list_id, item_id)
        if item.state is ItemState.DELETED:
            return item
        self._require("delete", item, ItemState.ACTIVE)
        now = self.clock()
        if item.is_aggregated:
            marker = self._marker_for(item)
            marker.is_deleted = True
            marker.deleted_at = now
            self._commit(markers=[marker])
        else:
            self._commit(items=[replace(self._stored(item), is_deleted=True, deleted_at=now)])
        logger.info("shopping.item.deleted id=%s list=%s", item_id, list_id)
        return self.board.find_item(list_id, item_id)

    def restore(self, list_id: str, item_id: str) -> ShoppingListItem:
        item = self.board.find_item(list_id, item_id)
        self._require("restore", item, ItemState.DELETED)
        if item.is_aggregated:
            marker = self._marker_for(item)
            marker.is_deleted = False
            marker.deleted_at = None
            self._commit(markers=[marker])
        else:
            self._commit(items=[replace(self._stored(item), is_deleted=False, deleted_at=None)])
        logger.info("shopping.item.restored id=%s list=%s", item_id, list_id)
        return self.board.find_item(list_id, item_id)

    def move(self, list_id: str, item_id: str, to_list_id: str) -> ShoppingListItem:
        """
        Move an item to another list of the same week.
        The destination gets a new active instance (or an equivalent item grows);
        the source is marked moved, never deleted. Returns the destination item.
        """
        self.board.get_list(to_list_id)
        item = self.board.find_item(list_id, item_id)
        self._require("move", item, ItemState.ACTIVE)
        if to_list_id == list_id:
            return item
        new = NewItem(
            name=item.name,
            quantity=item.quantity,
            unit=item.unit,
            category=item.category,
            source_recipe_ids=list(item.source_recipe_ids),
        )
        dest = self._merge_or_create(to_list_id, new, is_checked=item.is_checked, ingredient_id=item.ingredient_id)
        if item.is_aggregated:
            marker = self._marker_for(item)
            marker.moved_to_list_id = to_list_id
            self._commit(items=[dest], markers=[marker])
        else:
            source = replace(self._stored(item), moved_to_list_id=to_list_id)
            self._commit(items=[dest, source])
        logger.info(
            "shopping.item.moved id=%s from_list=%s to_list=%s dest_id=%s",
            item_id,
            list_id,
            to_list_id,
            dest.id,
        )
        return self.board.items[dest.id]
