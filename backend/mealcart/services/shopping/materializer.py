"""Turn aggregated and stored items into per-list views, plus the grouping views the UI renders."""

from typing import Dict, Iterable, List, Mapping, Optional

from mealcart.services.shopping.models import (
    FALLBACK_CATEGORY,
    GROCERY_CATEGORIES,
    AggregatedItemMarker,
    AggregatedShoppingItem,
    IngredientKey,
    ShoppingListItem,
    ShoppingListSnapshot,
)

AGGREGATING_LIST_TYPES = ("weekly",)


def receives_aggregated(shopping_list: ShoppingListSnapshot) -> bool:
    return shopping_list.list_type in AGGREGATING_LIST_TYPES


def _virtual_item(
    item: AggregatedShoppingItem, list_id: str, marker: Optional[AggregatedItemMarker]
) -> ShoppingListItem:
    view = ShoppingListItem(
        id=item.id,
        list_id=list_id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category=item.category,
        is_checked=item.is_on_hand,
        source_recipe_ids=list(item.source_recipe_ids),
        is_aggregated=True,
    )
    if marker is not None:
        view.is_checked = marker.is_checked
        view.is_deleted = marker.is_deleted
        view.deleted_at = marker.deleted_at
        view.moved_to_list_id = marker.moved_to_list_id
    return view


def materialize(
    aggregated: Iterable[AggregatedShoppingItem],
    stored_items: Iterable[ShoppingListItem],
    shopping_list: ShoppingListSnapshot,
    markers: Optional[Mapping[IngredientKey, AggregatedItemMarker]] = None,
) -> List[ShoppingListItem]:
    """
    Build the full item view of one list.
    Weekly lists get the aggregated entries first, then their own stored items.
    Midweek and custom lists only ever show their own stored items.
    Deleted and moved entries are kept in the view; use active_items() to hide them.
    """
    own = [item for item in stored_items if item.list_id == shopping_list.id]
    if not receives_aggregated(shopping_list):
        return own
    markers = markers or {}
    virtual = [_virtual_item(item, shopping_list.id, markers.get(item.key)) for item in aggregated]
    return virtual + own


def active_items(items: Iterable[ShoppingListItem]) -> List[ShoppingListItem]:
    return [item for item in items if not item.is_deleted and item.moved_to_list_id is None]


def category_for(category: Optional[str]) -> str:
    return category if category in GROCERY_CATEGORIES else FALLBACK_CATEGORY


def group_by_category(items: Iterable[ShoppingListItem]) -> Dict[str, List[ShoppingListItem]]:
    """Partition items over the fixed category set, in display order. Empty groups are omitted."""
    buckets: Dict[str, List[ShoppingListItem]] = {c: [] for c in GROCERY_CATEGORIES}
    for item in items:
        buckets[category_for(item.category)].append(item)
    return {c: group for c, group in buckets.items() if group}


def group_by_recipe(items: Iterable[ShoppingListItem]) -> Dict[Optional[str], List[ShoppingListItem]]:
    """
    Group items under each contributing recipe id.
    This fans out rather than partitions: an item from N recipes appears in N groups.
    Items without provenance (manual) are grouped under None.
    """
    groups: Dict[Optional[str], List[ShoppingListItem]] = {}
    for item in items:
        if not item.source_recipe_ids:
            groups.setdefault(None, []).append(item)
            continue
        for recipe_id in dict.fromkeys(item.source_recipe_ids):
            groups.setdefault(recipe_id, []).append(item)
    return groups
