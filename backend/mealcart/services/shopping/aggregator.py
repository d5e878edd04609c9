from typing import Dict, Iterable, List

from mealcart.config import settings
from mealcart.services.shopping.models import AggregatedShoppingItem, ExpandedLine, IngredientKey


def aggregate(lines: Iterable[ExpandedLine], category: str | None = None) -> List[AggregatedShoppingItem]:
    """
    Merge expanded lines into one item per canonical key.
    Quantities are summed; source recipe ids are collected once each, in first-seen order.
    Output follows the first appearance of each key.
    """
    default_category = category or settings.aggregated_category
    grouped: Dict[IngredientKey, AggregatedShoppingItem] = {}
    for line in lines:
        item = grouped.get(line.key)
        if item is None:
            grouped[line.key] = AggregatedShoppingItem(
                key=line.key,
                name=line.name,
                quantity=line.quantity,
                unit=line.unit,
                category=default_category,
                source_recipe_ids=[line.source_recipe_id],
            )
            continue
        item.quantity += line.quantity
        if line.source_recipe_id not in item.source_recipe_ids:
            item.source_recipe_ids.append(line.source_recipe_id)
    return list(grouped.values())
