from mealcart.services.shopping.models import IngredientKey


def normalize(name: str, unit: str) -> IngredientKey:
    """Map a raw (name, unit) pair to its aggregation key.

    The name is trimmed and lowercased; the unit is kept verbatim, so
    "flour"/"g" and "flour"/"cup" stay separate items. No unit conversion.
    """
    return IngredientKey(name=(name or "").strip().lower(), unit=unit or "")
