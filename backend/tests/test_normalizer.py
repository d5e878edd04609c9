from mealcart.services.shopping.models import IngredientKey
from mealcart.services.shopping.normalizer import normalize


def test_normalize_lowercases_and_trims_name():
    assert normalize("  Ground Beef ", "g") == IngredientKey(name="ground beef", unit="g")


def test_normalize_ignores_name_case():
    assert normalize("MILK", "gallon") == normalize("milk", "gallon") == normalize("Milk", "gallon")


def test_normalize_keeps_units_distinct():
    assert normalize("flour", "g") != normalize("flour", "cup")
    # units are compared verbatim
    assert normalize("flour", "G") != normalize("flour", "g")


def test_normalize_handles_missing_unit():
    assert normalize("Eggs", None) == IngredientKey(name="eggs", unit="")


def test_key_has_no_separator_collisions():
    a = normalize("salt-", "pepper")
    b = normalize("salt", "-pepper")
    assert a != b
    assert a.virtual_id != b.virtual_id


def test_virtual_id_is_stable():
    assert normalize("Onion", "").virtual_id == normalize("onion ", "").virtual_id
    assert normalize("onion", "").virtual_id.startswith("agg-")
