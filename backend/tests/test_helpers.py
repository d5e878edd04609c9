from mealcart.errors import InvalidStateTransition, PersistenceFailure, UnknownReferenceError
from mealcart.utils.timing import format_duration, time_span


def test_format_duration():
    assert format_duration(750) == "750ms"
    assert format_duration(12500) == "12.5s"


def test_time_span_records_elapsed():
    with time_span("test.span", week="2024-03-04") as span:
        pass
    assert span.elapsed_ms is not None
    assert span.elapsed_ms >= 0


def test_error_payloads():
    assert UnknownReferenceError("shopping_list", "abc").to_dict() == {
        "code": "NOT_FOUND",
        "message": "shopping_list with id abc not found",
        "kind": "shopping_list",
        "id": "abc",
    }
    payload = InvalidStateTransition("restore", "item-1", "active").to_dict()
    assert payload["code"] == "INVALID_STATE"
    assert payload["current_state"] == "active"
    # driver details stay in the logs
    assert PersistenceFailure("database is locked").to_dict()["message"] == "A database error occurred."
