"""Error taxonomy for shopping-list operations. Mapped to HTTP responses in mealcart.main."""


class ShoppingError(Exception):
    code = "SHOPPING_ERROR"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


class UnknownReferenceError(ShoppingError):
    """An operation named a list, item, recipe or meal that does not exist."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, ref_id: object):
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"{kind} with id {ref_id} not found")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "kind": self.kind, "id": str(self.ref_id)}


class InvalidStateTransition(ShoppingError):
    """The item exists but its current state does not allow the operation."""

    code = "INVALID_STATE"

    def __init__(self, operation: str, item_id: str, current_state: str):
        self.operation = operation
        self.item_id = item_id
        self.current_state = current_state
        super().__init__(f"cannot {operation} item {item_id} while it is {current_state}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "item_id": self.item_id, "current_state": self.current_state}


class ValidationFailure(ShoppingError):
    code = "VALIDATION_ERROR"


class PersistenceFailure(ShoppingError):
    """The storage round-trip backing a mutation failed; nothing was applied."""

    code = "DATABASE_ERROR"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": "A database error occurred."}
