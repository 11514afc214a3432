"""Outcomes of a failed order placement.

The set is closed: callers can branch on the concrete class (or on the
``kind`` tag when the error crosses a process boundary) instead of parsing
messages. Every error carries the data that explains it.

    OrderPlacementError
    ├── OrderValidationError   no persistence happened
    │   ├── ProductNotFound
    │   ├── InvalidQuantity
    │   ├── TooManyItems
    │   ├── TotalTooLow
    │   └── TotalTooHigh
    ├── InsufficientStock      conflict; rolled back if raised after the header
    └── PersistenceFailure     storage error; rollback was attempted

A request that does not fit the request schema at all (missing fields,
oversized strings) is rejected by ``pydantic.ValidationError`` before any
of these can arise.
"""


class OrderPlacementError(Exception):
    kind = "order_placement_error"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": str(self), **self.payload()}

    def payload(self) -> dict:
        return {}


class OrderValidationError(OrderPlacementError):
    """The request can only succeed if it is changed."""


class ProductNotFound(OrderValidationError):
    kind = "product_not_found"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")

    def payload(self) -> dict:
        return {"product_id": self.product_id}


class InvalidQuantity(OrderValidationError):
    kind = "invalid_quantity"

    def __init__(self, product_id: str, quantity, maximum: int):
        self.product_id = product_id
        self.quantity = quantity
        self.maximum = maximum
        super().__init__(f"Invalid quantity {quantity} for product {product_id} (maximum: {maximum})")

    def payload(self) -> dict:
        return {"product_id": self.product_id, "quantity": self.quantity, "maximum": self.maximum}


class TooManyItems(OrderValidationError):
    kind = "too_many_items"

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(f"Too many items in order: {count} (maximum: {maximum})")

    def payload(self) -> dict:
        return {"count": self.count, "maximum": self.maximum}


class TotalTooLow(OrderValidationError):
    kind = "total_too_low"

    def __init__(self, total: float, minimum: float):
        self.total = total
        self.minimum = minimum
        super().__init__(f"Order total too low: {total} (minimum: {minimum})")

    def payload(self) -> dict:
        return {"total": self.total, "minimum": self.minimum}


class TotalTooHigh(OrderValidationError):
    kind = "total_too_high"

    def __init__(self, total: float, maximum: float):
        self.total = total
        self.maximum = maximum
        super().__init__(f"Order total too high: {total} (maximum: {maximum}). Contact support for large orders.")

    def payload(self) -> dict:
        return {"total": self.total, "maximum": self.maximum}


class InsufficientStock(OrderPlacementError):
    """Retryable only after re-reading availability."""

    kind = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: available {available}, requested {requested}"
        )

    def payload(self) -> dict:
        return {"product_id": self.product_id, "requested": self.requested, "available": self.available}


class PersistenceFailure(OrderPlacementError):
    """A storage write failed; ``__cause__`` holds the original error."""

    kind = "persistence_failure"

    def __init__(self, stage: str, order_number: str | None = None):
        self.stage = stage
        self.order_number = order_number
        super().__init__(f"Order persistence failed at stage {stage}")

    def payload(self) -> dict:
        cause = self.__cause__
        return {
            "stage": self.stage,
            "order_number": self.order_number,
            "cause": repr(cause) if cause is not None else None,
        }
