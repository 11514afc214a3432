"""Tests for the order placement error taxonomy."""

from ordering.errors import (
    InsufficientStock,
    InvalidQuantity,
    OrderPlacementError,
    OrderValidationError,
    PersistenceFailure,
    ProductNotFound,
    TooManyItems,
    TotalTooHigh,
    TotalTooLow,
)


class TestHierarchy:
    def test_validation_errors(self):
        for error in (
            ProductNotFound("p"),
            InvalidQuantity("p", 51, 50),
            TooManyItems(51, 50),
            TotalTooLow(0.0, 0.01),
            TotalTooHigh(20000.0, 10000.0),
        ):
            assert isinstance(error, OrderValidationError)

    def test_conflict_and_persistence_are_not_validation_errors(self):
        assert not isinstance(InsufficientStock("p", 2, 1), OrderValidationError)
        assert not isinstance(PersistenceFailure("items_written"), OrderValidationError)
        assert isinstance(InsufficientStock("p", 2, 1), OrderPlacementError)
        assert isinstance(PersistenceFailure("items_written"), OrderPlacementError)


class TestPayloads:
    def test_insufficient_stock(self):
        assert InsufficientStock("prod-001", 3, 1).to_dict() == {
            "kind": "insufficient_stock",
            "message": "Insufficient stock for product prod-001: available 1, requested 3",
            "product_id": "prod-001",
            "requested": 3,
            "available": 1,
        }

    def test_invalid_quantity(self):
        payload = InvalidQuantity("prod-001", 51, 50).to_dict()
        assert payload["kind"] == "invalid_quantity"
        assert payload["quantity"] == 51
        assert payload["maximum"] == 50

    def test_persistence_failure_carries_cause(self):
        try:
            try:
                raise RuntimeError("disk full")
            except RuntimeError as exc:
                raise PersistenceFailure("header_written", "GC-1-ABCD") from exc
        except PersistenceFailure as failure:
            payload = failure.to_dict()

        assert payload["kind"] == "persistence_failure"
        assert payload["stage"] == "header_written"
        assert payload["order_number"] == "GC-1-ABCD"
        assert "disk full" in payload["cause"]

    def test_persistence_failure_without_cause(self):
        assert PersistenceFailure("items_written").payload()["cause"] is None
