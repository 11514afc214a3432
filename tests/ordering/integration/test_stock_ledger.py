"""Integration tests for the SQL stock ledger."""

import pytest
from sqlalchemy.exc import IntegrityError

from ordering.errors import InsufficientStock, ProductNotFound


@pytest.mark.fast
class TestDecrement:
    def test_returns_new_stock(self, ledger, add_product):
        add_product("P1", stock=5)
        assert ledger.decrement("P1", 2) == 3
        assert ledger.available("P1") == 3

    def test_exact_stock_can_be_taken(self, ledger, add_product):
        add_product("P1", stock=2)
        assert ledger.decrement("P1", 2) == 0

    def test_insufficient_stock_changes_nothing(self, ledger, add_product):
        add_product("P1", stock=2)
        with pytest.raises(InsufficientStock) as exc_info:
            ledger.decrement("P1", 3)
        assert exc_info.value.available == 2
        assert exc_info.value.requested == 3
        assert ledger.available("P1") == 2

    def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFound):
            ledger.decrement("ghost", 1)
        assert ledger.available("ghost") is None

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_rejected(self, ledger, add_product, quantity):
        add_product("P1", stock=2)
        with pytest.raises(ValueError):
            ledger.decrement("P1", quantity)


@pytest.mark.fast
class TestRestore:
    def test_adds_stock_back(self, ledger, add_product):
        add_product("P1", stock=2)
        ledger.decrement("P1", 2)
        ledger.restore("P1", 2)
        assert ledger.available("P1") == 2

    def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFound):
            ledger.restore("ghost", 1)


@pytest.mark.fast
def test_table_rejects_negative_stock(catalogue):
    with pytest.raises(IntegrityError):
        catalogue.add_product("P1", "Broken", 1.0, stock=-1)
