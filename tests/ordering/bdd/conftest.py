"""Shared BDD fixtures and step definitions for order placement."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from ordering.order.order import Order
from ordering.promotions.promotion import DiscountType, Promotion


@pytest.fixture
def outcome():
    """Holds the summary or the error of the last placement attempt."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{product_id}" priced at {price:f} with {stock:d} units in stock'))
def _(add_product, product_id, price, stock):
    add_product(product_id, price=price, stock=stock)


@given(parsers.cfparse('an active {percent:d} percent promotion "{code}"'))
def _(percent, code):
    now = datetime.now(UTC)
    promotion = Promotion.create(
        code=code,
        discount_type=DiscountType.PERCENTAGE.value,
        discount_value=float(percent),
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
    )
    current_domain.repository_for(Promotion).add(promotion)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total:f}"))
def _(outcome, total):
    assert "error" not in outcome, outcome.get("error")
    assert outcome["summary"].total == pytest.approx(total)


@then(parsers.cfparse('the order status is "{status}"'))
def _(outcome, status):
    assert outcome["summary"].status == status


@then(parsers.cfparse('the order is rejected with "{kind}"'))
def _(outcome, kind):
    assert outcome["error"].kind == kind


@then(parsers.cfparse('"{product_id}" has {stock:d} units in stock'))
def _(ledger, product_id, stock):
    assert ledger.available(product_id) == stock


@then("no order was written")
def _():
    assert current_domain.repository_for(Order)._dao.query.all().items == []
