"""Structural fraud bounds, checked before any stock check or write."""

from collections.abc import Sequence

import structlog

from ordering.config import CheckoutPolicy
from ordering.errors import InvalidQuantity, TooManyItems, TotalTooHigh, TotalTooLow

logger = structlog.get_logger(__name__)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_order_bounds(items: Sequence, computed_total: float, policy: CheckoutPolicy) -> None:
    """Reject implausible orders. The first violated rule wins:

    1. every quantity is a positive integer no larger than the per-product cap
    2. the order has no more lines than the per-order cap
    3. the server-computed total lies within [min_order_total, max_order_total]
    """
    for item in items:
        if not _is_positive_int(item.quantity) or item.quantity > policy.max_quantity_per_product:
            logger.warning(
                "Quantity outside allowed range",
                product_id=str(item.product_id),
                requested=item.quantity,
                max=policy.max_quantity_per_product,
            )
            raise InvalidQuantity(str(item.product_id), item.quantity, policy.max_quantity_per_product)

    if len(items) > policy.max_items_per_order:
        logger.warning("Too many items in order", count=len(items), max=policy.max_items_per_order)
        raise TooManyItems(len(items), policy.max_items_per_order)

    if computed_total < policy.min_order_total:
        logger.warning("Order total too low", total=computed_total, min=policy.min_order_total)
        raise TotalTooLow(computed_total, policy.min_order_total)

    if computed_total > policy.max_order_total:
        logger.warning(
            "Order total too high (potential fraud)",
            total=computed_total,
            max=policy.max_order_total,
            fraud_signal=True,
        )
        raise TotalTooHigh(computed_total, policy.max_order_total)
