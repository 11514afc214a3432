"""Give back the stock held by an order's line items."""

import structlog
from protean.utils.globals import current_domain

from ordering.order.line_item import OrderLineItem
from ordering.stock.ledger import StockLedger

logger = structlog.get_logger(__name__)


def restore_order_stock(order_id, ledger: StockLedger) -> list[str]:
    """Restore stock for every line item of an order.

    Each line is restored independently. Failures are logged and returned as
    the list of product ids that could not be restored; they are not raised.
    """
    failed = []
    for item in current_domain.repository_for(OrderLineItem).for_order(order_id):
        try:
            ledger.restore(item.product_id, item.quantity)
        except Exception as exc:
            logger.error(
                "Failed to restore stock",
                order_id=str(order_id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                error=str(exc),
                exc_info=True,
            )
            failed.append(str(item.product_id))
    return failed
