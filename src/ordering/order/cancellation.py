"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.placement import get_placement_service
from ordering.stock.restoration import restore_order_stock

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        """Cancel the order and give its stock back.

        The cancellation stands even if some stock cannot be restored; the
        product ids that failed are returned so the caller can retry them.
        Raises ObjectNotFoundError for an unknown order and ValidationError
        when the order can no longer be cancelled.
        """
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(reason=command.reason)
        repo.add(order)

        failed = restore_order_stock(order.id, get_placement_service().ledger)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=command.reason,
            failed_restores=failed,
        )
        return failed
