"""Read-side helpers for placed orders."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.line_item import OrderLineItem
from ordering.order.order import Order


def get_order(order_id, owner_id=None) -> Order | None:
    """Fetch an order, optionally scoped to its owner.

    Returns None when the order does not exist or belongs to someone else.
    """
    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        return None

    if owner_id is not None and str(order.owner_id) != str(owner_id):
        return None
    return order


def list_orders_for_owner(owner_id) -> list[Order]:
    return current_domain.repository_for(Order).for_owner(owner_id)


def line_items_for_order(order_id) -> list[OrderLineItem]:
    return current_domain.repository_for(OrderLineItem).for_order(order_id)
