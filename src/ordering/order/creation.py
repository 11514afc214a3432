"""Order placement: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.placement import get_placement_service


def _decode(value):
    return json.loads(value) if isinstance(value, str) else value


@ordering.command(part_of="Order")
class PlaceOrder:
    items = Text(required=True)  # JSON: list of {product_id, quantity, price?}
    shipping = Text(required=True)  # JSON: shipping details dict
    owner_id = Identifier()  # None for guest checkout
    promo_code = String(max_length=50)
    total = Float()  # client-side total, logged only
    attribution = Text()  # JSON: attribution dict


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        request = {
            "items": _decode(command.items),
            "shipping": _decode(command.shipping),
            "promo_code": command.promo_code,
            "total": command.total,
            "attribution": _decode(command.attribution) if command.attribution else None,
        }
        return get_placement_service().create_order(request, owner_id=command.owner_id)
