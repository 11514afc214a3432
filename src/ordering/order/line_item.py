"""Order line items.

Line items are stored as their own records, keyed by ``order_id``, so the
placement service can write and (on failure) remove them independently of
the order header. ``unit_price`` is the catalogue price frozen at placement.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer

from ordering.domain import ordering


@ordering.aggregate
class OrderLineItem:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True)

    @invariant.post
    def unit_price_must_be_positive(self):
        if self.unit_price is not None and self.unit_price <= 0:
            raise ValidationError({"unit_price": ["Unit price must be greater than zero"]})

    @property
    def line_total(self):
        return self.unit_price * self.quantity


@ordering.repository(part_of=OrderLineItem)
class OrderLineItemRepository:
    def for_order(self, order_id) -> list[OrderLineItem]:
        return self._dao.query.filter(order_id=str(order_id)).limit(None).all().items
