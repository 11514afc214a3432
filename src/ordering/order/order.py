"""Order aggregate: the header record of a placed order.

Orders are written once by the placement service and only change status
afterwards. Money amounts are snapshotted at placement time; they are never
recomputed from the current catalogue.

Status flow:
    PENDING → CONFIRMED → SHIPPED → DELIVERED
    PENDING / CONFIRMED → CANCELLED
"""

import secrets
import string
import time
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, ValueObject

from ordering.domain import ordering


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_order_number(prefix: str = "GC") -> str:
    """``PREFIX-<base36 millisecond timestamp>-<4 random base36 chars>``."""
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{prefix}-{timestamp}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class OrderTotals:
    """Server-computed money summary. ``total = max(0, subtotal + shipping - discount)``."""

    subtotal = Float(default=0.0)
    shipping = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)


@ordering.value_object(part_of="Order")
class ShippingSnapshot:
    """Contact and delivery details as submitted at checkout."""

    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    email = String(required=True, max_length=255)
    phone = String(max_length=50)
    address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@ordering.value_object(part_of="Order")
class Attribution:
    utm_source = String(max_length=255)
    utm_medium = String(max_length=255)
    utm_campaign = String(max_length=255)
    utm_term = String(max_length=255)
    utm_content = String(max_length=255)
    referrer = String(max_length=1000)
    landing_page = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    owner_id = Identifier()  # Nullable for guest checkout
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    totals = ValueObject(OrderTotals)
    shipping = ValueObject(ShippingSnapshot)
    attribution = ValueObject(Attribution)
    promo_code = String(max_length=50)
    legal_consent_at = DateTime()
    legal_consent_version = String(max_length=20)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        order_number,
        owner_id,
        totals,
        shipping,
        promo_code=None,
        attribution=None,
        legal_consent_version=None,
    ):
        """Build a pending order header.

        Args:
            totals: dict with subtotal, shipping, discount, total.
            shipping: dict of ShippingSnapshot fields.
            attribution: optional dict of Attribution fields.
            legal_consent_version: set when the buyer accepted the terms.
        """
        now = datetime.now(UTC)
        return cls(
            order_number=order_number,
            owner_id=owner_id,
            status=OrderStatus.PENDING.value,
            totals=OrderTotals(**totals),
            shipping=ShippingSnapshot(**shipping),
            attribution=Attribution(**attribution) if attribution else None,
            promo_code=promo_code,
            legal_consent_at=now if legal_consent_version else None,
            legal_consent_version=legal_consent_version,
            created_at=now,
            updated_at=now,
        )

    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def cancel(self, reason):
        self._assert_can_transition(OrderStatus.CANCELLED)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = datetime.now(UTC)


@ordering.repository(part_of=Order)
class OrderRepository:
    def for_owner(self, owner_id) -> list[Order]:
        """All orders of an owner, newest first."""
        return self._dao.query.filter(owner_id=str(owner_id)).order_by("-created_at").limit(None).all().items

    def count_for_owner(self, owner_id) -> int:
        return self._dao.query.filter(owner_id=str(owner_id)).all().total
