"""Facts about committed orders, handed to post-commit work."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OrderPlaced:
    """An order was committed: header, line items and stock decrements all succeeded."""

    order_id: str
    order_number: str
    owner_id: str | None  # None for guest checkout
    total: float
    placed_at: datetime
    promotion_id: str | None = None
