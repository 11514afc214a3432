"""Server-side order totals.

Totals are computed exclusively from catalogue prices. Prices and totals
submitted by the client never enter the computation. Nothing here writes
anything, so computing totals can be repeated freely.
"""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from ordering.catalogue.lookup import CatalogPriceLookup
from ordering.config import CheckoutPolicy
from ordering.promotions.promotion import PromotionEvaluator, normalize_code

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedLineItem:
    product_id: str
    quantity: int
    authoritative_price: float

    @property
    def line_total(self) -> float:
        return self.authoritative_price * self.quantity


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    shipping: float
    discount: float
    total: float


@dataclass(frozen=True)
class PricedOrder:
    items: list[ResolvedLineItem]
    totals: OrderTotals
    promo_code: str | None = None
    promotion_id: str | None = None


def shipping_for(subtotal: float, policy: CheckoutPolicy) -> float:
    return 0.0 if subtotal >= policy.free_shipping_threshold else policy.shipping_fee


def compute_totals(
    items: Iterable,
    promo_code: str | None,
    *,
    lookup: CatalogPriceLookup,
    promotions: PromotionEvaluator | None,
    policy: CheckoutPolicy,
) -> PricedOrder:
    """Price ``items`` (objects with ``product_id`` and ``quantity``).

    Raises ProductNotFound if any product cannot be priced; in that case no
    partial totals are returned.
    """
    resolved = [
        ResolvedLineItem(
            product_id=str(item.product_id),
            quantity=item.quantity,
            authoritative_price=lookup.price_for(str(item.product_id)),
        )
        for item in items
    ]

    subtotal = sum(item.line_total for item in resolved)
    shipping = shipping_for(subtotal, policy)
    pre_discount_total = max(0.0, subtotal + shipping)

    discount = 0.0
    applied_code = None
    promotion_id = None

    code = normalize_code(promo_code)
    if code and promotions is not None:
        evaluation = promotions.evaluate(code, pre_discount_total)
        if evaluation.valid:
            discount = min(max(evaluation.discount, 0.0), pre_discount_total)
            applied_code = code
            promotion_id = evaluation.promotion_id
        else:
            logger.info("Promotion code not applied", promo_code=code, reason=evaluation.reason)

    total = max(0.0, pre_discount_total - discount)

    return PricedOrder(
        items=resolved,
        totals=OrderTotals(subtotal=subtotal, shipping=shipping, discount=discount, total=total),
        promo_code=applied_code,
        promotion_id=promotion_id,
    )
