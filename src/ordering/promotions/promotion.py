"""Promotion codes: aggregate, repository and evaluator.

A promotion is either a percentage of the amount (optionally capped by
``max_discount``) or a fixed amount off. It applies only inside its
validity window, while active, below its usage limit and above its minimum
purchase.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol

import structlog
from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering

logger = structlog.get_logger(__name__)


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str | None) -> str | None:
    """Trim and upper-case a submitted code; blank codes become None."""
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


@ordering.aggregate
class Promotion:
    code = String(required=True, max_length=50)
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    min_purchase = Float()
    max_discount = Float()
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    usage_limit = Integer()
    usage_count = Integer(default=0)
    is_active = Boolean(default=True)

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValidationError({"valid_until": ["Promotion must end after it starts"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        valid_from,
        valid_until,
        min_purchase=None,
        max_discount=None,
        usage_limit=None,
    ):
        normalized = normalize_code(code)
        if normalized is None:
            raise ValidationError({"code": ["Promotion code cannot be blank"]})

        return cls(
            code=normalized,
            discount_type=DiscountType(discount_type).value,
            discount_value=discount_value,
            min_purchase=min_purchase,
            max_discount=max_discount,
            valid_from=valid_from,
            valid_until=valid_until,
            usage_limit=usage_limit,
            usage_count=0,
            is_active=True,
        )

    def rejection_reason(self, amount, at):
        """Why the promotion cannot apply to ``amount`` at ``at``, or None."""
        if not self.is_active:
            return "inactive"
        if at < self.valid_from or at > self.valid_until:
            return "expired"
        if self.usage_limit and (self.usage_count or 0) >= self.usage_limit:
            return "exhausted"
        if self.min_purchase and amount < self.min_purchase:
            return "below_minimum_purchase"
        return None

    def discount_for(self, amount):
        if DiscountType(self.discount_type) == DiscountType.PERCENTAGE:
            discount = amount * self.discount_value / 100
            if self.max_discount:
                discount = min(discount, self.max_discount)
            return discount
        return self.discount_value

    def record_usage(self):
        self.usage_count = (self.usage_count or 0) + 1


@ordering.repository(part_of=Promotion)
class PromotionRepository:
    def find_active_by_code(self, code: str) -> Promotion | None:
        results = self._dao.query.filter(code=code, is_active=True).all().items
        return results[0] if results else None


@dataclass(frozen=True)
class PromotionEvaluation:
    valid: bool
    discount: float = 0.0
    promotion_id: str | None = None
    reason: str | None = None


class PromotionEvaluator(Protocol):
    def evaluate(self, code: str, amount: float) -> PromotionEvaluation: ...

    def increment_usage(self, promotion_id: str) -> None: ...


class RepositoryPromotionEvaluator:
    """Evaluates codes against the Promotion aggregates of the current domain."""

    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(UTC))

    def evaluate(self, code: str, amount: float) -> PromotionEvaluation:
        normalized = normalize_code(code)
        if normalized is None:
            return PromotionEvaluation(valid=False, reason="unknown_code")

        try:
            promotion = current_domain.repository_for(Promotion).find_active_by_code(normalized)
        except Exception as exc:
            logger.error("Promotion lookup failed", code=normalized, error=str(exc))
            return PromotionEvaluation(valid=False, reason="evaluation_failed")

        if promotion is None:
            return PromotionEvaluation(valid=False, reason="unknown_code")

        reason = promotion.rejection_reason(amount, self._clock())
        if reason is not None:
            logger.info("Promotion rejected", code=normalized, reason=reason, amount=amount)
            return PromotionEvaluation(valid=False, promotion_id=str(promotion.id), reason=reason)

        return PromotionEvaluation(
            valid=True,
            discount=promotion.discount_for(amount),
            promotion_id=str(promotion.id),
        )

    def increment_usage(self, promotion_id: str) -> None:
        repo = current_domain.repository_for(Promotion)
        try:
            promotion = repo.get(promotion_id)
        except ObjectNotFoundError:
            logger.warning("Promotion vanished before usage was recorded", promotion_id=promotion_id)
            return
        promotion.record_usage()
        repo.add(promotion)
