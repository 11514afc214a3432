"""Loyalty points: one point per currency unit spent.

Every credit is recorded as a LoyaltyTransaction (expiring after a year)
and accumulated on the owner's LoyaltyAccount, whose tier follows the
running total:

    bronze < 100 ≤ silver < 500 ≤ gold < 1000 ≤ platinum
"""

import math
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.config import RewardPolicy
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


class LoyaltyTier(Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class TransactionKind(Enum):
    EARNED = "earned"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


_TIER_THRESHOLDS = [
    (1000, LoyaltyTier.PLATINUM),
    (500, LoyaltyTier.GOLD),
    (100, LoyaltyTier.SILVER),
]


def tier_for(points: int) -> LoyaltyTier:
    for threshold, tier in _TIER_THRESHOLDS:
        if points >= threshold:
            return tier
    return LoyaltyTier.BRONZE


def points_for(amount: float) -> int:
    """Whole points for an amount, halves rounded up."""
    return math.floor(amount + 0.5)


@ordering.aggregate
class LoyaltyAccount:
    user_id = Identifier(identifier=True, required=True)
    total_points = Integer(default=0)
    tier = String(choices=LoyaltyTier, default=LoyaltyTier.BRONZE.value)
    updated_at = DateTime()

    def credit(self, points):
        self.total_points = (self.total_points or 0) + points
        self.tier = tier_for(self.total_points).value
        self.updated_at = datetime.now(UTC)


@ordering.aggregate
class LoyaltyTransaction:
    user_id = Identifier(required=True)
    order_id = Identifier()
    points = Integer(required=True)
    kind = String(choices=TransactionKind, default=TransactionKind.EARNED.value)
    description = String(max_length=255)
    created_at = DateTime()
    expires_at = DateTime()


def award_loyalty_points(user_id, order_id, amount, reason, policy: RewardPolicy | None = None) -> int:
    """Credit points for ``amount`` to ``user_id``; returns the points credited."""
    policy = policy or RewardPolicy()
    points = points_for(amount)
    if points <= 0:
        return 0

    now = datetime.now(UTC)
    current_domain.repository_for(LoyaltyTransaction).add(
        LoyaltyTransaction(
            user_id=str(user_id),
            order_id=str(order_id) if order_id else None,
            points=points,
            kind=TransactionKind.EARNED.value,
            description=reason,
            created_at=now,
            expires_at=now + timedelta(days=policy.points_expiry_days),
        )
    )

    repo = current_domain.repository_for(LoyaltyAccount)
    try:
        account = repo.get(str(user_id))
    except ObjectNotFoundError:
        account = LoyaltyAccount(user_id=str(user_id))
    account.credit(points)
    repo.add(account)

    logger.info(
        "Loyalty points added",
        user_id=str(user_id),
        order_id=str(order_id),
        points=points,
        new_total_points=account.total_points,
    )
    return points
