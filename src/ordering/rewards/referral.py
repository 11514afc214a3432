"""Referral rewards.

A referral is tracked when a referred customer signs up with a referral
code. The referral completes on the referred customer's first order, provided
the order total reaches the minimum; both parties then receive points.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.config import RewardPolicy
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.rewards.loyalty import award_loyalty_points

logger = structlog.get_logger(__name__)


class ReferralStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@ordering.aggregate
class Referral:
    referrer_id = Identifier(required=True)
    referred_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    status = String(choices=ReferralStatus, default=ReferralStatus.PENDING.value)
    referrer_reward_points = Integer(default=0)
    referred_reward_points = Integer(default=0)
    first_order_id = Identifier()
    rewarded_at = DateTime()
    created_at = DateTime()

    @classmethod
    def create(cls, referrer_id, referred_id, code):
        if str(referrer_id) == str(referred_id):
            raise ValidationError({"referred_id": ["A customer cannot refer themselves"]})
        return cls(
            referrer_id=referrer_id,
            referred_id=referred_id,
            code=code.strip().upper(),
            status=ReferralStatus.PENDING.value,
            created_at=datetime.now(UTC),
        )

    def complete(self, order_id, referrer_points, referred_points):
        if ReferralStatus(self.status) != ReferralStatus.PENDING:
            raise ValidationError({"status": [f"Cannot complete a {self.status} referral"]})
        self.status = ReferralStatus.COMPLETED.value
        self.first_order_id = order_id
        self.referrer_reward_points = referrer_points
        self.referred_reward_points = referred_points
        self.rewarded_at = datetime.now(UTC)


@ordering.repository(part_of=Referral)
class ReferralRepository:
    def pending_for(self, referred_id) -> Referral | None:
        results = self._dao.query.filter(
            referred_id=str(referred_id),
            status=ReferralStatus.PENDING.value,
        ).all().items
        return results[0] if results else None


def process_referral_reward(order_id, user_id, amount, policy: RewardPolicy | None = None) -> bool:
    """Complete the pending referral of ``user_id`` if this is their first order.

    Returns True when rewards were granted.
    """
    policy = policy or RewardPolicy()

    previous_orders = [
        order for order in current_domain.repository_for(Order).for_owner(user_id) if str(order.id) != str(order_id)
    ]
    if previous_orders:
        return False

    if amount < policy.min_order_total_for_referral:
        logger.info("Order total below referral reward minimum", user_id=str(user_id), order_total=amount)
        return False

    repo = current_domain.repository_for(Referral)
    referral = repo.pending_for(user_id)
    if referral is None:
        return False

    referral.complete(
        order_id=str(order_id),
        referrer_points=policy.referrer_reward_points,
        referred_points=policy.referred_reward_points,
    )
    repo.add(referral)

    award_loyalty_points(
        referral.referrer_id,
        order_id,
        policy.referrer_reward_points,
        f"Referral reward: {referral.code}",
        policy=policy,
    )
    award_loyalty_points(
        user_id,
        order_id,
        policy.referred_reward_points,
        f"Welcome referral reward: {referral.code}",
        policy=policy,
    )

    logger.info(
        "Referral reward granted",
        referrer_id=str(referral.referrer_id),
        referred_id=str(user_id),
        order_id=str(order_id),
        points=policy.referrer_reward_points,
    )
    return True
