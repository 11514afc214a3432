"""Schedules the reward side effects of a placed order.

Rewards only apply to orders with an owner; guest orders get none. Each
reward is a separate post-commit task so that one failing does not stop
the others.
"""

import structlog

from ordering.config import RewardPolicy
from ordering.order.events import OrderPlaced
from ordering.order.post_commit import PostCommitQueue
from ordering.rewards.gamification import award_gamification
from ordering.rewards.loyalty import award_loyalty_points
from ordering.rewards.referral import process_referral_reward

logger = structlog.get_logger(__name__)


class RewardPipeline:
    def __init__(self, policy: RewardPolicy | None = None):
        self.policy = policy or RewardPolicy()

    def schedule(self, queue: PostCommitQueue, event: OrderPlaced) -> None:
        if not event.owner_id:
            logger.debug("Guest order, no rewards scheduled", order_number=event.order_number)
            return

        queue.enqueue(
            "loyalty_points",
            award_loyalty_points,
            event.owner_id,
            event.order_id,
            event.total,
            f"Points earned on order {event.order_number}",
            policy=self.policy,
        )
        queue.enqueue(
            "referral_reward",
            process_referral_reward,
            event.order_id,
            event.owner_id,
            event.total,
            policy=self.policy,
        )
        queue.enqueue(
            "gamification",
            award_gamification,
            event.owner_id,
            event.order_id,
            event.order_number,
            event.total,
            event.placed_at,
            policy=self.policy,
        )
