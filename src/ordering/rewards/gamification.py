"""Gamification: points, levels and badges earned by placing orders.

Each order earns ``floor(total)`` points. Badges are unlocked once per
profile and carry their own point bonus:

    first_order   the owner's first order            +100
    power_buyer   the owner's Nth order (default 10) +500
    early_bird    order placed before the cutoff hour +150
    vip           profile reaches the VIP threshold  +2000

Level is ``points // points_per_level + 1``.
"""

import math
from datetime import UTC, datetime, timedelta, timezone
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, HasMany, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.config import RewardPolicy
from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

VIP_LEVEL = 11


class BadgeType(Enum):
    FIRST_ORDER = "first_order"
    POWER_BUYER = "power_buyer"
    EARLY_BIRD = "early_bird"
    VIP = "vip"


BADGE_POINTS = {
    BadgeType.FIRST_ORDER: 100,
    BadgeType.POWER_BUYER: 500,
    BadgeType.EARLY_BIRD: 150,
    BadgeType.VIP: 2000,
}


@ordering.entity(part_of="GamificationProfile")
class UnlockedBadge:
    badge_type = String(required=True, choices=BadgeType)
    order_id = Identifier()
    unlocked_at = DateTime()


@ordering.aggregate
class GamificationProfile:
    user_id = Identifier(identifier=True, required=True)
    total_points = Integer(default=0)
    badges = HasMany(UnlockedBadge)
    last_activity_at = DateTime()

    def level(self, points_per_level=1000):
        return (self.total_points or 0) // points_per_level + 1

    def has_badge(self, badge_type):
        return any(badge.badge_type == badge_type.value for badge in self.badges)

    def add_points(self, points):
        self.total_points = (self.total_points or 0) + points
        self.last_activity_at = datetime.now(UTC)

    def unlock_badge(self, badge_type, order_id=None):
        """Unlock a badge and credit its bonus. Returns False if already held."""
        if self.has_badge(badge_type):
            return False
        self.add_badges(
            UnlockedBadge(
                badge_type=badge_type.value,
                order_id=order_id,
                unlocked_at=datetime.now(UTC),
            )
        )
        self.add_points(BADGE_POINTS[badge_type])
        return True


def _local_hour(moment, utc_offset_hours):
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(timezone(timedelta(hours=utc_offset_hours))).hour


def award_gamification(
    user_id,
    order_id,
    order_number,
    total,
    placed_at,
    policy: RewardPolicy | None = None,
) -> list[str]:
    """Credit order points and unlock any earned badges; returns the unlocked badge types."""
    policy = policy or RewardPolicy()

    repo = current_domain.repository_for(GamificationProfile)
    try:
        profile = repo.get(str(user_id))
    except ObjectNotFoundError:
        profile = GamificationProfile(user_id=str(user_id))

    profile.add_points(math.floor(total))

    candidates = []
    order_count = current_domain.repository_for(Order).count_for_owner(user_id)
    if order_count == 1:
        candidates.append(BadgeType.FIRST_ORDER)
    elif order_count == policy.power_buyer_order_count:
        candidates.append(BadgeType.POWER_BUYER)
    if _local_hour(placed_at, policy.store_utc_offset_hours) < policy.early_bird_cutoff_hour:
        candidates.append(BadgeType.EARLY_BIRD)

    unlocked = [badge.value for badge in candidates if profile.unlock_badge(badge, order_id=str(order_id))]

    if profile.level(policy.points_per_level) >= VIP_LEVEL and profile.unlock_badge(
        BadgeType.VIP, order_id=str(order_id)
    ):
        unlocked.append(BadgeType.VIP.value)

    repo.add(profile)

    logger.info(
        "Gamification points awarded",
        user_id=str(user_id),
        order_number=order_number,
        points=math.floor(total),
        total_points=profile.total_points,
        badges_unlocked=unlocked,
    )
    return unlocked
