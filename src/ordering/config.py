"""Checkout and reward policies.

Amounts are in the store currency. Defaults match the production storefront;
each value can be overridden through ``CHECKOUT_*`` / ``REWARDS_*`` environment
variables, and a service may be handed its own policy instance (one per
tenant) instead of the environment-derived one.
"""

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


@dataclass(frozen=True)
class CheckoutPolicy:
    shipping_fee: float = 5.0
    free_shipping_threshold: float = 40.0
    max_quantity_per_product: int = 50
    max_items_per_order: int = 50
    min_order_total: float = 0.01
    max_order_total: float = 10000.0
    price_cache_ttl_seconds: float = 30.0
    price_cache_max_entries: int = 1000
    order_number_prefix: str = "GC"
    legal_consent_version: str = "v1"

    @classmethod
    def from_env(cls) -> "CheckoutPolicy":
        defaults = cls()
        return cls(
            shipping_fee=_env_float("CHECKOUT_SHIPPING_FEE", defaults.shipping_fee),
            free_shipping_threshold=_env_float(
                "CHECKOUT_FREE_SHIPPING_THRESHOLD", defaults.free_shipping_threshold
            ),
            max_quantity_per_product=_env_int(
                "CHECKOUT_MAX_QUANTITY_PER_PRODUCT", defaults.max_quantity_per_product
            ),
            max_items_per_order=_env_int("CHECKOUT_MAX_ITEMS_PER_ORDER", defaults.max_items_per_order),
            min_order_total=_env_float("CHECKOUT_MIN_ORDER_TOTAL", defaults.min_order_total),
            max_order_total=_env_float("CHECKOUT_MAX_ORDER_TOTAL", defaults.max_order_total),
            price_cache_ttl_seconds=_env_float(
                "CHECKOUT_PRICE_CACHE_TTL_SECONDS", defaults.price_cache_ttl_seconds
            ),
            price_cache_max_entries=_env_int(
                "CHECKOUT_PRICE_CACHE_MAX_ENTRIES", defaults.price_cache_max_entries
            ),
            order_number_prefix=os.getenv("CHECKOUT_ORDER_NUMBER_PREFIX") or defaults.order_number_prefix,
            legal_consent_version=os.getenv("CHECKOUT_LEGAL_CONSENT_VERSION") or defaults.legal_consent_version,
        )


@dataclass(frozen=True)
class RewardPolicy:
    points_expiry_days: int = 365
    referrer_reward_points: int = 500
    referred_reward_points: int = 200
    min_order_total_for_referral: float = 20.0
    points_per_level: int = 1000
    power_buyer_order_count: int = 10
    early_bird_cutoff_hour: int = 10
    store_utc_offset_hours: int = 0

    @classmethod
    def from_env(cls) -> "RewardPolicy":
        defaults = cls()
        return cls(
            points_expiry_days=_env_int("REWARDS_POINTS_EXPIRY_DAYS", defaults.points_expiry_days),
            referrer_reward_points=_env_int("REWARDS_REFERRER_POINTS", defaults.referrer_reward_points),
            referred_reward_points=_env_int("REWARDS_REFERRED_POINTS", defaults.referred_reward_points),
            min_order_total_for_referral=_env_float(
                "REWARDS_MIN_ORDER_TOTAL_FOR_REFERRAL", defaults.min_order_total_for_referral
            ),
            points_per_level=_env_int("REWARDS_POINTS_PER_LEVEL", defaults.points_per_level),
            power_buyer_order_count=_env_int("REWARDS_POWER_BUYER_ORDER_COUNT", defaults.power_buyer_order_count),
            early_bird_cutoff_hour=_env_int("REWARDS_EARLY_BIRD_CUTOFF_HOUR", defaults.early_bird_cutoff_hour),
            store_utc_offset_hours=_env_int("REWARDS_STORE_UTC_OFFSET_HOURS", defaults.store_utc_offset_hours),
        )


def catalogue_database_uri() -> str:
    return os.getenv("CATALOGUE_DATABASE_URI", "sqlite:///catalogue.db")
