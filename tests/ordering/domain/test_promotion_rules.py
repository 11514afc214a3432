"""Tests for Promotion aggregate rules."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from ordering.promotions.promotion import DiscountType, Promotion, normalize_code

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _promotion(**overrides):
    defaults = {
        "code": "welcome10",
        "discount_type": DiscountType.PERCENTAGE.value,
        "discount_value": 10.0,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=30),
    }
    defaults.update(overrides)
    return Promotion.create(**defaults)


class TestNormalizeCode:
    def test_trims_and_uppercases(self):
        assert normalize_code("  welcome10 ") == "WELCOME10"

    def test_blank_becomes_none(self):
        assert normalize_code("   ") is None
        assert normalize_code(None) is None


class TestPromotionCreation:
    def test_code_is_normalized(self):
        assert _promotion().code == "WELCOME10"

    def test_blank_code_rejected(self):
        with pytest.raises(ValidationError):
            _promotion(code="  ")

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            _promotion(valid_from=NOW, valid_until=NOW - timedelta(days=1))

    def test_unknown_discount_type_rejected(self):
        with pytest.raises(ValueError):
            _promotion(discount_type="bogo")


class TestDiscounts:
    def test_percentage(self):
        assert _promotion().discount_for(50.0) == 5.0

    def test_percentage_capped_by_max_discount(self):
        assert _promotion(max_discount=3.0).discount_for(50.0) == 3.0

    def test_fixed(self):
        promotion = _promotion(discount_type=DiscountType.FIXED.value, discount_value=7.5)
        assert promotion.discount_for(50.0) == 7.5


class TestRejectionReasons:
    def test_applies_inside_window(self):
        assert _promotion().rejection_reason(50.0, NOW) is None

    def test_inactive(self):
        promotion = _promotion()
        promotion.is_active = False
        assert promotion.rejection_reason(50.0, NOW) == "inactive"

    def test_not_yet_started(self):
        assert _promotion(valid_from=NOW + timedelta(days=1)).rejection_reason(50.0, NOW) == "expired"

    def test_expired(self):
        promotion = _promotion(valid_from=NOW - timedelta(days=10), valid_until=NOW - timedelta(days=1))
        assert promotion.rejection_reason(50.0, NOW) == "expired"

    def test_usage_limit_reached(self):
        promotion = _promotion(usage_limit=1)
        promotion.record_usage()
        assert promotion.rejection_reason(50.0, NOW) == "exhausted"

    def test_below_minimum_purchase(self):
        assert _promotion(min_purchase=60.0).rejection_reason(50.0, NOW) == "below_minimum_purchase"
