"""Application tests for repository-backed promotion evaluation."""

from datetime import UTC, datetime, timedelta

from protean import current_domain

from ordering.promotions.promotion import DiscountType, Promotion, RepositoryPromotionEvaluator

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _add(code="WELCOME10", **overrides):
    defaults = {
        "code": code,
        "discount_type": DiscountType.PERCENTAGE.value,
        "discount_value": 10.0,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=30),
    }
    defaults.update(overrides)
    promotion = Promotion.create(**defaults)
    current_domain.repository_for(Promotion).add(promotion)
    return promotion


def _evaluator():
    return RepositoryPromotionEvaluator(clock=lambda: NOW)


class TestEvaluate:
    def test_valid_code(self):
        promotion = _add()
        evaluation = _evaluator().evaluate("welcome10", 50.0)
        assert evaluation.valid is True
        assert evaluation.discount == 5.0
        assert evaluation.promotion_id == str(promotion.id)

    def test_unknown_code(self):
        evaluation = _evaluator().evaluate("NOPE", 50.0)
        assert evaluation.valid is False
        assert evaluation.reason == "unknown_code"

    def test_expired_code(self):
        _add(valid_from=NOW - timedelta(days=10), valid_until=NOW - timedelta(days=1))
        evaluation = _evaluator().evaluate("WELCOME10", 50.0)
        assert evaluation.valid is False
        assert evaluation.reason == "expired"

    def test_exhausted_code(self):
        promotion = _add(usage_limit=1)
        evaluator = _evaluator()
        evaluator.increment_usage(str(promotion.id))
        assert evaluator.evaluate("WELCOME10", 50.0).reason == "exhausted"


class TestIncrementUsage:
    def test_increments_count(self):
        promotion = _add()
        _evaluator().increment_usage(str(promotion.id))
        assert current_domain.repository_for(Promotion).get(promotion.id).usage_count == 1

    def test_missing_promotion_is_logged_not_raised(self):
        _evaluator().increment_usage("missing")
