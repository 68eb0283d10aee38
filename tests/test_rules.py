"""Tests for the price drop rule."""

import pytest

from src.detect.rules import DropRule, discount_percentage


@pytest.mark.parametrize(
    "current,original,expected",
    [
        (390, 1000, 61),
        (450, 1000, 55),
        (1000, 1000, 0),
        (1200, 1000, -20),
        (0, 1000, 100),
        (995, 1000, 1),  # 0.5 rounds up
        (500, 0, 0),
        (500, -10, 0),
    ],
)
def test_discount_percentage(current, original, expected):
    assert discount_percentage(current, original) == expected


class TestDropRule:
    def test_fires_when_crossing_threshold(self):
        triggered, reason = DropRule(threshold=60).check(450, 390, 1000)

        assert triggered
        assert "55%" in reason and "61%" in reason

    def test_exactly_at_threshold_fires(self):
        triggered, _ = DropRule(threshold=60).check(450, 400, 1000)

        assert triggered

    def test_stays_quiet_while_already_beyond_threshold(self):
        triggered, reason = DropRule(threshold=60).check(390, 300, 1000)

        assert not triggered
        assert "previously met" in reason

    def test_below_threshold(self):
        triggered, _ = DropRule(threshold=60).check(600, 450, 1000)

        assert not triggered

    def test_price_rise_or_unchanged(self):
        rule = DropRule(threshold=10)

        assert rule.check(500, 500, 1000) == (False, "Price did not drop")
        assert rule.check(300, 500, 1000) == (False, "Price did not drop")

    def test_zero_threshold_fires_when_price_reaches_original(self):
        rule = DropRule(threshold=0)

        assert rule.check(1100, 1050, 1000)[0] is False
        assert rule.check(1100, 1000, 1000)[0] is True
        assert rule.check(1000, 900, 1000)[0] is False

    def test_disabled(self):
        assert DropRule(threshold=60, enabled=False).check(450, 390, 1000) == (False, "Rule disabled")

    def test_original_price_zero_never_fires(self):
        assert DropRule(threshold=0).check(500, 400, 0)[0] is False
