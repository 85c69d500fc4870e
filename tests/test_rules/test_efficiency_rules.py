"""
Tests for rules/efficiency.py.

What we test
------------
1. weighted_count applies the segment weights; missing segments count as 0.
2. growth_rate / growth_increment; growth_rate rejects a non-positive base.
3. system_score blends score-rates 70/30 and scales by 100/10.
4. Deposit deduction: 0 at/above target; 80% → 2.0; capped at 10.
5. efficiency_total is system minus deduction.
"""

from __future__ import annotations

import pytest

from branch_scorecard.config import EfficiencyConfig
from branch_scorecard.models.metric import MetricPair
from branch_scorecard.rules.base import InvalidMetric
from branch_scorecard.rules.efficiency import (
    deposit_completion_rate,
    deposit_deduction,
    efficiency_total,
    growth_increment,
    growth_rate,
    system_score,
    weighted_count,
)

_WEIGHTS = EfficiencyConfig().segment_weights


class TestWeightedCount:
    def test_default_weights(self):
        values = {"annual_10k": 100, "new_active": 200, "highend_active": 40, "cross_border": 50}
        # 30 + 50 + 10 + 10
        assert weighted_count(values, _WEIGHTS) == pytest.approx(100.0)

    def test_equal_segments_sum_to_segment_value(self):
        values = {k: 120.0 for k in _WEIGHTS}
        assert weighted_count(values, _WEIGHTS) == pytest.approx(120.0)

    def test_missing_segment_counts_zero(self):
        assert weighted_count({"annual_10k": 10}, _WEIGHTS) == pytest.approx(3.0)

    def test_gallop_weights(self):
        weights = {"annual_10k": 3.5, "new_active": 18, "highend_active": 35, "cross_border": 8}
        values = {k: 1.0 for k in weights}
        assert weighted_count(values, weights) == pytest.approx(64.5)


class TestGrowth:
    def test_growth_rate_fraction(self):
        assert growth_rate(110, 100) == pytest.approx(0.10)

    def test_negative_growth(self):
        assert growth_rate(90, 100) == pytest.approx(-0.10)
        assert growth_increment(90, 100) == pytest.approx(-10)

    @pytest.mark.parametrize("base", [0, -5])
    def test_non_positive_base_raises(self, base):
        with pytest.raises(InvalidMetric):
            growth_rate(10, base)

    def test_increment_accepts_zero_base(self):
        assert growth_increment(10, 0) == 10


class TestSystemScore:
    def test_center_rates(self):
        assert system_score(0.8, 0.8) == pytest.approx(8.0)

    def test_ceiling_rates(self):
        assert system_score(1.3, 1.3) == pytest.approx(13.0)

    def test_floor_rates(self):
        assert system_score(0.3, 0.3) == pytest.approx(3.0)

    def test_blend_weights(self):
        # (1.0 × 0.7 + 0.5 × 0.3) × 10 = 8.5
        assert system_score(1.0, 0.5) == pytest.approx(8.5)


class TestDepositDeduction:
    def test_eighty_percent_deducts_two(self):
        assert deposit_deduction(MetricPair(actual=80, target=100)) == pytest.approx(2.0)

    @pytest.mark.parametrize("actual", [100, 150])
    def test_at_or_above_target_is_zero(self, actual):
        assert deposit_deduction(MetricPair(actual=actual, target=100)) == 0.0

    def test_capped_at_ten(self):
        assert deposit_deduction(MetricPair(actual=0, target=100)) == pytest.approx(10.0)
        params = EfficiencyConfig(deposit_multiplier=20.0)
        assert deposit_deduction(MetricPair(actual=0, target=100), params) == pytest.approx(10.0)

    def test_zero_target_raises(self):
        with pytest.raises(InvalidMetric):
            deposit_deduction(MetricPair(actual=10, target=0))
        with pytest.raises(InvalidMetric):
            deposit_completion_rate(MetricPair(actual=10, target=0))

    def test_total(self):
        assert efficiency_total(8.0, 2.0) == pytest.approx(6.0)
