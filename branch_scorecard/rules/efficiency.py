"""
Operating-efficiency rules (quarterly).

Total score = system score − deposit deduction

System score (0 – 13)
---------------------
    weighted  = Σ segment_value × segment_weight
                (annual-10k spenders 0.30, new active 0.25,
                 high-end new active 0.25, cross-border 0.20)
    growth_rate      = (weighted − base) / base
    growth_increment =  weighted − base
    Both are mapped through a peer normalizer onto a score-rate in [0.3, 1.3];
    system = (rate_growth × 0.70 + rate_increment × 0.30) × 100 / 10

Deposit deduction (0 – 10)
--------------------------
    rate = actual / target
    rate >= 1.00   → 0
    otherwise      → min(10, (1 − rate) × 10)
    e.g. target 100, actual 80 → 2.0

The same weighted-count and system-score functions serve the Gallop
efficiency rule set with its own weights (3.5 / 18 / 35 / 8).
"""

from __future__ import annotations

from typing import Mapping

from branch_scorecard.config import EfficiencyConfig
from branch_scorecard.models.metric import MetricPair
from branch_scorecard.rules.base import InvalidMetric, require_positive, round2

_DEFAULTS = EfficiencyConfig()


def weighted_count(
    values:  Mapping[str, float],
    weights: Mapping[str, float],
) -> float:
    """Weighted customer count.  Segments missing from ``values`` count as 0."""
    return sum(values.get(key, 0.0) * weight for key, weight in weights.items())


def growth_rate(current: float, base: float) -> float:
    """Fractional growth of ``current`` over ``base``.

    Raises:
        InvalidMetric: If ``base <= 0``.
    """
    require_positive("growth_rate", "base", base)
    return (current - base) / base


def growth_increment(current: float, base: float) -> float:
    """Absolute growth of ``current`` over ``base`` (can be negative)."""
    return current - base


def system_score(
    growth_rate_rate:      float,
    growth_increment_rate: float,
    rate_weight:           float = 0.70,
    increment_weight:      float = 0.30,
) -> float:
    """Blend two peer score-rates into the 0–13 system score."""
    return round2((growth_rate_rate * rate_weight + growth_increment_rate * increment_weight) * 100 / 10)


def deposit_completion_rate(pair: MetricPair) -> float:
    """Deposit completion ``actual / target``.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    rate = pair.completion_rate
    if rate is None:
        raise InvalidMetric("deposit", f"target must be positive, got {pair.target}.")
    return rate


def deposit_deduction(pair: MetricPair, params: EfficiencyConfig = _DEFAULTS) -> float:
    """Deduction magnitude (>= 0) for a deposit shortfall.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    rate = deposit_completion_rate(pair)
    if rate >= 1.0:
        return 0.0
    return round2(min(params.deposit_cap, (1 - rate) * params.deposit_multiplier))


def efficiency_total(system: float, deduction: float) -> float:
    return round2(system - deduction)
