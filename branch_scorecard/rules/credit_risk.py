"""
Credit-risk rules (quarterly).

Total score = bad-debt score + recovery score + write-off deduction
              + compliance deduction

Per-quarter rules
-----------------
bad_debt_score (0 – 11.70):
    actual <= target            → 11.70
    otherwise  excess = (actual − target) / target
               score  = max(0, 11.70 × (1 − 2 × excess))
    e.g. target 100, actual 120 → excess 0.2 → 11.70 × 0.6 = 7.02

recovery_score (0 – 7.80):
    rate = actual / target
    rate >= 1.30                → 7.80
    otherwise                   → 7.80 × rate / 1.30

writeoff_deduction (−2.00 – 0):
    actual <= target            → 0  (control rate 0)
    otherwise  control = (actual − target) / target
               deduction = −min(2.00, control × 2.00)

compliance_deduction:
    judgmental input, 0 or negative; not derived from actual/target.

Window sums (2 quarters for bad debt and recovery, 3 for write-off) are
decided by the aggregator, not here.
"""

from __future__ import annotations

from branch_scorecard.config import CreditRiskConfig
from branch_scorecard.models.metric import MetricPair
from branch_scorecard.rules.base import InvalidMetric, require_positive, round2

_DEFAULTS = CreditRiskConfig()


def bad_debt_score(pair: MetricPair, params: CreditRiskConfig = _DEFAULTS) -> float:
    """Score one quarter of new bad debt against its ceiling.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    require_positive("bad_debt", "target", pair.target)
    if pair.actual <= pair.target:
        return round2(params.bad_debt_cap)
    excess = (pair.actual - pair.target) / pair.target
    score = params.bad_debt_cap * (1 - params.bad_debt_excess_multiplier * excess)
    return round2(max(0.0, score))


def recovery_rate(pair: MetricPair) -> float:
    """Recovery completion rate ``actual / target`` as a fraction.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    require_positive("recovery", "target", pair.target)
    return pair.actual / pair.target


def recovery_score(pair: MetricPair, params: CreditRiskConfig = _DEFAULTS) -> float:
    """Score one quarter of cash recovery; full marks at 130% completion.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    rate = recovery_rate(pair)
    if rate >= params.recovery_full_rate:
        return round2(params.recovery_cap)
    return round2(max(0.0, params.recovery_cap * rate / params.recovery_full_rate))


def writeoff_control_rate(pair: MetricPair) -> float:
    """Overshoot of write-off usage above its control target; 0 when within target.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    require_positive("writeoff", "target", pair.target)
    if pair.actual <= pair.target:
        return 0.0
    return (pair.actual - pair.target) / pair.target


def writeoff_deduction(pair: MetricPair, params: CreditRiskConfig = _DEFAULTS) -> float:
    """Deduction (<= 0) for one quarter of write-off usage.

    Raises:
        InvalidMetric: If ``pair.target <= 0``.
    """
    control = writeoff_control_rate(pair)
    if control == 0.0:
        return 0.0
    magnitude = min(params.writeoff_cap, control * params.writeoff_multiplier)
    return round2(-magnitude)


def compliance_deduction(value: float) -> float:
    """Validate the judgmental compliance input.

    Raises:
        InvalidMetric: If ``value`` is positive (compliance can only deduct).
    """
    if value > 0:
        raise InvalidMetric("compliance", f"deduction must be <= 0, got {value}.")
    return round2(value)


def credit_risk_total(
    bad_debt_total:   float,
    recovery_total:   float,
    writeoff_total:   float,
    compliance_total: float,
) -> float:
    """Signed sum of the four credit-risk components."""
    return round2(bad_debt_total + recovery_total + writeoff_total + compliance_total)
