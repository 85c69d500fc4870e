"""
Report entry point: one rule set, one period → ranked rows + summary.

``build_report(provider, rule_set, period, config)`` dispatches to the rule
set's aggregator, ranks the rows by ``total_score`` descending and attaches
the population summary shown above the dashboard table.

Raises ``ValueError`` for a period the provider does not list for the rule
set.  Everything else (missing records, undefined ratios) is recovered and
counted in ``ScoreReport.fallbacks`` / ``ScoreReport.missing``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from branch_scorecard.aggregation.common import AggregationStats
from branch_scorecard.aggregation.credit_risk import aggregate_credit_risk
from branch_scorecard.aggregation.efficiency import (
    aggregate_efficiency,
    aggregate_gallop_efficiency,
)
from branch_scorecard.aggregation.gallop import (
    aggregate_consume,
    aggregate_cross_border,
    aggregate_zhuojun,
)
from branch_scorecard.config import AppConfig
from branch_scorecard.models.scorecard import (
    BranchRow,
    CreditRiskRow,
    EfficiencyRow,
    GallopConsumeRow,
    GallopCrossBorderRow,
    GallopEfficiencyRow,
    GallopZhuojunRow,
)
from branch_scorecard.provider.base import MetricRowProvider
from branch_scorecard.ranking.ranker import rank
from branch_scorecard.rules.base import round2
from branch_scorecard.taxonomy.rule_sets import RuleSet, SortDirection

logger = logging.getLogger(__name__)


# ── Summaries ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreditRiskSummary:
    branch_count:        int
    avg_total_score:     float
    avg_bad_debt_score:  float
    avg_recovery_score:  float
    avg_writeoff_deduction:   float
    avg_compliance_deduction: float


@dataclass(frozen=True)
class EfficiencySummary:
    """Population totals and averages for the efficiency table header."""

    branch_count:          int
    total_weighted_count:  float
    total_weighted_base:   float
    avg_growth_rate:       float
    avg_growth_increment:  float
    avg_system_score:      float
    total_deposit:         float
    total_deposit_target:  float
    avg_completion_rate:   float
    avg_deduction:         float
    avg_total_score:       float


@dataclass(frozen=True)
class GallopSummary:
    """Population total of a Gallop rule set's primary metric.

    Attributes:
        metric:          Field name of the primary metric.
        total:           Σ current values.
        prior_total:     Σ prior-period values.
        growth:          ``total / prior_total − 1`` (0 when prior is 0).
        avg_total_score: Mean branch score.
    """

    branch_count:    int
    metric:          str
    total:           float
    prior_total:     float
    growth:          float
    avg_total_score: float


Summary = CreditRiskSummary | EfficiencySummary | GallopSummary


def _avg(values: Sequence[float]) -> float:
    return round2(sum(values) / len(values)) if values else 0.0


def _sum(values: Sequence[float]) -> float:
    return round2(sum(values))


def _gallop_summary(rows: Sequence[BranchRow], metric: str, prior: str) -> GallopSummary:
    total       = _sum([getattr(r, metric) for r in rows])
    prior_total = _sum([getattr(r, prior) for r in rows])
    return GallopSummary(
        branch_count=len(rows),
        metric=metric,
        total=total,
        prior_total=prior_total,
        growth=round(total / prior_total - 1, 4) if prior_total else 0.0,
        avg_total_score=_avg([r.total_score for r in rows]),
    )


def summarize(rule_set: RuleSet, rows: Sequence[BranchRow]) -> Summary:
    """Population summary for a rule set's scored rows."""
    rule_set = RuleSet(rule_set)
    if rule_set is RuleSet.CREDIT_RISK:
        return CreditRiskSummary(
            branch_count=len(rows),
            avg_total_score=_avg([r.total_score for r in rows]),
            avg_bad_debt_score=_avg([r.bad_debt_total_score for r in rows]),
            avg_recovery_score=_avg([r.recovery_total_score for r in rows]),
            avg_writeoff_deduction=_avg([r.writeoff_total_deduction for r in rows]),
            avg_compliance_deduction=_avg([r.compliance_deduction for r in rows]),
        )
    if rule_set is RuleSet.EFFICIENCY:
        return EfficiencySummary(
            branch_count=len(rows),
            total_weighted_count=_sum([r.weighted_count for r in rows]),
            total_weighted_base=_sum([r.weighted_count_base for r in rows]),
            avg_growth_rate=round(sum(r.growth_rate for r in rows) / len(rows), 4) if rows else 0.0,
            avg_growth_increment=_avg([r.growth_increment for r in rows]),
            avg_system_score=_avg([r.system_score for r in rows]),
            total_deposit=_sum([r.deposit_actual for r in rows]),
            total_deposit_target=_sum([r.deposit_target for r in rows]),
            avg_completion_rate=round(sum(r.deposit_completion_rate for r in rows) / len(rows), 4) if rows else 0.0,
            avg_deduction=_avg([r.deposit_deduction for r in rows]),
            avg_total_score=_avg([r.total_score for r in rows]),
        )
    if rule_set is RuleSet.GALLOP_EFFICIENCY:
        return _gallop_summary(rows, "weighted_count", "weighted_count_base")
    if rule_set is RuleSet.GALLOP_CONSUME:
        return _gallop_summary(rows, "total_consume", "total_prior")
    if rule_set is RuleSet.GALLOP_CROSS_BORDER:
        return _gallop_summary(rows, "total_cross", "total_cross_prior")
    return _gallop_summary(rows, "new_cards", "new_cards_prior")


# ── Report ────────────────────────────────────────────────────────────────────


ROW_TYPES: dict[RuleSet, type[BranchRow]] = {
    RuleSet.CREDIT_RISK:         CreditRiskRow,
    RuleSet.EFFICIENCY:          EfficiencyRow,
    RuleSet.GALLOP_EFFICIENCY:   GallopEfficiencyRow,
    RuleSet.GALLOP_CONSUME:      GallopConsumeRow,
    RuleSet.GALLOP_CROSS_BORDER: GallopCrossBorderRow,
    RuleSet.GALLOP_ZHUOJUN:      GallopZhuojunRow,
}


def _aggregator(rule_set: RuleSet, config: AppConfig) -> Callable[..., list[BranchRow]]:
    params = {
        RuleSet.CREDIT_RISK:         (aggregate_credit_risk, config.credit_risk),
        RuleSet.EFFICIENCY:          (aggregate_efficiency, config.efficiency),
        RuleSet.GALLOP_EFFICIENCY:   (aggregate_gallop_efficiency, config.gallop),
        RuleSet.GALLOP_CONSUME:      (aggregate_consume, config.gallop),
        RuleSet.GALLOP_CROSS_BORDER: (aggregate_cross_border, config.gallop),
        RuleSet.GALLOP_ZHUOJUN:      (aggregate_zhuojun, config.gallop),
    }
    fn, section = params[rule_set]
    return lambda provider, period, stats: fn(provider, period, section, stats)


@dataclass
class ScoreReport:
    """Scored, ranked rows for one rule set and period.

    Attributes:
        rule_set:  Rule set scored.
        period:    Report period (quarter or month id).
        rows:      Rows ranked by ``total_score`` descending (rank 1 = best).
        summary:   Population summary.
        fallbacks: Rule calls replaced by their documented fallback.
        missing:   Provider lookups zero-filled after ``NotFound``.
    """

    rule_set:  RuleSet
    period:    str
    rows:      list[BranchRow] = field(default_factory=list)
    summary:   Summary | None = None
    fallbacks: int = 0
    missing:   int = 0

    def row(self, branch_id: str) -> BranchRow | None:
        for r in self.rows:
            if r.branch_id == branch_id:
                return r
        return None

    @property
    def incomplete_branches(self) -> list[str]:
        return [r.branch_id for r in self.rows if not r.data_complete]


def build_report(
    provider: MetricRowProvider,
    rule_set: RuleSet | str,
    period:   str,
    config:   AppConfig | None = None,
) -> ScoreReport:
    """Score, rank and summarize every branch for ``rule_set`` at ``period``.

    Args:
        provider: Metric source.
        rule_set: Rule set to score.
        period:   Quarter id (credit risk, efficiency) or month id (Gallop).
        config:   Application config; ``AppConfig()`` defaults when omitted.

    Returns:
        ``ScoreReport`` with rows ranked by ``total_score`` descending.

    Raises:
        ValueError: If ``period`` is not listed by the provider for ``rule_set``.
    """
    config   = config or AppConfig()
    rule_set = RuleSet(rule_set)

    periods = provider.list_periods(rule_set)
    if period not in periods:
        raise ValueError(
            f"Period '{period}' is not available for {rule_set.value}. "
            f"Available: {', '.join(periods) or '(none)'}."
        )

    stats = AggregationStats()
    rows  = _aggregator(rule_set, config)(provider, period, stats)
    ranked = rank(rows, "total_score", SortDirection.DESC)

    logger.info(
        "Scored %s %s: %d branches, %d fallbacks, %d missing records",
        rule_set.value, period, len(ranked), stats.fallbacks, stats.missing,
        extra={"rule_set": rule_set.value, "period": period},
    )
    return ScoreReport(
        rule_set=rule_set,
        period=period,
        rows=ranked,
        summary=summarize(rule_set, ranked),
        fallbacks=stats.fallbacks,
        missing=stats.missing,
    )
