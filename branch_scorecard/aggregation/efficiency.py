"""
Efficiency and Gallop-efficiency aggregation.

Both rule sets score *weighted customer count growth* against the peer
population; they differ only in segment weights and in the deposit
deduction, which Gallop efficiency does not have.

Pipeline per report period:
  1. Fetch each branch's record; compute weighted count, base, growth rate
     and growth increment.
  2. Build the peer population from branches that actually reported.
  3. Map each branch's rate and increment through the configured normalizer
     onto a score-rate, and blend them into the system score.
  4. (Efficiency only) subtract the deposit shortfall deduction.

Branches with no record for the period are zero-filled, score 0 and are left
out of the peer population so they cannot drag the mean.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from branch_scorecard.aggregation.common import (
    AggregationStats,
    fetch_period,
    pair_or_zero,
    round4,
    segment_values,
)
from branch_scorecard.config import EfficiencyConfig, GallopConfig
from branch_scorecard.models.metric import Branch, MetricRecord
from branch_scorecard.models.scorecard import EfficiencyRow, GallopEfficiencyRow
from branch_scorecard.provider.base import MetricRowProvider
from branch_scorecard.rules import efficiency as rules
from branch_scorecard.rules.base import round2
from branch_scorecard.rules.normalization import Normalizer, get_normalizer
from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet, SEGMENT_KEYS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrowthProfile:
    """Weighted-count growth for one branch before peer normalization."""

    branch:           Branch
    record:           MetricRecord | None
    segments:         dict[str, float]
    weighted:         float
    base:             float
    growth_rate:      float
    growth_increment: float

    @property
    def found(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class SystemScore:
    rate_score_rate:      float
    increment_score_rate: float
    system_score:         float


def growth_profile(
    branch:  Branch,
    record:  MetricRecord | None,
    weights: Mapping[str, float],
    stats:   AggregationStats,
) -> GrowthProfile:
    """Weighted count, base and growth for one branch."""
    current = segment_values(record.values) if record else {}
    prior   = segment_values(record.prior_values) if record else {}
    weighted = rules.weighted_count(current, weights)
    base     = rules.weighted_count(prior, weights)
    return GrowthProfile(
        branch=branch,
        record=record,
        segments={k.value: current.get(k.value, 0.0) for k in SEGMENT_KEYS},
        weighted=weighted,
        base=base,
        growth_rate=stats.score(rules.growth_rate, weighted, base, fallback=0.0) if record else 0.0,
        growth_increment=rules.growth_increment(weighted, base),
    )


def score_system(
    profiles:         Sequence[GrowthProfile],
    normalizer:       Normalizer,
    rate_weight:      float,
    increment_weight: float,
) -> list[SystemScore]:
    """Peer-normalize growth and blend into system scores, aligned with ``profiles``."""
    peers = [p for p in profiles if p.found]
    peer_rates      = [p.growth_rate for p in peers]
    peer_increments = [p.growth_increment for p in peers]

    scores: list[SystemScore] = []
    for p in profiles:
        if not p.found:
            scores.append(SystemScore(0.0, 0.0, 0.0))
            continue
        rate_rate = normalizer(p.growth_rate, peer_rates)
        incr_rate = normalizer(p.growth_increment, peer_increments)
        scores.append(
            SystemScore(
                rate_score_rate=round4(rate_rate),
                increment_score_rate=round4(incr_rate),
                system_score=rules.system_score(rate_rate, incr_rate, rate_weight, increment_weight),
            )
        )
    return scores


def _growth_fields(p: GrowthProfile, s: SystemScore) -> dict[str, float]:
    return {
        "annual_10k":     p.segments["annual_10k"],
        "new_active":     p.segments["new_active"],
        "highend_active": p.segments["highend_active"],
        "cross_border":   p.segments["cross_border"],
        "weighted_count":      round2(p.weighted),
        "weighted_count_base": round2(p.base),
        "growth_rate":         round4(p.growth_rate),
        "growth_increment":    round2(p.growth_increment),
        "growth_rate_score_rate":      s.rate_score_rate,
        "growth_increment_score_rate": s.increment_score_rate,
        "system_score":                s.system_score,
    }


def aggregate_efficiency(
    provider: MetricRowProvider,
    quarter:  str,
    params:   EfficiencyConfig,
    stats:    AggregationStats,
) -> list[EfficiencyRow]:
    """Score every branch's operating efficiency for ``quarter``."""
    fetched  = fetch_period(provider, provider.list_branches(RuleSet.EFFICIENCY), quarter,
                            RuleSet.EFFICIENCY, stats)
    profiles = [growth_profile(b, r, params.segment_weights, stats) for b, r in fetched]
    systems  = score_system(
        profiles,
        get_normalizer(params.normalizer),
        params.growth_rate_weight,
        params.growth_increment_weight,
    )

    rows: list[EfficiencyRow] = []
    for p, s in zip(profiles, systems):
        deposit   = pair_or_zero(p.record, MetricKey.DEPOSIT)
        rate      = stats.score(rules.deposit_completion_rate, deposit, fallback=0.0) if p.found else 0.0
        deduction = stats.score(rules.deposit_deduction, deposit, params, fallback=0.0) if p.found else 0.0
        rows.append(
            EfficiencyRow(
                branch_id=p.branch.branch_id,
                branch_name=p.branch.name,
                **_growth_fields(p, s),
                deposit_actual=deposit.actual,
                deposit_target=deposit.target,
                deposit_completion_rate=round4(rate),
                deposit_deduction=deduction,
                total_score=rules.efficiency_total(s.system_score, deduction),
                data_complete=p.found,
            )
        )
    logger.debug("Efficiency %s: %d peers of %d branches", quarter,
                 sum(p.found for p in profiles), len(profiles))
    return rows


def aggregate_gallop_efficiency(
    provider: MetricRowProvider,
    month:    str,
    params:   GallopConfig,
    stats:    AggregationStats,
) -> list[GallopEfficiencyRow]:
    """Score every branch's Gallop weighted customer count for ``month``."""
    fetched  = fetch_period(provider, provider.list_branches(RuleSet.GALLOP_EFFICIENCY), month,
                            RuleSet.GALLOP_EFFICIENCY, stats)
    profiles = [growth_profile(b, r, params.segment_weights, stats) for b, r in fetched]
    systems  = score_system(
        profiles,
        get_normalizer(params.normalizer),
        params.growth_rate_weight,
        params.growth_increment_weight,
    )
    return [
        GallopEfficiencyRow(
            branch_id=p.branch.branch_id,
            branch_name=p.branch.name,
            **_growth_fields(p, s),
            total_score=s.system_score,
            data_complete=p.found,
        )
        for p, s in zip(profiles, systems)
    ]
