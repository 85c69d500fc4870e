"""
Gallop consume, cross-border and Zhuojun aggregation.

All three rank the reporting branches against each other and interpolate a
point budget over the ranking (see ``rules.gallop``).  A branch with no
record for the month is zero-filled, scores 0 and is not ranked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from branch_scorecard.aggregation.common import AggregationStats, fetch_period, round4
from branch_scorecard.config import GallopConfig
from branch_scorecard.models.metric import Branch, MetricRecord
from branch_scorecard.models.scorecard import (
    GallopConsumeRow,
    GallopCrossBorderRow,
    GallopZhuojunRow,
)
from branch_scorecard.provider.base import MetricRowProvider
from branch_scorecard.rules import gallop as rules
from branch_scorecard.rules.base import round2
from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet

log = logging.getLogger(__name__)


def _spread(found: Sequence[bool], scores: Sequence) -> list:
    """Re-align scores computed over the found subset onto all branches (None if absent)."""
    it = iter(scores)
    return [next(it) if f else None for f in found]


@dataclass(frozen=True)
class _ConsumeInput:
    branch:        Branch
    record:        MetricRecord | None
    normal:        float = 0.0
    installment:   float = 0.0
    normal_p:      float = 0.0
    installment_p: float = 0.0

    @property
    def total(self) -> float:
        return self.normal + self.installment

    @property
    def prior(self) -> float:
        return self.normal_p + self.installment_p


def _consume_input(branch: Branch, rec: MetricRecord | None) -> _ConsumeInput:
    if rec is None:
        return _ConsumeInput(branch, None)
    return _ConsumeInput(
        branch,
        rec,
        normal=rec.value(MetricKey.NORMAL_CONSUME),
        installment=rec.value(MetricKey.INSTALLMENT_CONSUME),
        normal_p=rec.prior(MetricKey.NORMAL_CONSUME),
        installment_p=rec.prior(MetricKey.INSTALLMENT_CONSUME),
    )


def aggregate_consume(
    provider: MetricRowProvider,
    month:    str,
    params:   GallopConfig,
    stats:    AggregationStats,
) -> list[GallopConsumeRow]:
    """Card consumption YoY growth ranked over ``consume_budget``."""
    fetched = fetch_period(provider, provider.list_branches(RuleSet.GALLOP_CONSUME), month,
                           RuleSet.GALLOP_CONSUME, stats)
    inputs = [_consume_input(b, rec) for b, rec in fetched]
    growth = [
        stats.score(rules.yoy_growth, c.total, c.prior, fallback=0.0) if c.record else 0.0
        for c in inputs
    ]

    found  = [c.record is not None for c in inputs]
    ranked = _spread(found, rules.rank_interpolated_scores(
        [g for g, f in zip(growth, found) if f],
        params.consume_budget,
        params.top_factor,
        params.bottom_factor,
    ))

    rows: list[GallopConsumeRow] = []
    for c, yoy, score in zip(inputs, growth, ranked):
        score = score if score is not None else 0.0
        rows.append(
            GallopConsumeRow(
                branch_id=c.branch.branch_id,
                branch_name=c.branch.name,
                normal_consume=round2(c.normal),
                installment_consume=round2(c.installment),
                total_consume=round2(c.total),
                normal_prior=round2(c.normal_p),
                installment_prior=round2(c.installment_p),
                total_prior=round2(c.prior),
                yoy_growth=round4(yoy),
                consume_score=score,
                total_score=score,
                data_complete=c.record is not None,
            )
        )
    return rows


def _contribution_rows(
    fetched:   list[tuple[Branch, MetricRecord | None]],
    current:   Callable[[MetricRecord], float],
    prior:     Callable[[MetricRecord], float],
    budget:    float,
    params:    GallopConfig,
) -> list[dict]:
    """Shared contribution scoring; returns per-branch field dicts."""
    found = [rec is not None for _, rec in fetched]
    cur_values   = [current(rec) for _, rec in fetched if rec is not None]
    prior_values = [prior(rec) for _, rec in fetched if rec is not None]
    log.debug("Contribution ranking over %d of %d branches", len(cur_values), len(fetched))

    shares       = _spread(found, rules.contribution_shares(cur_values))
    prior_shares = _spread(found, rules.contribution_shares(prior_values))
    scores       = _spread(found, rules.contribution_scores(
        cur_values, prior_values, budget, params.top_factor, params.bottom_factor
    ))

    out: list[dict] = []
    for (branch, rec), share, prior_share, pair in zip(fetched, shares, prior_shares, scores):
        share       = share or 0.0
        prior_share = prior_share or 0.0
        contrib_score, change_score = pair or (0.0, 0.0)
        out.append({
            "branch_id":           branch.branch_id,
            "branch_name":         branch.name,
            "contribution":        round4(share),
            "contribution_prior":  round4(prior_share),
            "contribution_change": round4(share - prior_share),
            "contribution_score":  contrib_score,
            "change_score":        change_score,
            "total_score":         round2(contrib_score + change_score),
            "data_complete":       rec is not None,
        })
    return out


def _cross_total(rec: MetricRecord) -> float:
    return rec.value(MetricKey.OVERSEAS_CONSUME) + rec.value(MetricKey.CASH_WITHDRAW)


def _cross_prior(rec: MetricRecord) -> float:
    return rec.prior(MetricKey.OVERSEAS_CONSUME) + rec.prior(MetricKey.CASH_WITHDRAW)


def aggregate_cross_border(
    provider: MetricRowProvider,
    month:    str,
    params:   GallopConfig,
    stats:    AggregationStats,
) -> list[GallopCrossBorderRow]:
    """Cross-border volume contribution and its change, ``cross_border_budget`` points."""
    fetched = fetch_period(provider, provider.list_branches(RuleSet.GALLOP_CROSS_BORDER), month,
                           RuleSet.GALLOP_CROSS_BORDER, stats)
    base = _contribution_rows(fetched, _cross_total, _cross_prior, params.cross_border_budget, params)
    return [
        GallopCrossBorderRow(
            **fields,
            overseas_consume=round2(rec.value(MetricKey.OVERSEAS_CONSUME)) if rec else 0.0,
            cash_withdraw=round2(rec.value(MetricKey.CASH_WITHDRAW)) if rec else 0.0,
            total_cross=round2(_cross_total(rec)) if rec else 0.0,
            total_cross_prior=round2(_cross_prior(rec)) if rec else 0.0,
        )
        for fields, (_, rec) in zip(base, fetched)
    ]


def aggregate_zhuojun(
    provider: MetricRowProvider,
    month:    str,
    params:   GallopConfig,
    stats:    AggregationStats,
) -> list[GallopZhuojunRow]:
    """Zhuojun active-card issuance contribution and its change, ``zhuojun_budget`` points."""
    fetched = fetch_period(provider, provider.list_branches(RuleSet.GALLOP_ZHUOJUN), month,
                           RuleSet.GALLOP_ZHUOJUN, stats)
    base = _contribution_rows(
        fetched,
        lambda rec: rec.value(MetricKey.NEW_CARDS),
        lambda rec: rec.prior(MetricKey.NEW_CARDS),
        params.zhuojun_budget,
        params,
    )
    return [
        GallopZhuojunRow(
            **fields,
            new_cards=rec.value(MetricKey.NEW_CARDS) if rec else 0.0,
            new_cards_prior=rec.prior(MetricKey.NEW_CARDS) if rec else 0.0,
        )
        for fields, (_, rec) in zip(base, fetched)
    ]
