"""
Credit-risk aggregation.

For a selected quarter Q and the provider's chronological quarter list:

  bad-debt window  = last ``bad_debt_window`` quarters ending at Q  (default 2)
  recovery window  = last ``recovery_window`` quarters ending at Q  (default 2)
  write-off window = last ``writeoff_window`` quarters ending at Q  (default 3)

Each quarter in the union of the windows is fetched and scored once
(``QuarterDetail``); window totals are the rounded sums of the per-quarter
scores.  Compliance comes from Q only.  A quarter the provider has no record
for is zero-filled with ``found=False`` and marks the row incomplete.
"""

from __future__ import annotations

import logging

from branch_scorecard.aggregation.common import AggregationStats, pair_or_zero
from branch_scorecard.config import CreditRiskConfig
from branch_scorecard.models.metric import Branch, MetricRecord
from branch_scorecard.models.scorecard import CreditRiskRow, QuarterDetail
from branch_scorecard.provider.base import MetricRowProvider
from branch_scorecard.rules import credit_risk as rules
from branch_scorecard.rules.base import round2
from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet
from branch_scorecard.utils.periods import lookback_window

logger = logging.getLogger(__name__)


def score_quarter(
    record:     MetricRecord | None,
    quarter_id: str,
    params:     CreditRiskConfig,
    stats:      AggregationStats,
) -> QuarterDetail:
    """Apply every per-quarter credit-risk rule to one raw record.

    ``record=None`` (provider miss) yields an all-zero detail with
    ``found=False``.
    """
    if record is None:
        return QuarterDetail(quarter_id=quarter_id, found=False)

    bad_debt = pair_or_zero(record, MetricKey.BAD_DEBT)
    recovery = pair_or_zero(record, MetricKey.RECOVERY)
    writeoff = pair_or_zero(record, MetricKey.WRITEOFF)

    return QuarterDetail(
        quarter_id=quarter_id,
        bad_debt_actual=bad_debt.actual,
        bad_debt_target=bad_debt.target,
        bad_debt_score=stats.score(rules.bad_debt_score, bad_debt, params, fallback=0.0),
        recovery_actual=recovery.actual,
        recovery_target=recovery.target,
        recovery_rate=stats.score(rules.recovery_rate, recovery, fallback=0.0),
        recovery_score=stats.score(rules.recovery_score, recovery, params, fallback=0.0),
        writeoff_actual=writeoff.actual,
        writeoff_target=writeoff.target,
        writeoff_control_rate=stats.score(rules.writeoff_control_rate, writeoff, fallback=0.0),
        writeoff_deduction=stats.score(rules.writeoff_deduction, writeoff, params, fallback=0.0),
        compliance_deduction=stats.score(
            rules.compliance_deduction, record.value(MetricKey.COMPLIANCE), fallback=0.0
        ),
        found=True,
    )


def build_credit_risk_row(
    branch:  Branch,
    details: dict[str, QuarterDetail],
    quarter: str,
    windows: dict[str, list[str]],
) -> CreditRiskRow:
    """Combine scored quarters into one row.

    Args:
        branch:  Branch identity.
        details: Scored quarters keyed by quarter id, chronological, covering
                 the union of all windows.
        quarter: The selected quarter.
        windows: ``{"bad_debt": [...], "recovery": [...], "writeoff": [...]}``.
    """
    bad_debt_total = round2(sum(details[q].bad_debt_score for q in windows["bad_debt"]))
    recovery_total = round2(sum(details[q].recovery_score for q in windows["recovery"]))
    writeoff_total = round2(sum(details[q].writeoff_deduction for q in windows["writeoff"]))
    compliance     = details[quarter].compliance_deduction

    return CreditRiskRow(
        branch_id=branch.branch_id,
        branch_name=branch.name,
        bad_debt_total_score=bad_debt_total,
        recovery_total_score=recovery_total,
        writeoff_total_deduction=writeoff_total,
        compliance_deduction=compliance,
        total_score=rules.credit_risk_total(
            bad_debt_total, recovery_total, writeoff_total, compliance
        ),
        data_complete=all(d.found for d in details.values()),
        quarter_details=list(details.values()),
    )


def aggregate_credit_risk(
    provider: MetricRowProvider,
    quarter:  str,
    params:   CreditRiskConfig,
    stats:    AggregationStats,
) -> list[CreditRiskRow]:
    """Score every branch for ``quarter``.  Rows come back in provider order."""
    periods = provider.list_periods(RuleSet.CREDIT_RISK)
    windows = {
        "bad_debt": lookback_window(periods, quarter, params.bad_debt_window),
        "recovery": lookback_window(periods, quarter, params.recovery_window),
        "writeoff": lookback_window(periods, quarter, params.writeoff_window),
    }
    needed = [q for q in periods if any(q in w for w in windows.values())]
    logger.debug("Credit-risk windows for %s: %s", quarter, windows)

    rows: list[CreditRiskRow] = []
    for branch in provider.list_branches(RuleSet.CREDIT_RISK):
        details = {
            q: score_quarter(
                stats.fetch(provider, branch.branch_id, q, RuleSet.CREDIT_RISK), q, params, stats
            )
            for q in needed
        }
        rows.append(build_credit_risk_row(branch, details, quarter, windows))
    return rows
