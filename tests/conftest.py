"""
Shared pytest fixtures for the Branch Scorecard test suite.

Provides:
  - ``config``:         Committed business defaults (``AppConfig()``).
  - ``branches``:       Three branches in display order (bj, sh, gz).
  - ``provider``:       ``InMemoryProvider`` with a small hand-computed dataset.
  - ``make_record``:    Factory for ``MetricRecord`` objects.

Dataset (expected figures are worked out in the test modules that use them)
--------------------------------------------------------------------------
credit_risk, quarters 2025Q3 / 2025Q4 / 2026Q1:
  bj  every quarter within targets, recovery at 130%      → 39.00 at 2026Q1
  sh  mixed overshoots, compliance −0.5 in 2026Q1        → 26.92 at 2026Q1
  gz  2025Q4 missing; 2026Q1 bad debt 300% of target,
      recovery target 0, positive compliance input       →  0.00 at 2026Q1

efficiency, quarter 2026Q1 (every segment equal, so weighted == segment):
  bj 110 vs 100, deposit 80/100  |  sh 120 vs 100, deposit 100/100
  gz 130 vs 100, deposit 50/0

gallop_consume, months 2026-02 / 2026-03:
  2026-03: bj 110 vs 100, sh 130 vs 100, gz missing
  2026-02: bj only

gallop_cross_border, month 2026-03:
  bj 60 (prior 50), sh 40 (prior 50), gz 100 (prior 100)
"""

from __future__ import annotations

from typing import Callable

import pytest

from branch_scorecard.config import AppConfig
from branch_scorecard.models.metric import Branch, MetricPair, MetricRecord
from branch_scorecard.provider.memory import InMemoryProvider
from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet


def _record(
    branch_id: str,
    period:    str,
    rule_set:  RuleSet,
    pairs:     dict[str, tuple[float, float]] | None = None,
    values:    dict[str, float] | None = None,
    prior:     dict[str, float] | None = None,
) -> MetricRecord:
    return MetricRecord(
        branch_id=branch_id,
        period=period,
        rule_set=rule_set,
        pairs={MetricKey(k): MetricPair(actual=a, target=t) for k, (a, t) in (pairs or {}).items()},
        values={MetricKey(k): v for k, v in (values or {}).items()},
        prior_values={MetricKey(k): v for k, v in (prior or {}).items()},
    )


def _segments(n: float) -> dict[str, float]:
    return {"annual_10k": n, "new_active": n, "highend_active": n, "cross_border": n}


# ── Config ────────────────────────────────────────────────────────────────────

@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


# ── Branches and records ──────────────────────────────────────────────────────

@pytest.fixture
def branches() -> list[Branch]:
    return [
        Branch(branch_id="bj", name="北京分行"),
        Branch(branch_id="sh", name="上海分行"),
        Branch(branch_id="gz", name="广州分行"),
    ]


@pytest.fixture
def make_record() -> Callable[..., MetricRecord]:
    """Factory: ``make_record("bj", "2026Q1", RuleSet.CREDIT_RISK, pairs={...})``."""
    return _record


def _credit_risk_records() -> list[MetricRecord]:
    cr = RuleSet.CREDIT_RISK
    within = {"bad_debt": (90, 100), "recovery": (130, 100), "writeoff": (100, 100)}
    return [
        _record("bj", "2025Q3", cr, within, {"compliance": 0}),
        _record("bj", "2025Q4", cr, within, {"compliance": 0}),
        _record("bj", "2026Q1", cr, within, {"compliance": 0}),

        _record("sh", "2025Q3", cr,
                {"bad_debt": (100, 100), "recovery": (130, 100), "writeoff": (150, 100)}),
        _record("sh", "2025Q4", cr,
                {"bad_debt": (120, 100), "recovery": (65, 100), "writeoff": (100, 100)}),
        _record("sh", "2026Q1", cr,
                {"bad_debt": (100, 100), "recovery": (130, 100), "writeoff": (200, 100)},
                {"compliance": -0.5}),

        _record("gz", "2025Q3", cr,
                {"bad_debt": (100, 100), "recovery": (100, 100), "writeoff": (100, 100)}),
        _record("gz", "2026Q1", cr,
                {"bad_debt": (300, 100), "recovery": (50, 0), "writeoff": (100, 100)},
                {"compliance": 1.0}),
    ]


def _efficiency_records() -> list[MetricRecord]:
    ef = RuleSet.EFFICIENCY
    return [
        _record("bj", "2026Q1", ef, {"deposit": (80, 100)}, _segments(110), _segments(100)),
        _record("sh", "2026Q1", ef, {"deposit": (100, 100)}, _segments(120), _segments(100)),
        _record("gz", "2026Q1", ef, {"deposit": (50, 0)}, _segments(130), _segments(100)),
    ]


def _gallop_records() -> list[MetricRecord]:
    gc, cb = RuleSet.GALLOP_CONSUME, RuleSet.GALLOP_CROSS_BORDER
    return [
        _record("bj", "2026-02", gc, values={"normal_consume": 50, "installment_consume": 5},
                prior={"normal_consume": 50, "installment_consume": 0}),
        _record("bj", "2026-03", gc, values={"normal_consume": 100, "installment_consume": 10},
                prior={"normal_consume": 90, "installment_consume": 10}),
        _record("sh", "2026-03", gc, values={"normal_consume": 100, "installment_consume": 30},
                prior={"normal_consume": 80, "installment_consume": 20}),

        _record("bj", "2026-03", cb, values={"overseas_consume": 60, "cash_withdraw": 0},
                prior={"overseas_consume": 50, "cash_withdraw": 0}),
        _record("sh", "2026-03", cb, values={"overseas_consume": 30, "cash_withdraw": 10},
                prior={"overseas_consume": 40, "cash_withdraw": 10}),
        _record("gz", "2026-03", cb, values={"overseas_consume": 80, "cash_withdraw": 20},
                prior={"overseas_consume": 90, "cash_withdraw": 10}),
    ]


@pytest.fixture
def provider(branches: list[Branch]) -> InMemoryProvider:
    """Deterministic three-branch provider (see module docstring)."""
    return InMemoryProvider(
        branches=branches,
        periods={
            RuleSet.CREDIT_RISK:         ["2025Q3", "2025Q4", "2026Q1"],
            RuleSet.EFFICIENCY:          ["2026Q1"],
            RuleSet.GALLOP_CONSUME:      ["2026-02", "2026-03"],
            RuleSet.GALLOP_CROSS_BORDER: ["2026-03"],
        },
        records=_credit_risk_records() + _efficiency_records() + _gallop_records(),
    )
