"""
Tests for aggregation/credit_risk.py.

What we test
------------
1. Window sums: bad debt and recovery over 2 quarters, write-off over 3.
2. Compliance is taken from the selected quarter only.
3. A missing quarter is zero-filled (found=False) and marks the row incomplete.
4. Undefined ratios fall back to 0 and are counted.
5. The earliest quarter gets truncated windows.
6. Every row's total equals the signed sum of its components.
"""

from __future__ import annotations

import pytest

from branch_scorecard.aggregation.common import AggregationStats
from branch_scorecard.aggregation.credit_risk import aggregate_credit_risk, score_quarter
from branch_scorecard.config import CreditRiskConfig
from branch_scorecard.taxonomy.rule_sets import RuleSet


def _by_id(rows):
    return {r.branch_id: r for r in rows}


@pytest.fixture
def rows_2026q1(provider):
    stats = AggregationStats()
    rows = aggregate_credit_risk(provider, "2026Q1", CreditRiskConfig(), stats)
    return _by_id(rows), stats


# ── Window sums ───────────────────────────────────────────────────────────────


class TestWindowSums:
    def test_all_within_targets(self, rows_2026q1):
        bj = rows_2026q1[0]["bj"]
        assert bj.bad_debt_total_score == pytest.approx(23.40)
        assert bj.recovery_total_score == pytest.approx(15.60)
        assert bj.writeoff_total_deduction == 0.0
        assert bj.total_score == pytest.approx(39.00)

    def test_mixed_quarters(self, rows_2026q1):
        sh = rows_2026q1[0]["sh"]
        # 2025Q4 bad debt 120/100 → 7.02, 2026Q1 on target → 11.70
        assert sh.bad_debt_total_score == pytest.approx(18.72)
        # 2025Q4 recovery 65% → 3.90, 2026Q1 130% → 7.80
        assert sh.recovery_total_score == pytest.approx(11.70)
        # write-off window reaches back to 2025Q3: −1.00 + 0 − 2.00
        assert sh.writeoff_total_deduction == pytest.approx(-3.00)
        assert sh.compliance_deduction == pytest.approx(-0.5)
        assert sh.total_score == pytest.approx(26.92)

    def test_quarter_details_chronological(self, rows_2026q1):
        sh = rows_2026q1[0]["sh"]
        assert [d.quarter_id for d in sh.quarter_details] == ["2025Q3", "2025Q4", "2026Q1"]
        assert sh.quarter_details[1].bad_debt_score == pytest.approx(7.02)

    def test_total_matches_components(self, rows_2026q1):
        for row in rows_2026q1[0].values():
            assert row.total_score == pytest.approx(row.component_sum())

    def test_truncated_window_at_first_quarter(self, provider):
        rows = _by_id(aggregate_credit_risk(provider, "2025Q3", CreditRiskConfig(), AggregationStats()))
        assert rows["bj"].bad_debt_total_score == pytest.approx(11.70)
        assert len(rows["bj"].quarter_details) == 1

    def test_custom_window(self, provider):
        params = CreditRiskConfig(bad_debt_window=3)
        rows = _by_id(aggregate_credit_risk(provider, "2026Q1", params, AggregationStats()))
        assert rows["bj"].bad_debt_total_score == pytest.approx(35.10)


# ── Compliance ────────────────────────────────────────────────────────────────


class TestCompliance:
    def test_selected_quarter_only(self, provider):
        rows = _by_id(aggregate_credit_risk(provider, "2025Q4", CreditRiskConfig(), AggregationStats()))
        # sh's −0.5 belongs to 2026Q1 and must not leak into 2025Q4
        assert rows["sh"].compliance_deduction == 0.0


# ── Missing data and fallbacks ────────────────────────────────────────────────


class TestMissingAndFallbacks:
    def test_missing_quarter_zero_filled(self, rows_2026q1):
        gz = rows_2026q1[0]["gz"]
        q4 = next(d for d in gz.quarter_details if d.quarter_id == "2025Q4")
        assert q4.found is False
        assert q4.bad_debt_score == 0.0
        assert gz.data_complete is False

    def test_complete_rows(self, rows_2026q1):
        assert rows_2026q1[0]["bj"].data_complete is True
        assert rows_2026q1[0]["sh"].data_complete is True

    def test_fallbacks_counted(self, rows_2026q1):
        gz = rows_2026q1[0]["gz"]
        _, stats = rows_2026q1
        # recovery target 0 (rate + score) and a positive compliance input
        assert stats.fallbacks == 3
        assert stats.missing == 1
        assert gz.recovery_total_score == 0.0
        assert gz.compliance_deduction == 0.0
        assert gz.total_score == 0.0

    def test_score_quarter_none(self):
        detail = score_quarter(None, "2026Q1", CreditRiskConfig(), AggregationStats())
        assert detail.found is False
        assert detail.writeoff_deduction == 0.0

    def test_score_quarter_missing_pair(self, make_record):
        rec = make_record("bj", "2026Q1", RuleSet.CREDIT_RISK,
                          pairs={"bad_debt": (50, 100)})
        stats = AggregationStats()
        detail = score_quarter(rec, "2026Q1", CreditRiskConfig(), stats)
        assert detail.bad_debt_score == pytest.approx(11.70)
        assert detail.recovery_score == 0.0
        # recovery rate/score and write-off rate/deduction
        assert stats.fallbacks == 4
