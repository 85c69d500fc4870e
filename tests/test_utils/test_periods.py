"""
Tests for utils/periods.py.

What we test
------------
1. Quarter / month id recognition.
2. Chronological sort key across both grammars; unknown formats raise.
3. short_label().
4. lookback_window(): inclusive, oldest first, truncated at history start,
   empty for an unknown period.
"""

from __future__ import annotations

import pytest

from branch_scorecard.utils.periods import (
    is_month_id,
    is_quarter_id,
    lookback_window,
    period_sort_key,
    short_label,
)

_QUARTERS = ["2025Q2", "2025Q3", "2025Q4", "2026Q1"]


class TestRecognition:
    def test_quarters(self):
        assert is_quarter_id("2026Q1")
        assert not is_quarter_id("2026Q5")
        assert not is_quarter_id("2026-01")

    def test_months(self):
        assert is_month_id("2026-03")
        assert not is_month_id("2026-13")
        assert not is_month_id("2026Q1")


class TestSortKey:
    def test_quarters_sort_chronologically(self):
        assert sorted(["2026Q1", "2025Q4", "2025Q2"], key=period_sort_key) == [
            "2025Q2", "2025Q4", "2026Q1",
        ]

    def test_months_sort_chronologically(self):
        assert sorted(["2026-02", "2025-12", "2026-01"], key=period_sort_key) == [
            "2025-12", "2026-01", "2026-02",
        ]

    def test_unknown_format_raises(self):
        with pytest.raises(ValueError, match="Unrecognized period"):
            period_sort_key("Q1-2026")


class TestShortLabel:
    def test_labels(self):
        assert short_label("2026Q1") == "26Q1"
        assert short_label("2026-03") == "26-03"


class TestLookbackWindow:
    def test_two_quarters(self):
        assert lookback_window(_QUARTERS, "2026Q1", 2) == ["2025Q4", "2026Q1"]

    def test_three_quarters(self):
        assert lookback_window(_QUARTERS, "2026Q1", 3) == ["2025Q3", "2025Q4", "2026Q1"]

    def test_truncated_at_start(self):
        assert lookback_window(_QUARTERS, "2025Q2", 3) == ["2025Q2"]

    def test_unknown_period(self):
        assert lookback_window(_QUARTERS, "2024Q1", 2) == []
