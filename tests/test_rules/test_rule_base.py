"""
Tests for rules/base.py — InvalidMetric, safe_score(), round2().

What we test
------------
1. InvalidMetric is a ValueError carrying rule and reason.
2. safe_score returns the rule's value, or the fallback on InvalidMetric.
3. safe_score calls on_fallback only when a fallback was applied.
4. Errors other than InvalidMetric propagate.
5. round2 folds negative zero.
"""

from __future__ import annotations

import logging
import math

import pytest

from branch_scorecard.rules.base import InvalidMetric, clamp, round2, safe_score


def _rule(x: float) -> float:
    if x <= 0:
        raise InvalidMetric("demo", f"x must be positive, got {x}.")
    return 1 / x


class TestInvalidMetric:
    def test_is_value_error(self):
        exc = InvalidMetric("bad_debt", "target must be positive")
        assert isinstance(exc, ValueError)
        assert exc.rule == "bad_debt"
        assert "bad_debt" in str(exc)


class TestSafeScore:
    def test_returns_value(self):
        assert safe_score(_rule, 4, fallback=0.0) == 0.25

    def test_returns_fallback(self):
        assert safe_score(_rule, 0, fallback=-1.0) == -1.0

    def test_on_fallback_called(self):
        seen: list[InvalidMetric] = []
        safe_score(_rule, 2, fallback=0.0, on_fallback=seen.append)
        assert seen == []
        safe_score(_rule, -2, fallback=0.0, on_fallback=seen.append)
        assert len(seen) == 1
        assert seen[0].rule == "demo"

    def test_fallback_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="branch_scorecard.rules.base"):
            safe_score(_rule, 0, fallback=0.0)
        assert any("fallback" in r.message.lower() for r in caplog.records)

    def test_other_errors_propagate(self):
        def broken(_):
            raise KeyError("boom")

        with pytest.raises(KeyError):
            safe_score(broken, 1, fallback=0.0)


class TestHelpers:
    def test_round2_folds_negative_zero(self):
        assert math.copysign(1.0, round2(-0.001)) == 1.0

    def test_round2(self):
        assert round2(7.0199999) == 7.02

    def test_clamp(self):
        assert clamp(5, 0, 1) == 1
        assert clamp(-5, 0, 1) == 0
        assert clamp(0.5, 0, 1) == 0.5
