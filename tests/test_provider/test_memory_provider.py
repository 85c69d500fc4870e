"""
Tests for provider/memory.py and provider/base.py.

What we test
------------
1. get_quarter_detail returns the stored record or raises NotFound.
2. list_branches keeps display order and honours per-branch restrictions.
3. list_periods is chronological regardless of input order.
4. Duplicate branch ids / record keys are rejected.
5. fetch_or_none converts NotFound to None; branch_name falls back to the id.
"""

from __future__ import annotations

import pytest

from branch_scorecard.models.metric import Branch
from branch_scorecard.provider.base import NotFound, fetch_or_none
from branch_scorecard.provider.memory import InMemoryProvider
from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet


class TestLookups:
    def test_found(self, provider):
        rec = provider.get_quarter_detail("sh", "2026Q1", RuleSet.CREDIT_RISK)
        assert rec.value(MetricKey.COMPLIANCE) == -0.5

    def test_not_found(self, provider):
        with pytest.raises(NotFound) as exc_info:
            provider.get_quarter_detail("gz", "2025Q4", RuleSet.CREDIT_RISK)
        assert exc_info.value.branch_id == "gz"
        assert isinstance(exc_info.value, LookupError)

    def test_accepts_string_rule_set(self, provider):
        assert provider.get_quarter_detail("bj", "2026Q1", "credit_risk").branch_id == "bj"

    def test_fetch_or_none(self, provider):
        assert fetch_or_none(provider, "gz", "2025Q4", RuleSet.CREDIT_RISK) is None
        assert fetch_or_none(provider, "bj", "2025Q4", RuleSet.CREDIT_RISK) is not None


class TestListing:
    def test_branch_order(self, provider):
        assert [b.branch_id for b in provider.list_branches(RuleSet.CREDIT_RISK)] == ["bj", "sh", "gz"]

    def test_periods_sorted(self, branches):
        p = InMemoryProvider(branches, {RuleSet.CREDIT_RISK: ["2026Q1", "2025Q3", "2025Q4"]})
        assert p.list_periods(RuleSet.CREDIT_RISK) == ["2025Q3", "2025Q4", "2026Q1"]

    def test_unknown_rule_set_periods_empty(self, provider):
        assert provider.list_periods(RuleSet.GALLOP_ZHUOJUN) == []

    def test_branch_restriction(self, branches):
        p = InMemoryProvider(branches, {}, branch_rule_sets={"gz": [RuleSet.EFFICIENCY]})
        assert [b.branch_id for b in p.list_branches(RuleSet.CREDIT_RISK)] == ["bj", "sh"]
        assert [b.branch_id for b in p.list_branches(RuleSet.EFFICIENCY)] == ["bj", "sh", "gz"]

    def test_branch_name(self, provider):
        assert provider.branch_name("sh", RuleSet.CREDIT_RISK) == "上海分行"
        assert provider.branch_name("xx", RuleSet.CREDIT_RISK) == "xx"


class TestValidation:
    def test_duplicate_branch(self):
        b = Branch(branch_id="bj", name="北京")
        with pytest.raises(ValueError, match="Duplicate branch_id"):
            InMemoryProvider([b, b], {})

    def test_duplicate_record(self, branches, make_record):
        rec = make_record("bj", "2026Q1", RuleSet.CREDIT_RISK)
        with pytest.raises(ValueError, match="Duplicate record"):
            InMemoryProvider(branches, {RuleSet.CREDIT_RISK: ["2026Q1"]}, [rec, rec])

    def test_len(self, provider):
        assert len(provider) == 17
