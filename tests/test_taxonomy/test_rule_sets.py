"""Tests for taxonomy/rule_sets.py."""

from __future__ import annotations

from branch_scorecard.taxonomy.rule_sets import (
    SEGMENT_KEYS,
    MetricKey,
    RuleSet,
    SortDirection,
)


class TestRuleSet:
    def test_quarterly(self):
        assert RuleSet.CREDIT_RISK.is_quarterly
        assert RuleSet.EFFICIENCY.is_quarterly
        assert not RuleSet.GALLOP_CONSUME.is_quarterly

    def test_string_values(self):
        assert RuleSet("gallop_zhuojun") is RuleSet.GALLOP_ZHUOJUN
        assert RuleSet.CREDIT_RISK == "credit_risk"


class TestMetricKey:
    def test_segment_keys_match_weight_names(self):
        assert [k.value for k in SEGMENT_KEYS] == [
            "annual_10k", "new_active", "highend_active", "cross_border",
        ]

    def test_cross_border_customers_value(self):
        assert MetricKey.CROSS_BORDER_CUSTOMERS.value == "cross_border"


class TestSortDirection:
    def test_flipped(self):
        assert SortDirection.ASC.flipped() is SortDirection.DESC
        assert SortDirection.DESC.flipped() is SortDirection.ASC
