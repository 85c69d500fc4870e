"""
Dict-backed ``MetricRowProvider``.

Holds everything in memory, keyed by ``(branch_id, period, rule_set)``.
Periods are sorted chronologically on construction, so callers may pass
them in any order.

Usage::

    provider = InMemoryProvider(
        branches=[Branch(branch_id="beijing", name="北京市分行")],
        periods={RuleSet.CREDIT_RISK: ["2025Q4", "2026Q1"]},
        records=[MetricRecord(...), ...],
    )
"""

from __future__ import annotations

from typing import Iterable, Mapping

from branch_scorecard.models.metric import Branch, MetricRecord
from branch_scorecard.provider.base import MetricRowProvider, NotFound
from branch_scorecard.taxonomy.rule_sets import RuleSet
from branch_scorecard.utils.periods import period_sort_key


class InMemoryProvider(MetricRowProvider):
    """In-memory provider.

    Args:
        branches: Branch universe in display order.  Shared by every rule set
            unless ``branch_rule_sets`` restricts a branch.
        periods:  Period ids per rule set.
        records:  Raw records; duplicates of the same key are rejected.
        branch_rule_sets: Optional ``branch_id -> rule sets`` restriction.

    Raises:
        ValueError: On duplicate branch ids or duplicate record keys.
    """

    def __init__(
        self,
        branches: Iterable[Branch],
        periods:  Mapping[RuleSet, Iterable[str]],
        records:  Iterable[MetricRecord] = (),
        branch_rule_sets: Mapping[str, Iterable[RuleSet]] | None = None,
    ) -> None:
        self._branches = list(branches)
        ids = [b.branch_id for b in self._branches]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate branch_id in provider branch list.")

        self._periods: dict[RuleSet, list[str]] = {
            RuleSet(rs): sorted(set(ps), key=period_sort_key)
            for rs, ps in periods.items()
        }
        self._restrictions: dict[str, frozenset[RuleSet]] = {
            bid: frozenset(RuleSet(r) for r in rss)
            for bid, rss in (branch_rule_sets or {}).items()
        }

        self._records: dict[tuple[str, str, RuleSet], MetricRecord] = {}
        for rec in records:
            key = (rec.branch_id, rec.period, rec.rule_set)
            if key in self._records:
                raise ValueError(
                    f"Duplicate record for branch '{rec.branch_id}', "
                    f"period '{rec.period}', rule set '{rec.rule_set.value}'."
                )
            self._records[key] = rec

    def get_quarter_detail(
        self,
        branch_id: str,
        period:    str,
        rule_set:  RuleSet,
    ) -> MetricRecord:
        rec = self._records.get((branch_id, period, RuleSet(rule_set)))
        if rec is None:
            raise NotFound(branch_id, period, RuleSet(rule_set))
        return rec

    def list_branches(self, rule_set: RuleSet) -> list[Branch]:
        rule_set = RuleSet(rule_set)
        return [
            b for b in self._branches
            if b.branch_id not in self._restrictions
            or rule_set in self._restrictions[b.branch_id]
        ]

    def list_periods(self, rule_set: RuleSet) -> list[str]:
        return list(self._periods.get(RuleSet(rule_set), []))

    def __len__(self) -> int:
        return len(self._records)
