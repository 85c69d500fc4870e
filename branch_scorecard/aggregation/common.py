"""
Shared aggregation plumbing.

``AggregationStats`` counts what a report had to paper over: rule fallbacks
(``InvalidMetric`` → documented fallback) and provider misses (``NotFound`` →
zero-filled record).  ``build_report()`` logs both once per report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from branch_scorecard.models.metric import Branch, MetricPair, MetricRecord
from branch_scorecard.provider.base import MetricRowProvider, fetch_or_none
from branch_scorecard.rules.base import InvalidMetric, safe_score
from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet

log = logging.getLogger(__name__)

T = TypeVar("T")

ZERO_PAIR = MetricPair(actual=0.0, target=0.0)


@dataclass
class AggregationStats:
    """Mutable counters for one report run.

    Attributes:
        fallbacks: Rule calls that raised ``InvalidMetric`` and were replaced.
        missing:   Provider lookups that raised ``NotFound`` and were zero-filled.
    """

    fallbacks: int = 0
    missing:   int = 0

    def _count_fallback(self, exc: InvalidMetric) -> None:
        self.fallbacks += 1

    def score(self, fn: Callable[..., T], *args, fallback: T, **kwargs) -> T:
        """``safe_score`` that also counts the fallback."""
        return safe_score(fn, *args, fallback=fallback, on_fallback=self._count_fallback, **kwargs)

    def fetch(
        self,
        provider:  MetricRowProvider,
        branch_id: str,
        period:    str,
        rule_set:  RuleSet,
    ) -> MetricRecord | None:
        """Provider fetch that counts a miss."""
        record = fetch_or_none(provider, branch_id, period, rule_set)
        if record is None:
            self.missing += 1
        return record


def pair_or_zero(record: MetricRecord | None, key: MetricKey) -> MetricPair:
    """The record's pair for ``key``, or a 0/0 pair that every rule rejects."""
    if record is None:
        return ZERO_PAIR
    return record.pair(key) or ZERO_PAIR


def segment_values(values: dict[MetricKey, float]) -> dict[str, float]:
    """Re-key a record's values by plain string for weight lookups."""
    return {key.value: v for key, v in values.items()}


def fetch_period(
    provider: MetricRowProvider,
    branches: list[Branch],
    period:   str,
    rule_set: RuleSet,
    stats:    AggregationStats,
) -> list[tuple[Branch, MetricRecord | None]]:
    """Fetch one period's record for every branch, in branch order."""
    return [(b, stats.fetch(provider, b.branch_id, period, rule_set)) for b in branches]


def round4(value: float) -> float:
    return round(value, 4) + 0.0
