"""
Abstract metric provider contract.

Every data source (a JSON dataset, a warehouse query, a network service)
implements three read-only calls:

  get_quarter_detail(branch_id, period, rule_set) -> MetricRecord
      Raises ``NotFound`` when the triple has no data.  Callers zero-fill;
      ``NotFound`` is never fatal to a report.

  list_branches(rule_set) -> list[Branch]
      The universe of branches for ranking and the selection dialog, in
      display order.  Display order is the tie-break order for ranking.

  list_periods(rule_set) -> list[str]
      Chronological period ids (quarters or months) used by the aggregator
      lookback windows and the trend period axis.

``fetch_or_none()`` is the shared zero-fill adapter used by the aggregator
and the trend assembler.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from branch_scorecard.models.metric import Branch, MetricRecord
from branch_scorecard.taxonomy.rule_sets import RuleSet

log = logging.getLogger(__name__)


class NotFound(LookupError):
    """Raised when a provider has no record for a (branch, period, rule set).

    Attributes:
        branch_id: Requested branch.
        period:    Requested period id.
        rule_set:  Requested rule set.
    """

    def __init__(self, branch_id: str, period: str, rule_set: RuleSet) -> None:
        self.branch_id = branch_id
        self.period    = period
        self.rule_set  = rule_set
        super().__init__(
            f"No {rule_set.value} data for branch '{branch_id}' in period '{period}'."
        )


class MetricRowProvider(ABC):
    """Read-only source of raw per-branch, per-period metric records."""

    @abstractmethod
    def get_quarter_detail(
        self,
        branch_id: str,
        period:    str,
        rule_set:  RuleSet,
    ) -> MetricRecord:
        """Return the raw record for one branch, period and rule set.

        Raises:
            NotFound: If no data exists for the triple.
        """

    @abstractmethod
    def list_branches(self, rule_set: RuleSet) -> list[Branch]:
        """Return the ordered branch universe for ``rule_set``."""

    @abstractmethod
    def list_periods(self, rule_set: RuleSet) -> list[str]:
        """Return chronological period ids for ``rule_set``."""

    def branch_name(self, branch_id: str, rule_set: RuleSet) -> str:
        """Display name for ``branch_id``, falling back to the id itself."""
        for branch in self.list_branches(rule_set):
            if branch.branch_id == branch_id:
                return branch.name
        return branch_id


def fetch_or_none(
    provider:  MetricRowProvider,
    branch_id: str,
    period:    str,
    rule_set:  RuleSet,
) -> MetricRecord | None:
    """Fetch a record, converting ``NotFound`` into ``None``."""
    try:
        return provider.get_quarter_detail(branch_id, period, rule_set)
    except NotFound as exc:
        log.debug("Zero-filling missing record: %s", exc)
        return None
