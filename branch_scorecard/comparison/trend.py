"""
Trend series assembly for a confirmed comparison.

For each confirmed indicator, for each period on the axis, for each confirmed
branch, the value is read off that period's scored row (so an indicator is
always a numeric ``BranchRow`` field).  A branch the provider has no record
for in a period, or a period the provider does not list for the rule set,
contributes ``0`` with ``missing=True``; assembly never fails on missing data.

Colours are assigned by position in the confirmed branch list, wrapping
around the configured palette, so the same selection always renders the same
way.

Scored reports are cached per ``(rule_set, period)`` for the lifetime of one
``TrendAssembler``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from branch_scorecard.aggregation.report import ROW_TYPES, ScoreReport, build_report
from branch_scorecard.config import AppConfig
from branch_scorecard.models.indicator import Tab
from branch_scorecard.provider.base import MetricRowProvider, fetch_or_none
from branch_scorecard.taxonomy.rule_sets import RuleSet
from branch_scorecard.utils.periods import short_label

log = logging.getLogger(__name__)


class TrendPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: str
    label: str
    value: float
    missing: bool = False


class BranchSeries(BaseModel):
    """One branch's line on one indicator chart."""

    model_config = ConfigDict(frozen=True)

    branch_id: str
    branch_name: str
    color: str
    points: tuple[TrendPoint, ...]

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]


class TrendSeries(BaseModel):
    """All branch lines for one indicator on a shared period axis."""

    model_config = ConfigDict(frozen=True)

    indicator_id: str
    label: str
    periods: tuple[str, ...]
    series: tuple[BranchSeries, ...]


class TrendAssembler:
    """Builds ``TrendSeries`` from a provider.

    Args:
        provider: Metric source.
        config:   Application config (rule parameters and chart palette).
    """

    def __init__(self, provider: MetricRowProvider, config: Optional[AppConfig] = None) -> None:
        self.provider = provider
        self.config   = config or AppConfig()
        self._reports: dict[tuple[RuleSet, str], ScoreReport] = {}

    def color_for(self, index: int) -> str:
        palette = self.config.comparison.palette
        return palette[index % len(palette)]

    def _report(self, rule_set: RuleSet, period: str) -> ScoreReport:
        key = (rule_set, period)
        if key not in self._reports:
            self._reports[key] = build_report(self.provider, rule_set, period, self.config)
        return self._reports[key]

    def _point(
        self,
        rule_set:     RuleSet,
        branch_id:    str,
        period:       str,
        indicator_id: str,
        listed:       frozenset[str],
    ) -> TrendPoint:
        label = short_label(period)
        if period not in listed:
            return TrendPoint(period=period, label=label, value=0.0, missing=True)
        if fetch_or_none(self.provider, branch_id, period, rule_set) is None:
            return TrendPoint(period=period, label=label, value=0.0, missing=True)
        row = self._report(rule_set, period).row(branch_id)
        if row is None:
            return TrendPoint(period=period, label=label, value=0.0, missing=True)
        return TrendPoint(period=period, label=label, value=float(getattr(row, indicator_id)))

    def assemble(
        self,
        tab:           Tab,
        branch_ids:    Sequence[str],
        indicator_ids: Sequence[str],
        periods:       Optional[Sequence[str]] = None,
    ) -> list[TrendSeries]:
        """Assemble one ``TrendSeries`` per indicator.

        Args:
            tab:           Active tab (fixes the rule set and indicator labels).
            branch_ids:    Confirmed branches, in selection order.
            indicator_ids: Confirmed indicators, in selection order.
            periods:       Period axis; defaults to every provider period.

        Returns:
            Series in ``indicator_ids`` order; empty if either selection is empty.

        Raises:
            ValueError: If an indicator is not a numeric field of the tab's rows.
        """
        if not branch_ids or not indicator_ids:
            return []

        rule_set = tab.rule_set
        numeric  = ROW_TYPES[rule_set].numeric_fields()
        for ind in indicator_ids:
            if ind not in numeric:
                raise ValueError(
                    f"Indicator '{ind}' is not a numeric {rule_set.value} field."
                )

        listed = frozenset(self.provider.list_periods(rule_set))
        axis   = tuple(periods) if periods is not None else tuple(self.provider.list_periods(rule_set))
        log.debug(
            "Assembling %d indicators x %d branches over %d periods",
            len(indicator_ids), len(branch_ids), len(axis),
        )

        result: list[TrendSeries] = []
        for ind in indicator_ids:
            definition = tab.indicator(ind)
            lines = tuple(
                BranchSeries(
                    branch_id=bid,
                    branch_name=self.provider.branch_name(bid, rule_set),
                    color=self.color_for(idx),
                    points=tuple(self._point(rule_set, bid, p, ind, listed) for p in axis),
                )
                for idx, bid in enumerate(branch_ids)
            )
            result.append(
                TrendSeries(
                    indicator_id=ind,
                    label=definition.label if definition else ind,
                    periods=axis,
                    series=lines,
                )
            )
        return result
