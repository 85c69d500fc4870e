"""
Indicator definitions and the per-tab comparison catalogues.

An ``IndicatorDef.id`` is always the name of a numeric field on the row type
of its tab's rule set, so the trend assembler can read the value straight off
a scored row.  ``parent_id`` only groups sub-indicators for display.

A ``Tab`` is what the dashboard calls a rule-set tab: it fixes the rule set
and the ordered indicator list offered by the comparison dialog.  The first
indicator is the dialog's default selection.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from branch_scorecard.taxonomy.rule_sets import RuleSet


class IndicatorDef(BaseModel):
    """A comparable indicator."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    parent_id: Optional[str] = None


class Tab(BaseModel):
    """A rule-set tab with its comparison indicator catalogue."""

    model_config = ConfigDict(frozen=True)

    tab_id: str
    rule_set: RuleSet
    label: str
    indicators: tuple[IndicatorDef, ...]

    @model_validator(mode="after")
    def validate_indicators(self) -> "Tab":
        if not self.indicators:
            raise ValueError(f"Tab '{self.tab_id}' must offer at least one indicator.")
        ids = [i.id for i in self.indicators]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Tab '{self.tab_id}' has duplicate indicator ids.")
        known = set(ids)
        for ind in self.indicators:
            if ind.parent_id is not None and ind.parent_id not in known:
                raise ValueError(
                    f"Indicator '{ind.id}' references unknown parent '{ind.parent_id}'."
                )
        return self

    @property
    def default_indicator(self) -> str:
        return self.indicators[0].id

    def indicator(self, indicator_id: str) -> IndicatorDef | None:
        for ind in self.indicators:
            if ind.id == indicator_id:
                return ind
        return None


def _ind(id: str, label: str, parent_id: str | None = None) -> IndicatorDef:
    return IndicatorDef(id=id, label=label, parent_id=parent_id)


_CREDIT_RISK_TOTAL = _ind("total_score", "信用风险总得分")

TABS: dict[str, Tab] = {
    tab.tab_id: tab
    for tab in (
        Tab(
            tab_id="credit_risk.overview",
            rule_set=RuleSet.CREDIT_RISK,
            label="得分总览",
            indicators=(
                _CREDIT_RISK_TOTAL,
                _ind("bad_debt_total_score", "新发生不良得分"),
                _ind("recovery_total_score", "表内清收得分"),
                _ind("writeoff_total_deduction", "核销动用扣分"),
                _ind("compliance_deduction", "内控合规扣分"),
            ),
        ),
        Tab(
            tab_id="credit_risk.bad_debt",
            rule_set=RuleSet.CREDIT_RISK,
            label="新发生不良得分明细",
            indicators=(_ind("bad_debt_total_score", "新发生不良得分（合计）"), _CREDIT_RISK_TOTAL),
        ),
        Tab(
            tab_id="credit_risk.recovery",
            rule_set=RuleSet.CREDIT_RISK,
            label="表内清收得分明细",
            indicators=(_ind("recovery_total_score", "表内清收得分（合计）"), _CREDIT_RISK_TOTAL),
        ),
        Tab(
            tab_id="credit_risk.writeoff",
            rule_set=RuleSet.CREDIT_RISK,
            label="核销动用扣分明细",
            indicators=(_ind("writeoff_total_deduction", "核销动用扣分（合计）"), _CREDIT_RISK_TOTAL),
        ),
        Tab(
            tab_id="efficiency.overview",
            rule_set=RuleSet.EFFICIENCY,
            label="对私折效得分总览",
            indicators=(
                _ind("total_score", "得分"),
                _ind("system_score", "比系统得分"),
                _ind("deposit_deduction", "对私商户日均存款扣分"),
                _ind("weighted_count", "折效客户数"),
                _ind("annual_10k", "信用卡年消费1w客户", "weighted_count"),
                _ind("new_active", "新增活跃客户", "weighted_count"),
                _ind("highend_active", "中高端新增活跃客户", "weighted_count"),
                _ind("cross_border", "跨境交易客户", "weighted_count"),
                _ind("growth_rate", "增速"),
                _ind("growth_increment", "增量"),
            ),
        ),
        Tab(
            tab_id="gallop.efficiency",
            rule_set=RuleSet.GALLOP_EFFICIENCY,
            label="信用卡折效客户数",
            indicators=(
                _ind("weighted_count", "折效客户数"),
                _ind("annual_10k", "信用卡年消费1万以上客户", "weighted_count"),
                _ind("new_active", "新增活跃客户", "weighted_count"),
                _ind("highend_active", "中高端新增活跃客户", "weighted_count"),
                _ind("cross_border", "跨境交易客户", "weighted_count"),
                _ind("weighted_count_base", "上年基数"),
            ),
        ),
        Tab(
            tab_id="gallop.consume",
            rule_set=RuleSet.GALLOP_CONSUME,
            label="信用卡消费",
            indicators=(
                _ind("total_consume", "信用卡消费总额"),
                _ind("normal_consume", "普通消费", "total_consume"),
                _ind("installment_consume", "客户分期消费额", "total_consume"),
                _ind("yoy_growth", "同比增长率"),
                _ind("total_score", "得分"),
            ),
        ),
        Tab(
            tab_id="gallop.cross_border",
            rule_set=RuleSet.GALLOP_CROSS_BORDER,
            label="信用卡跨境交易",
            indicators=(
                _ind("total_cross", "跨境交易总额"),
                _ind("overseas_consume", "境外消费", "total_cross"),
                _ind("cash_withdraw", "取现交易额", "total_cross"),
                _ind("contribution", "贡献度"),
                _ind("contribution_change", "贡献度变动"),
                _ind("total_score", "得分"),
            ),
        ),
        Tab(
            tab_id="gallop.zhuojun",
            rule_set=RuleSet.GALLOP_ZHUOJUN,
            label="卓隽信用卡发卡",
            indicators=(
                _ind("new_cards", "新发活动卡量"),
                _ind("contribution", "贡献度"),
                _ind("contribution_change", "贡献度变动"),
                _ind("total_score", "得分"),
            ),
        ),
    )
}


def get_tab(tab_id: str) -> Tab:
    """Look up a tab by id.

    Raises:
        KeyError: If ``tab_id`` is not a known tab.
    """
    try:
        return TABS[tab_id]
    except KeyError:
        raise KeyError(
            f"Unknown tab '{tab_id}'. Known tabs: {', '.join(sorted(TABS))}."
        ) from None
