"""
Rule-set and metric-key taxonomy.

``RuleSet`` names each family of scoring rules sharing a lookback window and
point budget.  Each rule set has its own period grammar:

  - ``CREDIT_RISK``, ``EFFICIENCY``           → quarters (``YYYYQn``)
  - ``GALLOP_*``                              → months   (``YYYY-MM``, YTD)

``MetricKey`` names the raw actual/target pairs and plain values a provider
supplies inside a ``MetricRecord``.  Keeping them in one enum means a typo in
a dataset file is caught at load time instead of silently zero-filling.

This module has NO imports from any other ``branch_scorecard`` package.
"""

from enum import StrEnum


class RuleSet(StrEnum):
    """Named family of scoring rules."""

    CREDIT_RISK = "credit_risk"
    """Bad-debt, recovery, write-off and compliance; quarterly, multi-quarter sums."""

    EFFICIENCY = "efficiency"
    """Weighted customer-count growth vs. peers minus deposit shortfall deduction."""

    GALLOP_EFFICIENCY = "gallop_efficiency"
    """Gallop weighted customer count (3.5/18/35/8 weights); informational system score."""

    GALLOP_CONSUME = "gallop_consume"
    """Card consumption YoY growth, rank-interpolated over a 30-point budget."""

    GALLOP_CROSS_BORDER = "gallop_cross_border"
    """Cross-border volume contribution + contribution change, 7.5 + 7.5 points."""

    GALLOP_ZHUOJUN = "gallop_zhuojun"
    """Zhuojun premium-card issuance contribution + change, 5 + 5 points."""

    @property
    def is_quarterly(self) -> bool:
        return self in (RuleSet.CREDIT_RISK, RuleSet.EFFICIENCY)


class MetricKey(StrEnum):
    """Keys used in ``MetricRecord.pairs`` / ``values`` / ``prior_values``."""

    # ── Actual/target pairs ───────────────────────────────────────────────────
    BAD_DEBT = "bad_debt"
    RECOVERY = "recovery"
    WRITEOFF = "writeoff"
    DEPOSIT = "deposit"

    # ── Judgmental inputs ─────────────────────────────────────────────────────
    COMPLIANCE = "compliance"

    # ── Customer segments (efficiency + gallop efficiency) ────────────────────
    ANNUAL_10K = "annual_10k"
    NEW_ACTIVE = "new_active"
    HIGHEND_ACTIVE = "highend_active"
    CROSS_BORDER_CUSTOMERS = "cross_border"

    # ── Gallop volumes ────────────────────────────────────────────────────────
    NORMAL_CONSUME = "normal_consume"
    INSTALLMENT_CONSUME = "installment_consume"
    OVERSEAS_CONSUME = "overseas_consume"
    CASH_WITHDRAW = "cash_withdraw"
    NEW_CARDS = "new_cards"


SEGMENT_KEYS: tuple[MetricKey, ...] = (
    MetricKey.ANNUAL_10K,
    MetricKey.NEW_ACTIVE,
    MetricKey.HIGHEND_ACTIVE,
    MetricKey.CROSS_BORDER_CUSTOMERS,
)


class SortDirection(StrEnum):
    """Table sort direction."""

    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC
