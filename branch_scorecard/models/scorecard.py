"""
Scored branch row models.

One ``BranchRow`` subclass per rule set.  Every row declares its signed
scoring components in ``COMPONENTS``; a model validator enforces that
``total_score`` equals their algebraic sum (to the cent), so a row whose
total drifted from its components cannot be constructed.

Rows are frozen.  The ranking engine re-ranks by producing copies
(``model_copy(update={"rank": ...})``), never by mutating a shared list.

``data_complete`` is ``False`` when any required provider lookup for the
report period came back ``NotFound`` and was zero-filled; consumers render
those cells as "–".
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

_TOTAL_TOLERANCE = 0.005


class QuarterDetail(BaseModel):
    """Credit-risk inputs and per-rule outcomes for one branch and one quarter.

    Attributes:
        quarter_id:          ``YYYYQn``.
        bad_debt_actual:     New bad-debt amount.
        bad_debt_target:     Bad-debt ceiling.
        bad_debt_score:      0 – 11.70.
        recovery_actual:     On-balance-sheet cash recovered.
        recovery_target:     Recovery target.
        recovery_rate:       ``actual / target`` (fraction, 1.30 = 130%).
        recovery_score:      0 – 7.80.
        writeoff_actual:     Write-off quota used.
        writeoff_target:     Write-off control target.
        writeoff_control_rate: ``(actual − target) / target``; 0 within target.
        writeoff_deduction:  −2.00 – 0.
        compliance_deduction: Judgmental input for the quarter (≤ 0).
        found:               ``False`` when the provider had no record and
                             the quarter was zero-filled.
    """

    model_config = ConfigDict(frozen=True)

    quarter_id: str
    bad_debt_actual: float = 0.0
    bad_debt_target: float = 0.0
    bad_debt_score: float = 0.0
    recovery_actual: float = 0.0
    recovery_target: float = 0.0
    recovery_rate: float = 0.0
    recovery_score: float = 0.0
    writeoff_actual: float = 0.0
    writeoff_target: float = 0.0
    writeoff_control_rate: float = 0.0
    writeoff_deduction: float = 0.0
    compliance_deduction: float = 0.0
    found: bool = True


class BranchRow(BaseModel):
    """Common shape of every ranked scorecard row."""

    model_config = ConfigDict(frozen=True)

    # (field name, sign) pairs whose signed sum is ``total_score``.
    COMPONENTS: ClassVar[tuple[tuple[str, int], ...]] = ()

    branch_id: str
    branch_name: str
    rank: int = 1
    total_score: float
    data_complete: bool = True

    @field_validator("rank")
    @classmethod
    def validate_rank(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"rank must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_total_matches_components(self) -> "BranchRow":
        if not self.COMPONENTS:
            return self
        expected = self.component_sum()
        if abs(self.total_score - expected) > _TOTAL_TOLERANCE:
            raise ValueError(
                f"{type(self).__name__} '{self.branch_id}': total_score "
                f"{self.total_score} != sum of components {expected}."
            )
        return self

    def components(self) -> dict[str, float]:
        """Signed scoring components keyed by field name."""
        return {name: sign * getattr(self, name) for name, sign in self.COMPONENTS}

    def component_sum(self) -> float:
        return round(sum(self.components().values()), 2)

    @classmethod
    def numeric_fields(cls) -> frozenset[str]:
        """Field names that can be used as a sort key or trend indicator."""
        return frozenset(
            name
            for name, info in cls.model_fields.items()
            if info.annotation in (int, float)
        )


# ── Credit risk ───────────────────────────────────────────────────────────────


class CreditRiskRow(BranchRow):
    """Credit-risk scorecard row.

    ``total_score = bad_debt_total_score + recovery_total_score
                    + writeoff_total_deduction + compliance_deduction``
    (the two deduction fields are ≤ 0).
    """

    COMPONENTS: ClassVar[tuple[tuple[str, int], ...]] = (
        ("bad_debt_total_score", 1),
        ("recovery_total_score", 1),
        ("writeoff_total_deduction", 1),
        ("compliance_deduction", 1),
    )

    bad_debt_total_score: float
    recovery_total_score: float
    writeoff_total_deduction: float
    compliance_deduction: float
    quarter_details: list[QuarterDetail] = []

    @field_validator("writeoff_total_deduction", "compliance_deduction")
    @classmethod
    def validate_non_positive(cls, v: float) -> float:
        if v > 0:
            raise ValueError(f"Deductions must be <= 0, got {v}.")
        return v


# ── Efficiency ────────────────────────────────────────────────────────────────


class EfficiencyRow(BranchRow):
    """Operating-efficiency scorecard row.

    ``total_score = system_score − deposit_deduction`` where
    ``deposit_deduction`` is stored as a non-negative magnitude.
    """

    COMPONENTS: ClassVar[tuple[tuple[str, int], ...]] = (
        ("system_score", 1),
        ("deposit_deduction", -1),
    )

    annual_10k: float = 0.0
    new_active: float = 0.0
    highend_active: float = 0.0
    cross_border: float = 0.0
    weighted_count: float = 0.0
    weighted_count_base: float = 0.0
    growth_rate: float = 0.0
    growth_increment: float = 0.0
    growth_rate_score_rate: float = 0.0
    growth_increment_score_rate: float = 0.0
    system_score: float
    deposit_actual: float = 0.0
    deposit_target: float = 0.0
    deposit_completion_rate: float = 0.0
    deposit_deduction: float

    @field_validator("deposit_deduction")
    @classmethod
    def validate_magnitude(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"deposit_deduction is a magnitude and must be >= 0, got {v}.")
        return v


# ── Gallop ────────────────────────────────────────────────────────────────────


class GallopEfficiencyRow(BranchRow):
    """Gallop weighted customer count; ``total_score`` is the system score."""

    COMPONENTS: ClassVar[tuple[tuple[str, int], ...]] = (("system_score", 1),)

    annual_10k: float = 0.0
    new_active: float = 0.0
    highend_active: float = 0.0
    cross_border: float = 0.0
    weighted_count: float = 0.0
    weighted_count_base: float = 0.0
    growth_rate: float = 0.0
    growth_increment: float = 0.0
    growth_rate_score_rate: float = 0.0
    growth_increment_score_rate: float = 0.0
    system_score: float


class GallopConsumeRow(BranchRow):
    """Card consumption: YoY growth ranked into the consume point budget."""

    COMPONENTS: ClassVar[tuple[tuple[str, int], ...]] = (("consume_score", 1),)

    normal_consume: float = 0.0
    installment_consume: float = 0.0
    total_consume: float = 0.0
    normal_prior: float = 0.0
    installment_prior: float = 0.0
    total_prior: float = 0.0
    yoy_growth: float = 0.0
    consume_score: float


class _ContributionRow(BranchRow):
    """Shared shape for contribution-based Gallop rules."""

    COMPONENTS: ClassVar[tuple[tuple[str, int], ...]] = (
        ("contribution_score", 1),
        ("change_score", 1),
    )

    contribution: float = 0.0
    contribution_prior: float = 0.0
    contribution_change: float = 0.0
    contribution_score: float
    change_score: float


class GallopCrossBorderRow(_ContributionRow):
    """Cross-border volume (overseas spend + cash withdrawal) contribution."""

    overseas_consume: float = 0.0
    cash_withdraw: float = 0.0
    total_cross: float = 0.0
    total_cross_prior: float = 0.0


class GallopZhuojunRow(_ContributionRow):
    """Zhuojun premium-card active issuance contribution."""

    new_cards: float = 0.0
    new_cards_prior: float = 0.0
