"""
Raw metric models supplied by a ``MetricRowProvider``.

``MetricPair`` is the atomic actual/target observation a rule consumes.
``MetricRecord`` bundles everything one branch reports for one period under
one rule set:

  - ``pairs``         → actual/target pairs keyed by ``MetricKey``
                         (bad_debt, recovery, writeoff, deposit)
  - ``values``        → plain current-period values (segment counts,
                         consumption volumes, the judgmental compliance input)
  - ``prior_values``  → the comparison base for growth rules (prior-year
                         same period, or the efficiency base year)

All models are frozen; provider data is immutable once loaded.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator

from branch_scorecard.taxonomy.rule_sets import MetricKey, RuleSet


class MetricPair(BaseModel):
    """One actual/target observation for a (branch, period, rule).

    Attributes:
        actual: Reported value (e.g. 万元 of new bad debt).
        target: Plan value the actual is judged against.  Non-positive
            targets are representable here; rule functions reject them with
            ``InvalidMetric``.
    """

    model_config = ConfigDict(frozen=True)

    actual: float
    target: float

    @field_validator("actual", "target")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Metric values must be finite, got {v}.")
        return v

    @property
    def completion_rate(self) -> float | None:
        """``actual / target``, or ``None`` when the target is non-positive."""
        if self.target <= 0:
            return None
        return self.actual / self.target


class Branch(BaseModel):
    """Stable branch identity.  ``branch_id`` never changes; ``name`` may."""

    model_config = ConfigDict(frozen=True)

    branch_id: str
    name: str

    @field_validator("branch_id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or " " in v:
            raise ValueError(f"branch_id '{v}' must be non-empty with no spaces.")
        if v == "all":
            raise ValueError("'all' is reserved for the institution filter.")
        return v


class MetricRecord(BaseModel):
    """Everything one branch reports for one period under one rule set."""

    model_config = ConfigDict(frozen=True)

    branch_id: str
    period: str
    rule_set: RuleSet
    pairs: dict[MetricKey, MetricPair] = {}
    values: dict[MetricKey, float] = {}
    prior_values: dict[MetricKey, float] = {}

    @field_validator("values", "prior_values")
    @classmethod
    def validate_finite(cls, v: dict[MetricKey, float]) -> dict[MetricKey, float]:
        for key, val in v.items():
            if not math.isfinite(val):
                raise ValueError(f"Value for '{key.value}' must be finite, got {val}.")
        return v

    def pair(self, key: MetricKey) -> MetricPair | None:
        return self.pairs.get(key)

    def value(self, key: MetricKey, default: float = 0.0) -> float:
        return self.values.get(key, default)

    def prior(self, key: MetricKey, default: float = 0.0) -> float:
        return self.prior_values.get(key, default)
