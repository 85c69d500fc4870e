"""
JSON dataset loader: file → validated records → ``InMemoryProvider``.

Dataset layout
--------------
::

    {
      "branches": [
        {"branch_id": "beijing", "name": "北京市分行"},
        {"branch_id": "hainan",  "name": "海南省分行",
         "rule_sets": ["credit_risk", "efficiency"]}
      ],
      "periods": {
        "credit_risk": ["2025Q4", "2026Q1"],
        "gallop_consume": ["2026-01", "2026-02"]
      },
      "records": [
        {
          "branch_id": "beijing", "period": "2026Q1", "rule_set": "credit_risk",
          "pairs":  {"bad_debt": {"actual": 120, "target": 100}},
          "values": {"compliance": -0.5},
          "prior_values": {}
        }
      ]
    }

``rule_sets`` on a branch is optional and restricts which rule sets list it.

Validation rules
----------------
- ``branches``, ``periods`` and ``records`` must all be present.
- Every record must reference a declared branch and a period declared for
  its rule set; the period must match the rule set's grammar.
- Unknown ``MetricKey`` names, non-finite numbers and duplicate
  ``(branch_id, period, rule_set)`` keys are rejected.

Any violation raises ``ValueError`` naming the offending record index.
Validation happens once at load time; scoring never sees a malformed record.

Usage
-----
    from branch_scorecard.provider.json_file import JsonFileProvider

    provider = JsonFileProvider(Path("data/sample_dataset.json"))
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from branch_scorecard.models.metric import Branch, MetricRecord
from branch_scorecard.provider.memory import InMemoryProvider
from branch_scorecard.taxonomy.rule_sets import RuleSet
from branch_scorecard.utils.periods import is_month_id, is_quarter_id

log = logging.getLogger(__name__)

_VALID_RULE_SETS: frozenset[str] = frozenset(r.value for r in RuleSet)


# ── Validation ────────────────────────────────────────────────────────────────

def _parse_branches(raw: list[dict[str, Any]]) -> tuple[list[Branch], dict[str, list[RuleSet]]]:
    branches: list[Branch] = []
    restrictions: dict[str, list[RuleSet]] = {}
    seen: set[str] = set()
    for i, rec in enumerate(raw):
        try:
            branch = Branch(branch_id=rec.get("branch_id", ""), name=rec.get("name", ""))
        except ValidationError as exc:
            raise ValueError(f"Branch at index {i} is invalid: {exc}") from exc
        if branch.branch_id in seen:
            raise ValueError(f"Duplicate branch_id '{branch.branch_id}' at index {i}.")
        seen.add(branch.branch_id)
        branches.append(branch)

        if "rule_sets" in rec:
            bad = [r for r in rec["rule_sets"] if r not in _VALID_RULE_SETS]
            if bad:
                raise ValueError(f"Branch at index {i} lists unknown rule sets {bad}.")
            restrictions[branch.branch_id] = [RuleSet(r) for r in rec["rule_sets"]]
    return branches, restrictions


def _parse_periods(raw: dict[str, list[str]]) -> dict[RuleSet, list[str]]:
    periods: dict[RuleSet, list[str]] = {}
    for name, ids in raw.items():
        if name not in _VALID_RULE_SETS:
            raise ValueError(f"'periods' has unknown rule set '{name}'.")
        rule_set = RuleSet(name)
        check = is_quarter_id if rule_set.is_quarterly else is_month_id
        for period in ids:
            if not check(period):
                expected = "YYYYQn" if rule_set.is_quarterly else "YYYY-MM"
                raise ValueError(
                    f"Period '{period}' for rule set '{name}' must match {expected}."
                )
        periods[rule_set] = list(ids)
    return periods


def _parse_records(
    raw:         list[dict[str, Any]],
    branch_ids:  set[str],
    periods:     dict[RuleSet, list[str]],
) -> list[MetricRecord]:
    records: list[MetricRecord] = []
    seen: set[tuple[str, str, str]] = set()
    for i, rec in enumerate(raw):
        try:
            record = MetricRecord.model_validate(rec)
        except ValidationError as exc:
            raise ValueError(f"Record at index {i} is invalid: {exc}") from exc

        if record.branch_id not in branch_ids:
            raise ValueError(
                f"Record at index {i} references unknown branch '{record.branch_id}'."
            )
        if record.period not in periods.get(record.rule_set, []):
            raise ValueError(
                f"Record at index {i}: period '{record.period}' is not declared "
                f"for rule set '{record.rule_set.value}'."
            )
        key = (record.branch_id, record.period, record.rule_set.value)
        if key in seen:
            raise ValueError(f"Duplicate record {key} at index {i}.")
        seen.add(key)
        records.append(record)
    return records


# ── Provider ──────────────────────────────────────────────────────────────────

class JsonFileProvider(InMemoryProvider):
    """``InMemoryProvider`` populated from a JSON dataset file.

    Args:
        path: Path to the dataset file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError:        If the file is not valid JSON or fails validation.
    """

    def __init__(self, path: Path) -> None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Dataset file not found: {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Dataset {path} is not valid JSON: {exc}") from exc

        for section in ("branches", "periods", "records"):
            if section not in data:
                raise ValueError(f"Dataset {path} is missing the '{section}' section.")

        branches, restrictions = _parse_branches(data["branches"])
        periods = _parse_periods(data["periods"])
        records = _parse_records(
            data["records"],
            branch_ids={b.branch_id for b in branches},
            periods=periods,
        )

        super().__init__(
            branches=branches,
            periods=periods,
            records=records,
            branch_rule_sets=restrictions,
        )
        self.path = path
        log.info(
            "Loaded dataset %s: %d branches, %d records", path, len(branches), len(self)
        )
