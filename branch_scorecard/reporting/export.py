"""
Export helpers for spreadsheets and manual analysis.

All writers create parent directories, write to disk and return the
written ``Path``.  They accept generic ``list[dict]`` / ``dict`` data to stay
decoupled from specific row types; the ``flatten_*`` / ``report_to_dict``
adapters turn a ``ScoreReport`` into that shape.

CSV files are written as UTF-8 with a BOM so branch names open correctly in
Excel.  Credit-risk per-quarter details are flattened into one column per
quarter and score (e.g. ``2026Q1_bad_debt_score``).
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from branch_scorecard.aggregation.report import ScoreReport
from branch_scorecard.models.scorecard import CreditRiskRow

_QUARTER_FIELDS = ("bad_debt_score", "recovery_score", "writeoff_deduction", "found")


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a CSV file.

    Args:
        records:    Flat row dicts.
        path:       Destination file path.
        fieldnames: Column order.  Defaults to the union of keys in first-seen
                    order, so rows with extra quarter columns still fit.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    if fieldnames is None:
        fieldnames = list(dict.fromkeys(k for rec in records for k in rec))
    with path.open("w", newline="", encoding="utf-8-sig") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` as pretty-printed UTF-8 JSON (non-ASCII kept readable)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    return path


def flatten_rows_for_export(report: ScoreReport) -> list[dict[str, Any]]:
    """One flat dict per row, prefixed with the rule set and period."""
    flat: list[dict[str, Any]] = []
    for row in report.rows:
        rec: dict[str, Any] = {"rule_set": report.rule_set.value, "period": report.period}
        rec.update(row.model_dump(exclude={"quarter_details"}))
        if isinstance(row, CreditRiskRow):
            for detail in row.quarter_details:
                for name in _QUARTER_FIELDS:
                    rec[f"{detail.quarter_id}_{name}"] = getattr(detail, name)
        flat.append(rec)
    return flat


def report_to_dict(report: ScoreReport) -> dict[str, Any]:
    """Nested JSON-ready view of a report, summary included."""
    return {
        "rule_set":  report.rule_set.value,
        "period":    report.period,
        "fallbacks": report.fallbacks,
        "missing":   report.missing,
        "summary":   asdict(report.summary) if report.summary is not None else None,
        "rows":      [row.model_dump() for row in report.rows],
    }
