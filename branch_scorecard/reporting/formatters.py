"""
ASCII terminal formatters for CLI commands.

All formatters return plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Incomplete rows
---------------
A row whose provider lookups were zero-filled (``data_complete=False``) is
tagged ``*`` after the branch name, with a footnote under the table::

   Rank  Branch          Total   ...
   ------------------------------
      4  海南省分行 *    12.30   ...

  * incomplete data: missing records were scored as 0
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

from branch_scorecard.aggregation.report import ScoreReport, Summary
from branch_scorecard.comparison.trend import TrendSeries
from branch_scorecard.models.scorecard import BranchRow
from branch_scorecard.taxonomy.rule_sets import RuleSet

MISSING_CELL = "–"

# (field, header, format) per rule set; "pct" renders a fraction as a percentage.
TABLE_COLUMNS: dict[RuleSet, list[tuple[str, str, str]]] = {
    RuleSet.CREDIT_RISK: [
        ("bad_debt_total_score",     "BadDebt",    ".2f"),
        ("recovery_total_score",     "Recovery",   ".2f"),
        ("writeoff_total_deduction", "WriteOff",   ".2f"),
        ("compliance_deduction",     "Compliance", ".2f"),
    ],
    RuleSet.EFFICIENCY: [
        ("weighted_count",   "Weighted", ".2f"),
        ("growth_rate",      "Growth",   "pct"),
        ("growth_increment", "Incr",     ".2f"),
        ("system_score",     "System",   ".2f"),
        ("deposit_completion_rate", "Deposit", "pct"),
        ("deposit_deduction", "Deduct",  ".2f"),
    ],
    RuleSet.GALLOP_EFFICIENCY: [
        ("weighted_count",      "Weighted", ".2f"),
        ("weighted_count_base", "Base",     ".2f"),
        ("growth_rate",         "Growth",   "pct"),
        ("system_score",        "System",   ".2f"),
    ],
    RuleSet.GALLOP_CONSUME: [
        ("total_consume", "Consume", ",.2f"),
        ("total_prior",   "Prior",   ",.2f"),
        ("yoy_growth",    "YoY",     "pct"),
    ],
    RuleSet.GALLOP_CROSS_BORDER: [
        ("total_cross",         "CrossBorder", ",.2f"),
        ("contribution",        "Share",       "pct"),
        ("contribution_change", "ShareChg",    "pct"),
        ("contribution_score",  "ShareScore",  ".2f"),
        ("change_score",        "ChgScore",    ".2f"),
    ],
    RuleSet.GALLOP_ZHUOJUN: [
        ("new_cards",           "NewCards",   ",.0f"),
        ("contribution",        "Share",      "pct"),
        ("contribution_change", "ShareChg",   "pct"),
        ("contribution_score",  "ShareScore", ".2f"),
        ("change_score",        "ChgScore",   ".2f"),
    ],
}


def _fmt(value: float, spec: str) -> str:
    if spec == "pct":
        return f"{value:+.2%}"
    return format(value, spec)


def format_score_table(
    report:   ScoreReport,
    rows:     Sequence[BranchRow] | None = None,
    sort_key: str = "rank",
    sort_dir: str = "asc",
) -> str:
    """Format a ranked scorecard as an ASCII table.

    Args:
        report:   The scored report (header, rule set and period).
        rows:     Rows to display, already ordered; defaults to ``report.rows``.
        sort_key: Active sort column (header display only).
        sort_dir: Active sort direction (header display only).

    Returns:
        Multi-line string.
    """
    rows    = list(report.rows if rows is None else rows)
    columns = TABLE_COLUMNS[report.rule_set]

    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Scorecard: {report.rule_set.value} ===")
    lines.append(f"  Period:   {report.period}")
    lines.append(f"  Sorted:   {sort_key} {sort_dir}")
    lines.append(f"  Branches: {len(report.rows)}")

    if not rows:
        lines.append("")
        lines.append("  (no branches to display)")
        return "\n".join(lines)

    header = f"  {'Rank':>4}  {'Branch':<16}  {'Total':>8}" + "".join(
        f"  {title:>12}" for _, title, _ in columns
    )
    lines.append("")
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for row in rows:
        name = row.branch_name + (" *" if not row.data_complete else "")
        cells = "".join(f"  {_fmt(getattr(row, f), spec):>12}" for f, _, spec in columns)
        lines.append(f"  {row.rank:>4}  {name:<16}  {row.total_score:>8.2f}" + cells)

    if any(not r.data_complete for r in rows):
        lines.append("")
        lines.append("  * incomplete data: missing records were scored as 0")
    return "\n".join(lines)


def format_summary(summary: Summary | None) -> str:
    """Key/value block for a report's population summary."""
    if summary is None:
        return ""
    data = asdict(summary)
    width = max(len(k) for k in data)
    lines = ["", "  Summary"]
    for key, value in data.items():
        shown = f"{value:,.2f}" if isinstance(value, float) else str(value)
        lines.append(f"    {key:<{width}}  {shown}")
    return "\n".join(lines)


def format_trend_table(series: Sequence[TrendSeries]) -> str:
    """One block per indicator: branches down, periods across.

    Missing points render as ``–``.
    """
    if not series:
        return "\n  (no comparison selected)"

    lines: list[str] = []
    for ts in series:
        lines.append("")
        lines.append(f"  [{ts.label}]  ({ts.indicator_id})")
        labels = [p.label for p in ts.series[0].points] if ts.series else list(ts.periods)
        header = f"    {'Branch':<16}" + "".join(f"  {lbl:>10}" for lbl in labels)
        lines.append(header)
        lines.append("    " + "-" * (len(header) - 4))
        for line in ts.series:
            cells = "".join(
                f"  {MISSING_CELL if p.missing else format(p.value, ',.2f'):>10}"
                for p in line.points
            )
            lines.append(f"    {line.branch_name:<16}" + cells)
    return "\n".join(lines)
