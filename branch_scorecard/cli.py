"""
Branch Scorecard — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Open the JSON dataset provider (``data.dataset_path`` or ``--dataset``).
  4. Score / compare / export.
  5. Report result to stdout.

Install and run::

    pip install -e .
    branch-scorecard --help
    branch-scorecard validate-config
    branch-scorecard score --rule-set credit_risk --period 2026Q1
    branch-scorecard score --rule-set efficiency --period 2026Q1 --sort-key deposit_deduction --asc
    branch-scorecard compare --tab credit_risk.overview --institution all \\
        --branch beijing --branch shanghai --indicator bad_debt_total_score
    branch-scorecard export --rule-set gallop_consume --period 2026-03 --format csv
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="branch-scorecard",
    help="Branch performance scorecards — scoring, ranking and trend comparison.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from branch_scorecard.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from branch_scorecard.utils.logging import configure_logging
    configure_logging(config.logging)


def _open_provider_or_exit(config, dataset: Optional[str]):
    """Open the JSON dataset, exiting with code 1 if it is missing or malformed."""
    from branch_scorecard.config import _find_project_root
    from branch_scorecard.provider.json_file import JsonFileProvider

    path = Path(dataset or config.data.dataset_path)
    if not path.is_absolute() and not path.exists():
        path = _find_project_root() / path
    try:
        return JsonFileProvider(path)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _score_or_exit(provider, rule_set: str, period: str, config):
    from branch_scorecard.aggregation.report import build_report

    try:
        return build_report(provider, rule_set, period, config)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Dataset path:      {config.data.dataset_path}")
    typer.echo(f"  Credit windows:    bad debt {config.credit_risk.bad_debt_window}q, "
               f"recovery {config.credit_risk.recovery_window}q, "
               f"write-off {config.credit_risk.writeoff_window}q")
    typer.echo(f"  Efficiency norm.:  {config.efficiency.normalizer}")
    typer.echo(f"  Gallop budgets:    consume {config.gallop.consume_budget}, "
               f"cross-border {config.gallop.cross_border_budget}, "
               f"zhuojun {config.gallop.zhuojun_budget}")
    typer.echo(f"  Comparison caps:   {config.comparison.max_branches} branches, "
               f"{config.comparison.max_indicators} indicators")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, ensure_ascii=False, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("score")
def score(
    rule_set: str = typer.Option(
        ...,
        "--rule-set",
        help="credit_risk | efficiency | gallop_efficiency | gallop_consume | "
             "gallop_cross_border | gallop_zhuojun",
    ),
    period: str = typer.Option(..., "--period", help="Quarter (2026Q1) or month (2026-03)."),
    sort_key: str = typer.Option("rank", "--sort-key", help="Numeric row field to sort by."),
    ascending: Optional[bool] = typer.Option(
        None,
        "--asc/--desc",
        help="Sort direction (default: asc for rank, desc otherwise).",
    ),
    top: Optional[int] = typer.Option(None, "--top", help="Show only the best N rows."),
    show_summary: bool = typer.Option(True, "--summary/--no-summary", help="Print population summary."),
    dataset: Optional[str] = typer.Option(None, "--dataset", help="Override dataset JSON path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Score every branch for one rule set and period and print a ranked table."""
    from branch_scorecard.ranking.ranker import SortState, top_n
    from branch_scorecard.reporting.formatters import format_score_table, format_summary
    from branch_scorecard.taxonomy.rule_sets import SortDirection

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    provider = _open_provider_or_exit(config, dataset)
    report = _score_or_exit(provider, rule_set, period, config)

    state = SortState().toggle(sort_key) if sort_key != "rank" else SortState()
    if ascending is not None:
        state = SortState(state.key, SortDirection.ASC if ascending else SortDirection.DESC)

    try:
        if top is not None:
            rows = top_n(report.rows, top, state.key, state.direction)
        else:
            rows = state.apply(report.rows)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_score_table(report, rows, state.key, state.direction.value))
    if show_summary:
        typer.echo(format_summary(report.summary))


@app.command("compare")
def compare(
    tab_id: str = typer.Option(..., "--tab", help="Tab id, e.g. credit_risk.overview."),
    institution: str = typer.Option("all", "--institution", help="Institution filter ('all' or a branch id)."),
    branches: Optional[List[str]] = typer.Option(None, "--branch", help="Branch to add (repeatable)."),
    indicators: Optional[List[str]] = typer.Option(None, "--indicator", help="Indicator to add (repeatable)."),
    as_table: bool = typer.Option(False, "--table", help="Print an ASCII table instead of JSON."),
    dataset: Optional[str] = typer.Option(None, "--dataset", help="Override dataset JSON path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run the comparison selection workflow and print the trend series.

    Branches and indicators are toggled in the order given, exactly as clicks
    in the comparison dialog; rejected toggles (caps, forced branch) are
    reported as warnings.  The tab's first indicator is pre-selected, so
    naming it again deselects it.
    """
    from branch_scorecard.comparison.selection import SelectionWorkflow
    from branch_scorecard.comparison.trend import TrendAssembler
    from branch_scorecard.models.indicator import get_tab
    from branch_scorecard.reporting.formatters import format_trend_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    provider = _open_provider_or_exit(config, dataset)

    try:
        tab = get_tab(tab_id)
    except KeyError as exc:
        typer.echo(f"[ERROR] {exc.args[0]}", err=True)
        raise typer.Exit(code=1)

    branch_ids = [b.branch_id for b in provider.list_branches(tab.rule_set)]
    if institution != "all" and institution not in branch_ids:
        typer.echo(f"[ERROR] Unknown institution '{institution}'.", err=True)
        raise typer.Exit(code=1)

    workflow = SelectionWorkflow(config=config.comparison, branch_ids=branch_ids)
    steps = [
        ("open", workflow.open(institution, [i.id for i in tab.indicators])),
        *((f"branch {b}", workflow.toggle_branch(b)) for b in branches or []),
        ("next", workflow.next()),
        *((f"indicator {i}", workflow.toggle_indicator(i)) for i in indicators or []),
        ("confirm", workflow.confirm()),
    ]
    for label, result in steps:
        if not result.applied:
            typer.echo(f"[WARN] {label}: rejected ({result.reason.value})", err=True)

    state = workflow.state
    series = TrendAssembler(provider, config).assemble(
        tab, state.confirmed_branches, state.confirmed_indicators
    )

    if as_table:
        typer.echo(format_trend_table(series))
    else:
        typer.echo(json.dumps([s.model_dump() for s in series], indent=2, ensure_ascii=False))


@app.command("export")
def export(
    rule_set: str = typer.Option(..., "--rule-set", help="Rule set to export."),
    period: str = typer.Option(..., "--period", help="Quarter (2026Q1) or month (2026-03)."),
    fmt: str = typer.Option("csv", "--format", help="csv | json"),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Output file (default: data/outputs/scorecard_{rule_set}_{period}.{format}).",
    ),
    dataset: Optional[str] = typer.Option(None, "--dataset", help="Override dataset JSON path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Export ranked rows to a flat CSV or a JSON file with the summary."""
    from branch_scorecard.reporting.export import (
        export_to_csv,
        export_to_json,
        flatten_rows_for_export,
        report_to_dict,
    )

    if fmt not in ("csv", "json"):
        typer.echo(f"[ERROR] --format must be 'csv' or 'json', got '{fmt}'.", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    provider = _open_provider_or_exit(config, dataset)
    report = _score_or_exit(provider, rule_set, period, config)

    path = Path(output) if output else Path("data/outputs") / (
        f"scorecard_{report.rule_set.value}_{report.period}.{fmt}"
    )
    if fmt == "csv":
        written = export_to_csv(flatten_rows_for_export(report), path)
    else:
        written = export_to_json(report_to_dict(report), path)

    typer.echo(f"[OK] Exported {len(report.rows)} rows to {written}")


if __name__ == "__main__":
    app()
