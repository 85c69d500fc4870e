"""
branch_scorecard.reporting — terminal formatting and flat-file export.

Nothing here scores anything; it renders ``ScoreReport`` / ``TrendSeries``
objects produced by the aggregation and comparison packages.

Modules:
  formatters — ASCII tables for Typer CLI commands.
  export     — CSV/JSON flat-file export helpers.
"""
