"""
Period identifier utilities.

Two period grammars are in use:
  - Quarters  ``YYYYQn``   (credit-risk and efficiency rule sets), e.g. ``"2026Q1"``.
  - Months    ``YYYY-MM``  (Gallop rule sets, year-to-date figures), e.g. ``"2026-03"``.

Lookback windows are always taken from the provider's chronological period
list, never computed by date arithmetic, so a provider that skips a quarter
simply yields a shorter window.
"""

from __future__ import annotations

import re

_QUARTER_RE = re.compile(r"^(\d{4})Q([1-4])$")
_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def is_quarter_id(period: str) -> bool:
    """Return ``True`` if ``period`` is a ``YYYYQn`` quarter identifier."""
    return bool(_QUARTER_RE.match(period))


def is_month_id(period: str) -> bool:
    """Return ``True`` if ``period`` is a ``YYYY-MM`` month identifier."""
    return bool(_MONTH_RE.match(period))


def period_sort_key(period: str) -> tuple[int, int]:
    """Chronological sort key for quarter or month identifiers.

    Raises:
        ValueError: If ``period`` matches neither grammar.
    """
    m = _QUARTER_RE.match(period)
    if m:
        return int(m.group(1)), int(m.group(2)) * 3
    m = _MONTH_RE.match(period)
    if m:
        return int(m.group(1)), int(m.group(2))
    raise ValueError(
        f"Unrecognized period '{period}'. Use 'YYYYQn' (e.g. '2026Q1') or 'YYYY-MM'."
    )


def short_label(period: str) -> str:
    """Compact axis label: ``"2026Q1"`` → ``"26Q1"``, ``"2026-03"`` → ``"26-03"``."""
    period_sort_key(period)  # validates
    return period[2:]


def lookback_window(periods: list[str], selected: str, size: int) -> list[str]:
    """Return up to ``size`` periods ending at ``selected`` (inclusive), oldest first.

    Args:
        periods:  Chronological period list from the provider.
        selected: The period the report is run for.
        size:     Window length (e.g. 2 for bad-debt, 3 for write-off).

    Returns:
        The window slice; shorter than ``size`` near the start of history.
        Empty when ``selected`` is not in ``periods``.
    """
    if selected not in periods:
        return []
    idx = periods.index(selected)
    return periods[max(0, idx - size + 1): idx + 1]
