"""
Gallop cross-sell rules (monthly, year-to-date figures).

Every Gallop score is *relative*: a branch's metric is ranked against the
whole peer population and the rank is mapped onto a fixed point budget.

Rank interpolation
------------------
    1st place → budget × 1.30, last place → budget × 0.50,
    linear in rank between them; a single branch gets budget × 1.00.
    Ties keep input (provider) order; the sort is stable.

Rule sets
---------
consume (budget 30):
    yoy_growth = (current − prior) / prior, ranked over the full budget.

cross_border (budget 15) and zhuojun (budget 10):
    contribution        = branch value / Σ peer values
    contribution_change = contribution − prior contribution
    score = rank(contribution) over budget/2 + rank(change) over budget/2
"""

from __future__ import annotations

from typing import Sequence

from branch_scorecard.rules.base import require_positive, round2


def yoy_growth(current: float, prior: float) -> float:
    """Year-over-year growth as a fraction.

    Raises:
        InvalidMetric: If ``prior <= 0``.
    """
    require_positive("yoy_growth", "prior", prior)
    return (current - prior) / prior


def rank_interpolated_scores(
    values:        Sequence[float],
    budget:        float,
    top_factor:    float = 1.30,
    bottom_factor: float = 0.50,
) -> list[float]:
    """Map each value's descending rank onto ``[budget×bottom, budget×top]``.

    Args:
        values:        One metric value per branch, in provider order.
        budget:        Base points for the rule.
        top_factor:    Multiplier for the best-ranked branch.
        bottom_factor: Multiplier for the worst-ranked branch.

    Returns:
        Scores aligned with ``values`` (same order, same length).
    """
    n = len(values)
    if n == 0:
        return []
    order = sorted(range(n), key=lambda i: -values[i])
    scores = [0.0] * n
    for rank, idx in enumerate(order):
        if n > 1:
            factor = top_factor - (rank / (n - 1)) * (top_factor - bottom_factor)
        else:
            factor = 1.0
        scores[idx] = round2(budget * factor)
    return scores


def contribution_shares(values: Sequence[float]) -> list[float]:
    """Each branch's share of the population total (all zero when the total is 0)."""
    total = sum(values)
    if total == 0:
        return [0.0 for _ in values]
    return [v / total for v in values]


def contribution_scores(
    current:       Sequence[float],
    prior:         Sequence[float],
    budget:        float,
    top_factor:    float = 1.30,
    bottom_factor: float = 0.50,
) -> list[tuple[float, float]]:
    """Split ``budget`` evenly between end-of-period share and share change.

    Returns:
        ``(contribution_score, change_score)`` per branch, aligned with ``current``.

    Raises:
        ValueError: If ``current`` and ``prior`` differ in length.
    """
    if len(current) != len(prior):
        raise ValueError(
            f"current ({len(current)}) and prior ({len(prior)}) must align per branch."
        )
    shares       = contribution_shares(current)
    prior_shares = contribution_shares(prior)
    changes      = [s - p for s, p in zip(shares, prior_shares)]
    half         = budget / 2

    share_scores  = rank_interpolated_scores(shares, half, top_factor, bottom_factor)
    change_scores = rank_interpolated_scores(changes, half, top_factor, bottom_factor)
    return list(zip(share_scores, change_scores))
