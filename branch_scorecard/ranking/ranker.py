"""
Row ordering and rank assignment.

``rank(rows, sort_key, sort_dir)``
    Stable sort on any numeric row field, then reassign ranks 1..N in the
    sorted order.  Ties keep their pre-sort order.  Input rows are never
    mutated; every returned row is a ``model_copy``.

    ``rank`` itself is the ordinal key: sorting by it only reorders the table
    and keeps the existing ranks, so a descending view of the leaderboard
    still shows the leader as rank 1.

``SortState``
    The column-header toggle of a ranked table.  Clicking the active column
    flips the direction; clicking a new column selects it in ``desc`` order,
    except ``rank`` which starts ``asc``.  The initial state is
    ``("rank", "asc")``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, TypeVar

from branch_scorecard.models.scorecard import BranchRow
from branch_scorecard.taxonomy.rule_sets import SortDirection

log = logging.getLogger(__name__)

R = TypeVar("R", bound=BranchRow)

RANK_KEY = "rank"


def _check_sort_key(rows: Sequence[BranchRow], sort_key: str) -> None:
    for row_type in {type(r) for r in rows}:
        if sort_key not in row_type.numeric_fields():
            raise ValueError(
                f"'{sort_key}' is not a numeric field of {row_type.__name__}; "
                f"sortable fields: {', '.join(sorted(row_type.numeric_fields()))}."
            )


def rank(
    rows:     Sequence[R],
    sort_key: str = "total_score",
    sort_dir: SortDirection | str = SortDirection.DESC,
) -> list[R]:
    """Return re-ranked copies of ``rows`` ordered by ``sort_key``.

    Args:
        rows:     Scored rows of one rule set.
        sort_key: Numeric field to order by.
        sort_dir: ``"asc"`` or ``"desc"``.

    Returns:
        New rows in sorted order.  Unless ``sort_key`` is ``"rank"``, ranks
        are ``1..N`` in that order.

    Raises:
        ValueError: If ``sort_key`` is not numeric on the row type, or
            ``sort_dir`` is not a valid direction.
    """
    sort_dir = SortDirection(sort_dir)
    _check_sort_key(rows, sort_key)

    # sorted() is stable with reverse=True too, so ties keep input order.
    ordered = sorted(
        rows,
        key=lambda r: getattr(r, sort_key),
        reverse=sort_dir is SortDirection.DESC,
    )
    if sort_key == RANK_KEY:
        return [r.model_copy() for r in ordered]
    return [r.model_copy(update={"rank": i}) for i, r in enumerate(ordered, start=1)]


def top_n(
    rows:     Sequence[R],
    n:        int,
    sort_key: str = "total_score",
    sort_dir: SortDirection | str = SortDirection.DESC,
) -> list[R]:
    """First ``n`` rows of ``rank(rows, sort_key, sort_dir)``.

    Ranks are computed over the full row set before truncation.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}.")
    return rank(rows, sort_key, sort_dir)[:n]


@dataclass(frozen=True)
class SortState:
    """Active sort column and direction of a ranked table.

    Attributes:
        key:       Field name currently sorted on.
        direction: Current direction.
    """

    key:       str = RANK_KEY
    direction: SortDirection = SortDirection.ASC

    def toggle(self, key: str) -> "SortState":
        """Return the state after a click on column ``key``."""
        if key == self.key:
            return SortState(key=key, direction=self.direction.flipped())
        default = SortDirection.ASC if key == RANK_KEY else SortDirection.DESC
        return SortState(key=key, direction=default)

    def apply(self, rows: Sequence[R]) -> list[R]:
        """Order ``rows`` by this state (see ``rank``)."""
        log.debug("Sorting %d rows by %s %s", len(rows), self.key, self.direction.value)
        return rank(rows, self.key, self.direction)
