"""
Comparison selection workflow.

The comparison dialog is an explicit state machine, independent of any UI::

    closed ──open()──▶ branch ──next()──▶ indicator ──confirm()──▶ closed
                         ▲                   │
                         └──────back()───────┘
    cancel() from branch/indicator → closed (pending selections discarded)

Rules
-----
- ``open()`` pre-selects the current institution when the institution filter
  is not ``"all"``; that branch is *forced* and cannot be removed.  The first
  indicator of the active tab is pre-selected.
- At most ``max_branches`` branches and ``max_indicators`` indicators (6 and 4
  by default); adding beyond the cap is rejected.
- ``next()`` needs at least one branch; ``confirm()`` at least one indicator.
- ``confirm()`` publishes the pending selections as the confirmed comparison.
  ``cancel()`` leaves the confirmed comparison untouched.
- ``change_tab()``, ``change_institution()`` and ``collapse()`` drop the
  confirmed comparison (the first two also close an open dialog).

Every transition returns a ``TransitionResult``.  A rejected transition is a
no-op carrying a ``SelectionConstraintViolation`` reason code; nothing here
raises for user input.  Selections keep insertion order, which is the colour
order of the trend chart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Optional, Sequence

from branch_scorecard.config import ComparisonConfig

log = logging.getLogger(__name__)

ALL_INSTITUTIONS = "all"


class Step(StrEnum):
    CLOSED = "closed"
    BRANCH = "branch"
    INDICATOR = "indicator"


class SelectionConstraintViolation(StrEnum):
    """Why a transition was rejected."""

    NOT_OPEN = "not_open"
    ALREADY_OPEN = "already_open"
    WRONG_STEP = "wrong_step"
    BRANCH_CAP_REACHED = "branch_cap_reached"
    INDICATOR_CAP_REACHED = "indicator_cap_reached"
    FORCED_BRANCH = "forced_branch"
    NO_BRANCHES = "no_branches"
    NO_INDICATORS = "no_indicators"
    UNKNOWN_BRANCH = "unknown_branch"
    UNKNOWN_INDICATOR = "unknown_indicator"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one transition.

    Attributes:
        applied: ``True`` when the state changed as requested.
        reason:  Rejection code when ``applied`` is ``False``.
    """

    applied: bool
    reason:  Optional[SelectionConstraintViolation] = None

    def __bool__(self) -> bool:
        return self.applied


_OK = TransitionResult(applied=True)


def _reject(reason: SelectionConstraintViolation) -> TransitionResult:
    log.debug("Selection transition rejected: %s", reason.value)
    return TransitionResult(applied=False, reason=reason)


@dataclass(frozen=True)
class SelectionState:
    """Immutable snapshot of the workflow.

    Attributes:
        step:                 Current dialog step.
        selected_branches:    Pending branch ids, insertion order.
        selected_indicators:  Pending indicator ids, insertion order.
        forced_branch_id:     Branch that cannot be deselected, if any.
        tab_indicators:       Indicator ids offered by the active tab.
        confirmed_branches:   Last confirmed branch ids.
        confirmed_indicators: Last confirmed indicator ids.
    """

    step:                 Step = Step.CLOSED
    selected_branches:    tuple[str, ...] = ()
    selected_indicators:  tuple[str, ...] = ()
    forced_branch_id:     Optional[str] = None
    tab_indicators:       tuple[str, ...] = ()
    confirmed_branches:   tuple[str, ...] = ()
    confirmed_indicators: tuple[str, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.step is not Step.CLOSED

    @property
    def has_comparison(self) -> bool:
        return bool(self.confirmed_branches and self.confirmed_indicators)


def _toggle(items: tuple[str, ...], item: str) -> tuple[str, ...]:
    if item in items:
        return tuple(i for i in items if i != item)
    return items + (item,)


@dataclass
class SelectionWorkflow:
    """Single-owner comparison selection state machine.

    Args:
        config:     Caps for branches and indicators.
        branch_ids: Optional universe of selectable branch ids; when given,
                    toggling an unknown id is rejected.
    """

    config:     ComparisonConfig = field(default_factory=ComparisonConfig)
    branch_ids: Optional[Sequence[str]] = None
    state:      SelectionState = field(default_factory=SelectionState)

    # ── Dialog lifecycle ──────────────────────────────────────────────────────

    def open(
        self,
        current_institution_id: str,
        tab_indicators: Sequence[str],
    ) -> TransitionResult:
        """Open the dialog at the branch step."""
        if self.state.is_open:
            return _reject(SelectionConstraintViolation.ALREADY_OPEN)
        if not tab_indicators:
            return _reject(SelectionConstraintViolation.NO_INDICATORS)

        forced = None if current_institution_id == ALL_INSTITUTIONS else current_institution_id
        self.state = replace(
            self.state,
            step=Step.BRANCH,
            selected_branches=(forced,) if forced else (),
            selected_indicators=(tab_indicators[0],),
            forced_branch_id=forced,
            tab_indicators=tuple(tab_indicators),
        )
        log.debug("Comparison dialog opened (forced=%s)", forced)
        return _OK

    def next(self) -> TransitionResult:
        """Branch step → indicator step."""
        if self.state.step is not Step.BRANCH:
            return _reject(SelectionConstraintViolation.WRONG_STEP)
        if not self.state.selected_branches:
            return _reject(SelectionConstraintViolation.NO_BRANCHES)
        self.state = replace(self.state, step=Step.INDICATOR)
        return _OK

    def back(self) -> TransitionResult:
        """Indicator step → branch step; both pending sets are kept."""
        if self.state.step is not Step.INDICATOR:
            return _reject(SelectionConstraintViolation.WRONG_STEP)
        self.state = replace(self.state, step=Step.BRANCH)
        return _OK

    def confirm(self) -> TransitionResult:
        """Publish the pending selections and close."""
        if self.state.step is not Step.INDICATOR:
            return _reject(SelectionConstraintViolation.WRONG_STEP)
        if not self.state.selected_indicators:
            return _reject(SelectionConstraintViolation.NO_INDICATORS)
        self.state = SelectionState(
            confirmed_branches=self.state.selected_branches,
            confirmed_indicators=self.state.selected_indicators,
        )
        log.info(
            "Comparison confirmed: %d branches x %d indicators",
            len(self.state.confirmed_branches), len(self.state.confirmed_indicators),
        )
        return _OK

    def cancel(self) -> TransitionResult:
        """Close the dialog, discarding pending selections."""
        if not self.state.is_open:
            return _reject(SelectionConstraintViolation.NOT_OPEN)
        self.state = SelectionState(
            confirmed_branches=self.state.confirmed_branches,
            confirmed_indicators=self.state.confirmed_indicators,
        )
        return _OK

    # ── Toggles ───────────────────────────────────────────────────────────────

    def toggle_branch(self, branch_id: str) -> TransitionResult:
        if self.state.step is not Step.BRANCH:
            return _reject(SelectionConstraintViolation.WRONG_STEP)
        if self.branch_ids is not None and branch_id not in self.branch_ids:
            return _reject(SelectionConstraintViolation.UNKNOWN_BRANCH)

        selected = self.state.selected_branches
        if branch_id in selected:
            if branch_id == self.state.forced_branch_id:
                return _reject(SelectionConstraintViolation.FORCED_BRANCH)
        elif len(selected) >= self.config.max_branches:
            return _reject(SelectionConstraintViolation.BRANCH_CAP_REACHED)

        self.state = replace(self.state, selected_branches=_toggle(selected, branch_id))
        return _OK

    def toggle_indicator(self, indicator_id: str) -> TransitionResult:
        if self.state.step is not Step.INDICATOR:
            return _reject(SelectionConstraintViolation.WRONG_STEP)
        if indicator_id not in self.state.tab_indicators:
            return _reject(SelectionConstraintViolation.UNKNOWN_INDICATOR)

        selected = self.state.selected_indicators
        if indicator_id not in selected and len(selected) >= self.config.max_indicators:
            return _reject(SelectionConstraintViolation.INDICATOR_CAP_REACHED)

        self.state = replace(self.state, selected_indicators=_toggle(selected, indicator_id))
        return _OK

    # ── Hard resets ───────────────────────────────────────────────────────────

    def change_tab(self) -> TransitionResult:
        """The active rule-set tab changed: drop everything."""
        self.state = SelectionState()
        return _OK

    def change_institution(self) -> TransitionResult:
        """The institution filter changed: drop everything."""
        self.state = SelectionState()
        return _OK

    def collapse(self) -> TransitionResult:
        """Clear the confirmed comparison; an open dialog stays open."""
        self.state = replace(self.state, confirmed_branches=(), confirmed_indicators=())
        return _OK
