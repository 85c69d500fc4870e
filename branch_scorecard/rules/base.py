"""
Shared rule plumbing: the ``InvalidMetric`` failure and its local recovery.

Rule functions raise ``InvalidMetric`` when a ratio would be undefined
(non-positive target or base).  They never return NaN or Infinity.

Callers that feed aggregation wrap rule calls in ``safe_score()``, which
substitutes the documented fallback (0 unless stated otherwise) and logs the
substitution at DEBUG.  Nothing in the scoring path is fatal.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidMetric(ValueError):
    """Raised by a rule when its input makes the formula undefined.

    Attributes:
        rule:   Short rule name, e.g. ``"bad_debt"``.
        reason: Human-readable cause.
    """

    def __init__(self, rule: str, reason: str) -> None:
        self.rule   = rule
        self.reason = reason
        super().__init__(f"Rule '{rule}': {reason}")


def require_positive(rule: str, name: str, value: float) -> None:
    """Raise ``InvalidMetric`` unless ``value > 0``."""
    if value <= 0:
        raise InvalidMetric(rule, f"{name} must be positive, got {value}.")


def safe_score(
    fn: Callable[..., T],
    *args,
    fallback: T,
    on_fallback: Optional[Callable[[InvalidMetric], None]] = None,
    **kwargs,
) -> T:
    """Call a rule, returning ``fallback`` if it raises ``InvalidMetric``.

    Args:
        fn:          Rule function.
        *args:       Positional arguments for ``fn``.
        fallback:    Value substituted on ``InvalidMetric``.
        on_fallback: Optional hook called with the caught exception
                     (the aggregator uses it to count substitutions).
        **kwargs:    Keyword arguments for ``fn``.

    Returns:
        The rule's result, or ``fallback``.
    """
    try:
        return fn(*args, **kwargs)
    except InvalidMetric as exc:
        log.debug("Rule fallback applied (%s) -> %r", exc, fallback)
        if on_fallback is not None:
            on_fallback(exc)
        return fallback


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round2(value: float) -> float:
    """Round to cents; scores are displayed and summed at this precision.

    Adding ``0.0`` folds ``-0.0`` into ``0.0``.
    """
    return round(value, 2) + 0.0
