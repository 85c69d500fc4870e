"""
Peer normalization strategies for growth metrics.

The efficiency system score needs each branch's growth rate and growth
increment expressed as a *score-rate* in ``[0.30, 1.30]`` relative to the
peer population.  The business owner has not published a closed form, so the
mapping is a pluggable strategy behind one call signature::

    normalizer(value, peer_values) -> rate in [floor, ceiling]

Strategies
----------
zscore (default):
    rate = clamp(center + z × spread, floor, ceiling)
    z    = (value − mean) / population std      (std of 0 → 1)
    center 0.80, spread 0.25 reproduce the dashboard's current figures.

linear:
    peer min → floor, peer max → ceiling, linear in between
    (all peers equal → midpoint).

Select by name with ``get_normalizer("zscore" | "linear")``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Sequence

from branch_scorecard.rules.base import clamp

RATE_FLOOR = 0.30
RATE_CEILING = 1.30


class Normalizer(Protocol):
    def __call__(self, value: float, peer_values: Sequence[float]) -> float: ...


@dataclass(frozen=True)
class ZScoreNormalizer:
    """Standard-deviation mapping around the peer mean."""

    center:  float = 0.80
    spread:  float = 0.25
    floor:   float = RATE_FLOOR
    ceiling: float = RATE_CEILING

    def __call__(self, value: float, peer_values: Sequence[float]) -> float:
        if not peer_values:
            return self.center
        n    = len(peer_values)
        mean = sum(peer_values) / n
        std  = math.sqrt(sum((v - mean) ** 2 for v in peer_values) / n) or 1.0
        z    = (value - mean) / std
        return clamp(self.center + z * self.spread, self.floor, self.ceiling)


@dataclass(frozen=True)
class LinearRangeNormalizer:
    """Min–max mapping of the peer range onto ``[floor, ceiling]``."""

    floor:   float = RATE_FLOOR
    ceiling: float = RATE_CEILING

    def __call__(self, value: float, peer_values: Sequence[float]) -> float:
        if not peer_values:
            return (self.floor + self.ceiling) / 2
        lo, hi = min(peer_values), max(peer_values)
        if hi == lo:
            return (self.floor + self.ceiling) / 2
        frac = (value - lo) / (hi - lo)
        return clamp(self.floor + frac * (self.ceiling - self.floor), self.floor, self.ceiling)


_REGISTRY: dict[str, Normalizer] = {
    "zscore": ZScoreNormalizer(),
    "linear": LinearRangeNormalizer(),
}


def get_normalizer(name: str) -> Normalizer:
    """Return the named normalization strategy.

    Raises:
        ValueError: If ``name`` is not registered.
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown normalizer '{name}'. Choose from: {', '.join(sorted(_REGISTRY))}."
        ) from None
