"""
mosaic_windows.deal
-------------------

Pick one deal out of the occupation table.

All strategies share the same dichotomy on an acceptability *level* in
``[0, 1]``: a candidate is acceptable when its occupation is at least the
level **and** its area metric ``M`` is within ``(1 - level)^2`` (relative) of
the best metric in the table. The level is raised while several candidates
remain acceptable and lowered when none do, until a single candidate is left
or the interval is narrower than ``DEAL_PRECISION``. The strategies differ in
the metric and in how they break ties among the survivors.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from .constants import DEAL_PRECISION, DealStrategy
from .geometry import DealCandidate

_LOG = logging.getLogger(__name__)

Metric = Callable[[DealCandidate], float]
DealFunc = Callable[[Sequence[DealCandidate]], DealCandidate]


# --------------------------------------------------------------------------- #
# Metrics                                                                     #
# --------------------------------------------------------------------------- #


def smallest_cell(candidate: DealCandidate) -> float:
    """Smallest cell area among the monitors that receive windows."""
    return min((a for a in candidate.areas if a > 0), default=0.0)


def dealt_area(candidate: DealCandidate) -> float:
    """Screen area covered by the dealt (unpinned) windows."""
    return float(sum(a * n for a, n in zip(candidate.areas, candidate.counts)))


def area_spread(candidate: DealCandidate) -> float:
    """Difference between the largest and smallest cell areas."""
    if not candidate.areas:
        return 0.0
    return float(max(candidate.areas) - min(candidate.areas))


# --------------------------------------------------------------------------- #
# Dichotomy                                                                   #
# --------------------------------------------------------------------------- #


def _acceptable(
    candidates: Sequence[DealCandidate],
    values: Sequence[float],
    best: float,
    level: float,
) -> list[bool]:
    margin = (1 - level) ** 2 * best
    return [
        c.occupation >= level and (best - v) < margin
        for c, v in zip(candidates, values)
    ]


def _dichotomy(candidates: Sequence[DealCandidate], metric: Metric) -> list[bool]:
    """Return the jointly-acceptable mask left by the level search."""
    values = [metric(c) for c in candidates]
    best = max(values)
    low, high = 0.0, 1.0
    while True:
        level = (low + high) / 2
        accepted = _acceptable(candidates, values, best, level)
        if high - low < DEAL_PRECISION:
            break
        count = sum(accepted)
        if count == 1:
            break
        if count == 0:
            high = level
        else:
            low = level

    if not any(accepted):
        _LOG.debug("No deal acceptable at level %.4f; retrying at %.4f", level, low)
        accepted = _acceptable(candidates, values, best, low)
    return accepted


def _check(candidates: Sequence[DealCandidate]) -> None:
    if not candidates:
        raise ValueError("No feasible deal: the occupation table is empty")


def _fallback(candidates: Sequence[DealCandidate]) -> DealCandidate:
    _LOG.warning("No acceptable deal found; using the best occupation")
    return max(candidates, key=lambda c: c.occupation)


# --------------------------------------------------------------------------- #
# Strategies                                                                  #
# --------------------------------------------------------------------------- #


def first_fit_deal(candidates: Sequence[DealCandidate]) -> DealCandidate:
    """Metric: smallest cell. Keeps the first acceptable candidate."""
    _check(candidates)
    if len(candidates) == 1:
        return candidates[0]
    accepted = _dichotomy(candidates, smallest_cell)
    for candidate, ok in zip(candidates, accepted):
        if ok:
            return candidate
    return _fallback(candidates)


def largest_cells_deal(candidates: Sequence[DealCandidate]) -> DealCandidate:
    """Metric: dealt area. Keeps the acceptable candidate with the biggest smallest cell."""
    _check(candidates)
    if len(candidates) == 1:
        return candidates[0]
    accepted = _dichotomy(candidates, dealt_area)
    survivors = [c for c, ok in zip(candidates, accepted) if ok]
    if not survivors:
        return _fallback(candidates)
    # max() keeps the first of equal keys.
    return max(survivors, key=smallest_cell)


def balanced_deal(candidates: Sequence[DealCandidate]) -> DealCandidate:
    """Metric: dealt area. Keeps the acceptable candidate with the most even cells."""
    _check(candidates)
    if len(candidates) == 1:
        return candidates[0]
    accepted = _dichotomy(candidates, dealt_area)
    survivors = [c for c, ok in zip(candidates, accepted) if ok]
    if not survivors:
        return _fallback(candidates)
    return min(survivors, key=area_spread)


DEAL_STRATEGIES: dict[DealStrategy, DealFunc] = {
    DealStrategy.FIRST_FIT: first_fit_deal,
    DealStrategy.LARGEST_CELLS: largest_cells_deal,
    DealStrategy.BALANCED: balanced_deal,
}


def get_deal_func(strategy: DealStrategy = DealStrategy.BALANCED) -> DealFunc:
    """Return the selection function registered for *strategy*."""
    return DEAL_STRATEGIES[DealStrategy(strategy)]


def select_deal(
    candidates: Sequence[DealCandidate],
    strategy: DealStrategy = DealStrategy.BALANCED,
) -> DealCandidate:
    """Choose the deal to apply among *candidates*."""
    return get_deal_func(strategy)(candidates)
