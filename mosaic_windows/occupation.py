"""
mosaic_windows.occupation
-------------------------

Enumerate every way of dealing the unpinned windows between monitors and
score each one.

For each feasible split the search records how many unpinned windows each
monitor receives, the cell area the grid strategy gives them there, and the
overall *occupation*: the product over non-empty monitors of the fraction of
the monitor covered by its grid. The table is consumed by
:mod:`mosaic_windows.deal`.

Monitor counts are small in practice (a handful), so the recursion is kept
exhaustive; only infeasible branches are pruned.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .constants import LayoutStrategy
from .geometry import DealCandidate, Rect
from .layout import LayoutFunc, get_layout_func

_LOG = logging.getLogger(__name__)


def compute_occupation(
    unpinned: int,
    pinned_counts: Sequence[int],
    monitors: Sequence[Rect],
    strategy: LayoutStrategy | LayoutFunc = LayoutStrategy.SQUAREST,
) -> list[DealCandidate]:
    """
    Return one :class:`DealCandidate` per feasible deal.

    Parameters
    ----------
    unpinned : int
        Number of windows free to go to any monitor.
    pinned_counts : Sequence[int]
        Windows already pinned to each monitor, in monitor order.
    monitors : Sequence[Rect]
        Monitor rectangles, in monitor order.
    strategy : LayoutStrategy or callable
        Grid strategy used to size the cells on each monitor.

    Returns
    -------
    list[DealCandidate]
        Empty when no deal can place every window (e.g. windows pinned to a
        monitor that is not in *monitors*).
    """
    if unpinned < 0 or any(c < 0 for c in pinned_counts):
        raise ValueError("Window counts must be non-negative")
    layout = strategy if callable(strategy) else get_layout_func(strategy)
    return _search(unpinned, tuple(pinned_counts), tuple(monitors), layout)


def _search(
    unpinned: int,
    pinned: tuple[int, ...],
    monitors: tuple[Rect, ...],
    layout: LayoutFunc,
) -> list[DealCandidate]:
    if not monitors:
        if unpinned == 0 and not any(pinned):
            return [DealCandidate((), 1.0, ())]
        return []

    screen, rest_monitors = monitors[0], monitors[1:]
    here = pinned[0] if pinned else 0
    rest_pinned = pinned[1:]

    candidates: list[DealCandidate] = []
    for n in range(unpinned + 1):
        tail = _search(unpinned - n, rest_pinned, rest_monitors, layout)
        if not tail:
            continue

        count = n + here
        if count == 0:
            # Empty monitor: no cells, occupation unaffected.
            candidates.extend(
                DealCandidate((n,) + t.counts, t.occupation, (0,) + t.areas)
                for t in tail
            )
            continue

        grid = layout(count, screen.width, screen.height)
        cell_area = grid.cell_width * grid.cell_height
        occupation = cell_area * count / (screen.width * screen.height)
        if occupation > 1:
            _LOG.warning(
                "Occupation %.3f > 1 for %d windows on %s; counting it as 0",
                occupation,
                count,
                screen,
            )
            occupation = 0.0

        candidates.extend(
            DealCandidate(
                (n,) + t.counts, t.occupation * occupation, (cell_area,) + t.areas
            )
            for t in tail
        )
    return candidates
