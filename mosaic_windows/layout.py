"""mosaic_windows.layout
~~~~~~~~~~~~~~~~~~~~~~~~

Grid strategies: how many rows and columns a monitor is cut into so that
``n`` windows get cells as close to square as possible.

Every strategy returns a :class:`GridLayout` with ``rows * cols >= n`` and the
cell size obtained by flooring ``width / cols`` and ``height / rows``.
Strategies are looked up through :data:`LAYOUT_STRATEGIES`, keyed by the
:class:`~mosaic_windows.constants.LayoutStrategy` enum.
"""

from __future__ import annotations

import math
import sys
from typing import Callable, NamedTuple

from .constants import LayoutStrategy

# Tolerance used by the greedy strategy when comparing squareness.
_EPS = sys.float_info.epsilon


class GridLayout(NamedTuple):
    rows: int
    cols: int
    cell_width: int
    cell_height: int


LayoutFunc = Callable[[int, float, float], GridLayout]


def _check(n: int, width: float, height: float) -> None:
    if n < 1:
        raise ValueError(f"Cannot lay out {n} windows")
    if width <= 0 or height <= 0:
        raise ValueError(f"Screen size must be positive, got {width}x{height}")


def _grid(n: int, rows: int, width: float, height: float) -> GridLayout:
    cols = math.ceil(n / rows)
    return GridLayout(rows, cols, math.floor(width / cols), math.floor(height / rows))


def _target_rows(n: int, width: float, height: float) -> float:
    """Real-valued row count giving square cells: ``sqrt(h * n / w)``."""
    return math.sqrt(height * n / width)


def _squareness(grid: GridLayout) -> float:
    """Distance of ``sqrt(cell_width / cell_height)`` from 1."""
    if grid.cell_height == 0:
        return math.inf
    return abs(1 - math.sqrt(grid.cell_width / grid.cell_height))


# --------------------------------------------------------------------------- #
# Strategies                                                                  #
# --------------------------------------------------------------------------- #


def greedy_layout(n: int, width: float, height: float) -> GridLayout:
    """
    Add rows one at a time until cells become wider than tall.

    When that happens after the first row, the previous row count is kept if
    its cells were at least as close to square.
    """
    _check(n, width, height)
    previous_ratio = 0.0
    for rows in range(1, n + 1):
        grid = _grid(n, rows, width, height)
        ratio = grid.cell_height / grid.cell_width if grid.cell_width else math.inf
        if ratio < 1:
            if rows == 1:
                return grid
            if (previous_ratio - 1) - _EPS < (1 - ratio):
                return _grid(n, rows - 1, width, height)
            return grid
        previous_ratio = ratio
    return grid


def rounded_layout(n: int, width: float, height: float) -> GridLayout:
    """Round the ideal row count (at least one row)."""
    _check(n, width, height)
    # Half-up rounding, not banker's rounding.
    rows = max(1, math.floor(_target_rows(n, width, height) + 0.5))
    return _grid(n, rows, width, height)


def nearest_rows_layout(n: int, width: float, height: float) -> GridLayout:
    """Pick floor or ceil of the ideal row count, whichever squares closer to it."""
    _check(n, width, height)
    target = height * n / width
    low = math.floor(math.sqrt(target))
    high = math.ceil(math.sqrt(target))
    if low == 0 or high**2 - target < target - low**2:
        rows = high
    else:
        rows = low
    return _grid(n, rows, width, height)


def squarest_layout(n: int, width: float, height: float) -> GridLayout:
    """
    Pick floor or ceil of the ideal row count, whichever gives the squarest
    cells. The ceil candidate must be strictly better to win.
    """
    _check(n, width, height)
    target = _target_rows(n, width, height)
    low, high = math.floor(target), math.ceil(target)
    if low == 0:
        return _grid(n, high, width, height)
    low_grid = _grid(n, low, width, height)
    high_grid = _grid(n, high, width, height)
    if _squareness(high_grid) < _squareness(low_grid):
        return high_grid
    return low_grid


LAYOUT_STRATEGIES: dict[LayoutStrategy, LayoutFunc] = {
    LayoutStrategy.GREEDY: greedy_layout,
    LayoutStrategy.ROUNDED: rounded_layout,
    LayoutStrategy.NEAREST_ROWS: nearest_rows_layout,
    LayoutStrategy.SQUAREST: squarest_layout,
}


def get_layout_func(strategy: LayoutStrategy = LayoutStrategy.SQUAREST) -> LayoutFunc:
    """Return the grid function registered for *strategy*."""
    return LAYOUT_STRATEGIES[LayoutStrategy(strategy)]


def compute_layout(
    n: int,
    width: float,
    height: float,
    strategy: LayoutStrategy = LayoutStrategy.SQUAREST,
) -> GridLayout:
    """Grid for *n* windows on a ``width`` x ``height`` screen."""
    return get_layout_func(strategy)(n, width, height)
