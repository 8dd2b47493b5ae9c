"""mosaic_windows.engine
~~~~~~~~~~~~~~~~~~~~~~~~

Position one group's windows over every monitor.

Planning (pure) and applying (talks to the window backend) are split so the
same placements can be simulated against made-up monitors by the ``plan``
command.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from .backends import WindowBackend
from .constants import DealStrategy, LayoutStrategy
from .deal import select_deal
from .geometry import Handle, Placement, Rect
from .layout import compute_layout
from .occupation import compute_occupation
from .state import WindowEntry

_LOG = logging.getLogger(__name__)


class ScreenLayoutEngine:
    """Deal a group's windows between monitors and tile each monitor."""

    def __init__(
        self,
        windows: Optional[WindowBackend] = None,
        layout_strategy: LayoutStrategy = LayoutStrategy.SQUAREST,
        deal_strategy: DealStrategy = DealStrategy.BALANCED,
    ) -> None:
        self._windows = windows
        self.layout_strategy = LayoutStrategy(layout_strategy)
        self.deal_strategy = DealStrategy(deal_strategy)

    # ---------------  planning  ------------------------------------------- #

    def deal(
        self, entries: Sequence[WindowEntry], monitors: Sequence[Rect]
    ) -> list[list[Handle]]:
        """
        Return, per monitor, the handles to tile there.

        Pinned windows come first, followed by the monitor's share of the
        unpinned pool. Windows pinned to a monitor that no longer exists join
        the unpinned pool for this layout only.
        """
        pinned: list[list[Handle]] = [[] for _ in monitors]
        pool: list[Handle] = []
        for entry in entries:
            if 1 <= entry.monitor <= len(monitors):
                pinned[entry.monitor - 1].append(entry.handle)
            else:
                if entry.monitor:
                    _LOG.debug(
                        "Window %s pinned to missing monitor %d; treating as unpinned",
                        entry.handle,
                        entry.monitor,
                    )
                pool.append(entry.handle)

        candidates = compute_occupation(
            len(pool), [len(p) for p in pinned], monitors, self.layout_strategy
        )
        chosen = select_deal(candidates, self.deal_strategy)
        _LOG.debug("Deal %s (occupation %.3f)", chosen.counts, chosen.occupation)

        buckets: list[list[Handle]] = []
        start = 0
        for bucket, count in zip(pinned, chosen.counts):
            buckets.append(bucket + pool[start : start + count])
            start += count
        return buckets

    def plan_screen(
        self, handles: Sequence[Handle], monitor: Rect, index: int = 1
    ) -> list[Placement]:
        """
        Tile *handles* on *monitor*, column by column.

        Column ``c`` holds windows ``c, c + cols, c + 2*cols, ...``; a column
        with fewer windows stretches them to fill its height. Placements are
        returned in assignment order.
        """
        n = len(handles)
        if n == 0:
            return []
        grid = compute_layout(n, monitor.width, monitor.height, self.layout_strategy)
        cols = grid.cols
        width, height = monitor.width, monitor.height

        placements: list[Placement] = []
        for c in range(1, cols + 1):
            x0 = math.floor((c - 1) * width / cols)
            x1 = math.floor(c * width / cols)
            rows = math.ceil((n - c + 1) / cols)
            for row in range(1, rows + 1):
                h0 = math.floor((rows - row) * height / rows)
                h1 = math.floor((rows - row + 1) * height / rows)
                rect = Rect(monitor.x + x0, monitor.y + h0, x1 - x0, h1 - h0)
                placements.append(Placement(handles[(row - 1) * cols + c - 1], index, rect))
        return placements

    def plan_group(
        self, entries: Sequence[WindowEntry], monitors: Sequence[Rect]
    ) -> list[Placement]:
        """Compute every window's rectangle without touching any window."""
        if not entries:
            return []
        if not monitors:
            raise ValueError("Cannot lay out windows without any monitor")
        placements: list[Placement] = []
        for index, (monitor, handles) in enumerate(
            zip(monitors, self.deal(entries, monitors)), start=1
        ):
            placements.extend(self.plan_screen(handles, monitor, index))
        return placements

    # ---------------  applying  ------------------------------------------- #

    def _backend(self) -> WindowBackend:
        if self._windows is None:
            raise RuntimeError("No window backend configured; only planning is possible")
        return self._windows

    def layout_group(
        self,
        entries: Iterable[WindowEntry],
        monitors: Sequence[Rect],
        activate: bool = False,
    ) -> list[Placement]:
        """Lay out the visible windows of a group; returns what was applied."""
        windows = self._backend()
        visible = [e for e in entries if windows.is_visible(e.handle)]
        if not visible:
            _LOG.debug("Nothing visible to lay out")
            return []
        if not monitors:
            raise ValueError("Cannot lay out windows without any monitor")

        applied: list[Placement] = []
        for index, (monitor, handles) in enumerate(
            zip(monitors, self.deal(visible, monitors)), start=1
        ):
            applied.extend(self.layout_screen(handles, monitor, activate, index))
        return applied

    def layout_screen(
        self,
        handles: Sequence[Handle],
        monitor: Rect,
        activate: bool = False,
        index: int = 1,
    ) -> list[Placement]:
        """Move *handles* into their cells on *monitor*; docked windows are skipped."""
        windows = self._backend()
        applied: list[Placement] = []
        for placement in self.plan_screen(handles, monitor, index):
            if windows.is_docked(placement.handle):
                _LOG.debug("Skipping docked window %s", placement.handle)
                continue
            windows.set_outer_rect(placement.handle, placement.rect)
            applied.append(placement)
            _LOG.debug("Positioned window %s at %s", placement.handle, placement.rect)

        if activate:
            for placement in applied:
                windows.focus(placement.handle)
        return applied
