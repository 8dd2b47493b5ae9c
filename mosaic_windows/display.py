"""Monitor geometry in the normalized frame (bottom-left origin, y up)."""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable

from .constants import FALLBACK_FRAME_HEIGHT, FALLBACK_MONITOR, MONITORS_ENV
from .geometry import Rect

_LOG = logging.getLogger(__name__)


def parse_monitors(raw: str) -> list[Rect]:
    """
    Parse ``"x,y,w,h;x,y,w,h"`` into rectangles (primary monitor first).

    Raises ValueError for malformed entries and for monitors without area.
    """
    monitors = [Rect.from_spec(part) for part in raw.split(";") if part.strip()]
    for monitor in monitors:
        if monitor.area == 0:
            raise ValueError(f"Monitor {monitor} has no area")
    return monitors


class StaticDisplay:
    """A fixed list of monitors, used to simulate other setups."""

    def __init__(self, monitors: Iterable[Rect]) -> None:
        self._monitors = list(monitors)

    def list_monitors(self) -> list[Rect]:
        return list(self._monitors)


class ScreenDisplay:
    """
    Monitors of the running desktop.

    Resolution order: $MOSAIC_MONITORS, then AppKit on macOS, then a single
    1920x1055 fallback monitor.
    """

    def list_monitors(self) -> list[Rect]:
        override = os.environ.get(MONITORS_ENV)
        if override:
            try:
                monitors = parse_monitors(override)
                if monitors:
                    return monitors
            except ValueError as exc:
                _LOG.warning("Ignoring invalid $%s: %s", MONITORS_ENV, exc)

        if sys.platform == "darwin":
            try:
                return self._appkit_monitors()
            except ImportError:
                _LOG.warning("pyobjc not available, using default monitor")
            except Exception as e:
                _LOG.warning("Failed to get screen dimensions: %s, using defaults", e)

        return [Rect(*FALLBACK_MONITOR)]

    def frame_height(self) -> int:
        """Full height of the primary monitor (for top-left origin conversions)."""
        if sys.platform == "darwin":
            try:
                from AppKit import NSScreen

                screens = NSScreen.screens()
                if screens:
                    return int(screens[0].frame().size.height)
            except ImportError:
                pass
        override = os.environ.get(MONITORS_ENV)
        if override:
            try:
                monitors = parse_monitors(override)
                if monitors:
                    return monitors[0].top
            except ValueError:
                pass
        return FALLBACK_FRAME_HEIGHT

    @staticmethod
    def _appkit_monitors() -> list[Rect]:
        from AppKit import NSScreen

        # screens[0] carries the menu bar and is the frame origin. Cocoa
        # coordinates are already bottom-left based, so no flip is needed.
        screens = NSScreen.screens()
        if not screens:
            raise RuntimeError("No screens found")
        monitors = []
        for screen in screens:
            frame = screen.visibleFrame()
            rect = Rect(
                int(frame.origin.x),
                int(frame.origin.y),
                int(frame.size.width),
                int(frame.size.height),
            )
            if rect.area == 0:
                _LOG.debug("Skipping screen without area: %s", rect)
                continue
            monitors.append(rect)
        if not monitors:
            raise RuntimeError("No usable screens found")
        return monitors
