"""
mosaic_windows.geometry
-----------------------

Value types shared by the tiling code.

All rectangles live in the *normalized* frame: the origin is the bottom-left
corner of the primary monitor, x grows to the right and y grows upward.
Converting native OS coordinates into this frame is the display backend's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Union

# Opaque window identifier handed out by a window backend.
Handle = Union[int, str]


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle ``(x, y, width, height)``."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Rect size must be non-negative, got {self.width}x{self.height}"
            )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @classmethod
    def from_spec(cls, raw: str) -> "Rect":
        """Parse ``"x,y,w,h"`` (as used by $MOSAIC_MONITORS and ``--monitor``)."""
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected 'x,y,width,height', got {raw!r}")
        try:
            x, y, w, h = (int(float(p)) for p in parts)
        except ValueError as exc:
            raise ValueError(f"Non-numeric monitor geometry {raw!r}") from exc
        return cls(x, y, w, h)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}+{self.x}+{self.y}"


# Monitor k (1-based) is ``monitors[k - 1]``; index 0 means "any monitor".
MonitorList = list[Rect]


class DealCandidate(NamedTuple):
    """
    One feasible distribution of the unpinned windows.

    ``counts[m]`` unpinned windows go to monitor ``m + 1``; ``areas[m]`` is the
    resulting cell area there (0 when the monitor stays empty); ``occupation``
    is the product of the per-monitor covered fractions.
    """

    counts: tuple[int, ...]
    occupation: float
    areas: tuple[float, ...]


class Placement(NamedTuple):
    """Computed target rectangle of one window on monitor ``monitor`` (1-based)."""

    handle: Handle
    monitor: int
    rect: Rect
