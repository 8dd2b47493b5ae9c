"""
mosaic_windows.constants
------------------------

Centralised constants shared across the mosaic-windows code-base.
"""

from pathlib import Path
from enum import Enum, IntEnum
from typing import Final
import os

# --------------------------------------------------------------------------- #
# Tiling strategies
# --------------------------------------------------------------------------- #


class LayoutStrategy(IntEnum):
    """
    Grid strategies deciding how many rows / columns a monitor is cut into.

    Values are the historical strategy numbers accepted on the command line.
    """

    GREEDY = 1
    ROUNDED = 2
    NEAREST_ROWS = 3
    SQUAREST = 4


class DealStrategy(IntEnum):
    """Strategies choosing how unpinned windows are dealt between monitors."""

    FIRST_FIT = 1
    LARGEST_CELLS = 2
    BALANCED = 3


def _strategy_from_env(name: str, enum_cls, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return enum_cls(int(raw))
    except ValueError:
        return default


# Environment settings below are read on every call, so a .env file loaded
# after import still applies.


def default_layout_strategy() -> LayoutStrategy:
    """$MOSAIC_LAYOUT_STRATEGY, else squarest."""
    return _strategy_from_env(
        "MOSAIC_LAYOUT_STRATEGY", LayoutStrategy, LayoutStrategy.SQUAREST
    )


def default_deal_strategy() -> DealStrategy:
    """$MOSAIC_DEAL_STRATEGY, else balanced."""
    return _strategy_from_env("MOSAIC_DEAL_STRATEGY", DealStrategy, DealStrategy.BALANCED)


# Width of the level interval at which the deal dichotomy stops.
DEAL_PRECISION: Final[float] = 5e-3

# --------------------------------------------------------------------------- #
# Groups
# --------------------------------------------------------------------------- #

# Group name meaning "every group" in close commands; never a real group.
ALL_GROUPS: Final[str] = "all"

# Strings that look like positive integers are reserved: use the integer.
NUMERIC_GROUP_PATTERN: Final[str] = r"^[1-9][0-9]*$"


class CloseAnswer(str, Enum):
    """Answers offered when a window of a multi-window group is closed."""

    ALL = "all"
    ONE = "one"
    CANCEL = "cancel"


# --------------------------------------------------------------------------- #
# Paths & persistence
# --------------------------------------------------------------------------- #

# Location of the persistent JSON backup (override with $MOSAIC_STATE_FILE).
DEFAULT_STATE_FILE: Final[Path] = Path.home() / ".config/mosaic-windows/state.json"


def state_file() -> Path:
    return Path(os.environ.get("MOSAIC_STATE_FILE", DEFAULT_STATE_FILE))


# Key under which the group registry snapshot is stored in the backup file.
REGISTRY_KEY: Final[str] = "registry"

# --------------------------------------------------------------------------- #
# Displays
# --------------------------------------------------------------------------- #

# "x,y,w,h;x,y,w,h" monitor list that bypasses detection (normalized frame).
MONITORS_ENV: Final[str] = "MOSAIC_MONITORS"

# Fallback primary monitor: 1920x1080 screen minus a 25px menu bar.
FALLBACK_MONITOR: Final[tuple[int, int, int, int]] = (0, 0, 1920, 1055)
FALLBACK_FRAME_HEIGHT: Final[int] = 1080

# --------------------------------------------------------------------------- #
# Chrome (window backend)
# --------------------------------------------------------------------------- #

# Default CDP remote-debugging port Chrome will listen on.
DEFAULT_CHROME_PORT: Final[int] = 9222


def chrome_remote_port() -> int:
    return int(os.environ.get("CHROME_REMOTE_PORT", DEFAULT_CHROME_PORT))


# Path to Chrome executable (macOS default), only used in error messages.
CHROME_EXECUTABLE: Final[str] = os.environ.get(
    "GOOGLE_CHROME",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
)

# Chrome window states left alone by the tiler (managed by the OS).
DOCKED_WINDOW_STATES: Final[frozenset[str]] = frozenset({"maximized", "fullscreen"})
