"""
mosaic_windows.backends
-----------------------

Interfaces of the collaborators the tiler drives. Concrete implementations
live in :mod:`mosaic_windows.browser` (windows), :mod:`mosaic_windows.display`
(monitors), :mod:`mosaic_windows.state` (backup store) and
:mod:`mosaic_windows.cli` (close prompt).
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

from .constants import CloseAnswer
from .geometry import Handle, Rect

# Called as ``callback(handle, closed=...)``; ``closed`` is True when the
# window is already gone and the close can no longer be refused.
CloseCallback = Callable[..., None]


class WindowBackend(Protocol):
    """Creates, moves and destroys top-level windows."""

    def create_window(self, title: Optional[str] = None) -> Handle: ...

    def set_outer_rect(self, handle: Handle, rect: Rect) -> None: ...

    def is_visible(self, handle: Handle) -> bool: ...

    def is_docked(self, handle: Handle) -> bool: ...

    def focus(self, handle: Handle) -> None: ...

    def destroy(self, handle: Handle) -> None:
        """Close *handle* without firing its close-request callback."""
        ...

    def on_close_requested(self, handle: Handle, callback: CloseCallback) -> None: ...

    def watch(self) -> None:
        """Block, dispatching close-request callbacks until interrupted."""
        ...


class Display(Protocol):
    """Enumerates monitors in the normalized frame."""

    def list_monitors(self) -> list[Rect]: ...


class BackupStore(Protocol):
    """Blob store that lets the group registry survive state loss."""

    def save(self, key: str, snapshot: Any) -> None: ...

    def load(self, key: str) -> Any | None: ...


class ClosePrompt(Protocol):
    """Modal question asked when one window of a group is closed."""

    def confirm(
        self,
        message: str,
        title: str,
        options: Sequence[CloseAnswer],
        default: CloseAnswer,
    ) -> CloseAnswer: ...
