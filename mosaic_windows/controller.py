"""
mosaic_windows.controller
-------------------------

Entry point of the tiler: create / close / relayout commands and the
close-request handler attached to every managed window.

The controller owns the :class:`~mosaic_windows.state.GroupRegistry` (loaded
from the backup store on first use) and re-tiles the affected group after
every structural change.
"""

from __future__ import annotations

import contextlib
import logging
import re
from functools import partial
from typing import Any, Iterator, Optional, Sequence

from .backends import BackupStore, ClosePrompt, Display, WindowBackend
from .constants import ALL_GROUPS, NUMERIC_GROUP_PATTERN, CloseAnswer
from .engine import ScreenLayoutEngine
from .geometry import Handle, Placement, Rect
from .options import MosaicOptions
from .state import (
    GroupEntry,
    GroupId,
    GroupRegistry,
    WindowEntry,
    group_label,
    validate_group_id,
)

_LOG = logging.getLogger(__name__)


class InvalidMonitorError(ValueError):
    """Raised for monitor indices that can never be valid."""


def parse_group_arg(raw: Any) -> Any:
    """Read strings spelling a positive integer as that integer (CLI input)."""
    if isinstance(raw, str) and re.match(NUMERIC_GROUP_PATTERN, raw):
        return int(raw)
    return raw


def window_title(group: GroupId, position: int) -> str:
    """Default title of the *position*-th window of *group*."""
    if group is None:
        return f"Figure {position} (mosaic)"
    if isinstance(group, int):
        return f"Group {group}: Figure {position}"
    return f"{group}: Figure {position}"


class MosaicController:
    """
    Tiles groups of windows over all monitors.

    Parameters
    ----------
    windows : WindowBackend
        Creates, moves and destroys the windows.
    display : Display
        Provides the monitor rectangles (re-read before every layout).
    store : BackupStore, optional
        Where the registry is backed up after each mutation.
    prompt : ClosePrompt, optional
        Asks what to do when a window of a multi-window group is closed.
        Without one, the default answer (close the whole group) applies.
    options : MosaicOptions, optional
        Default strategies and title.
    """

    def __init__(
        self,
        windows: WindowBackend,
        display: Display,
        store: Optional[BackupStore] = None,
        prompt: Optional[ClosePrompt] = None,
        options: Optional[MosaicOptions] = None,
    ) -> None:
        self._windows = windows
        self._display = display
        self._prompt = prompt
        self.options = options or MosaicOptions()
        self._registry = GroupRegistry(store)
        self._loaded = False
        # When set, closing a grouped window never prompts and acts as "one".
        self.batch_close = False

    # ---------------  helpers  -------------------------------------------- #

    @property
    def registry(self) -> GroupRegistry:
        if not self._loaded:
            self._registry.load()
            self._loaded = True
        return self._registry

    def _engine(self, options: Optional[MosaicOptions] = None) -> ScreenLayoutEngine:
        opts = options or self.options
        return ScreenLayoutEngine(self._windows, opts.layout_strategy, opts.deal_strategy)

    def _relayout(
        self,
        entry: GroupEntry,
        monitors: Optional[Sequence[Rect]] = None,
        activate: bool = False,
        options: Optional[MosaicOptions] = None,
    ) -> list[Placement]:
        if monitors is None:
            monitors = self._display.list_monitors()
        return self._engine(options).layout_group(entry.members, monitors, activate)

    @contextlib.contextmanager
    def batch(self) -> Iterator[None]:
        """Suppress close prompts for programmatic closes inside the block."""
        previous = self.batch_close
        self.batch_close = True
        try:
            yield
        finally:
            self.batch_close = previous

    # ---------------  commands  ------------------------------------------- #

    def create(
        self,
        monitor: int = 0,
        group: Any = None,
        title: Optional[str] = None,
        options: Optional[MosaicOptions] = None,
    ) -> Handle:
        """
        Open a new tiled window and return its handle.

        Raises
        ------
        InvalidGroupError
            For reserved or ill-typed group identifiers.
        InvalidMonitorError
            For negative monitor indices.
        """
        group = validate_group_id(group)
        if isinstance(monitor, bool) or not isinstance(monitor, int) or monitor < 0:
            raise InvalidMonitorError(
                f"Monitor must be a non-negative integer, got {monitor!r}"
            )
        opts = options or self.options

        monitors = self._display.list_monitors()
        if monitor > len(monitors):
            _LOG.warning(
                "There are only %d monitors; window will not be pinned", len(monitors)
            )
            monitor = 0

        registry = self.registry
        existing = registry.find(group)
        position = len(existing.members) + 1 if existing else 1
        handle = self._windows.create_window(
            title or opts.title or window_title(group, position)
        )

        entry, created = registry.add_window(group, WindowEntry(handle, monitor))
        self._windows.on_close_requested(
            handle, partial(self._on_close_requested, group=group)
        )
        _LOG.info(
            "Created window %s in %s group %r (monitor %d)",
            handle,
            "new" if created else "existing",
            group_label(group) or "ungrouped",
            monitor,
        )

        self._relayout(entry, monitors, activate=True, options=opts)
        self._windows.focus(handle)
        return handle

    def layout(
        self, group: Any = None, options: Optional[MosaicOptions] = None
    ) -> list[Placement]:
        """Re-tile *group* on the current monitors; nothing is created or closed."""
        group = validate_group_id(group)
        entry = self.registry.find(group)
        if entry is None:
            _LOG.warning('Could not find the group "%s"', group_label(group))
            return []
        return self._relayout(entry, options=options)

    def plan(
        self,
        group: Any = None,
        monitors: Optional[Sequence[Rect]] = None,
        count: Optional[int] = None,
        options: Optional[MosaicOptions] = None,
    ) -> list[Placement]:
        """
        Simulate a layout without touching any window.

        Uses *count* synthetic unpinned windows (handles ``1..count``) when
        given, otherwise the windows of *group*. *monitors* defaults to the
        current display.
        """
        if monitors is None:
            monitors = self._display.list_monitors()
        opts = options or self.options
        engine = ScreenLayoutEngine(None, opts.layout_strategy, opts.deal_strategy)
        if count is not None:
            entries = [WindowEntry(i) for i in range(1, count + 1)]
        else:
            group = validate_group_id(group)
            entry = self.registry.find(group)
            if entry is None:
                _LOG.warning('Could not find the group "%s"', group_label(group))
                return []
            entries = entry.members
        return engine.plan_group(entries, monitors)

    def close(self, group: Any = ALL_GROUPS) -> None:
        """
        Destroy windows without prompting.

        ``"all"`` closes every managed window and resets the registry; any
        other value closes that group only (``None``: the ungrouped windows).
        """
        registry = self.registry
        registry.recover()

        if group == ALL_GROUPS:
            for entry in registry.groups:
                for handle in entry.handles():
                    self._windows.destroy(handle)
            registry.clear()
            _LOG.info("Closed every mosaic window")
            return

        group = validate_group_id(parse_group_arg(group))
        removed = registry.remove_group(group)
        if removed is None:
            _LOG.warning('Could not find the specified group "%s"', group_label(group))
            return
        for handle in removed.handles():
            self._windows.destroy(handle)
        _LOG.info(
            "Closed %d window(s) of group %r",
            len(removed.members),
            group_label(group) or "ungrouped",
        )

    def close_window(self, handle: Handle, ask: bool = False) -> None:
        """
        Close one window as if the user had closed it.

        By default no prompt is shown and the siblings stay open; with *ask*
        the whole-group question is asked like for a user close.
        """
        found = self.registry.find_window(handle)
        if found is None:
            self.registry.recover()
            found = self.registry.find_window(handle)
        group = found[0].group if found else None
        if ask:
            self._on_close_requested(handle, group=group)
            return
        with self.batch():
            self._on_close_requested(handle, group=group)

    def list_groups(self) -> list[GroupEntry]:
        return self.registry.groups

    def debug_state(self) -> list[dict]:
        """Full registry snapshot (diagnostics)."""
        return self.registry.snapshot()

    def attach_close_handlers(self) -> int:
        """Register the close handler of every known window; returns how many."""
        count = 0
        for entry in self.registry.groups:
            for handle in entry.handles():
                self._windows.on_close_requested(
                    handle, partial(self._on_close_requested, group=entry.group)
                )
                count += 1
        return count

    def watch(self) -> None:
        """Attach the close handlers and block on the backend event loop."""
        self.attach_close_handlers()
        self._windows.watch()

    # ---------------  close events  --------------------------------------- #

    def _ask(self, group: GroupId) -> CloseAnswer:
        if self.batch_close:
            return CloseAnswer.ONE
        if self._prompt is None:
            return CloseAnswer.ALL
        name = group_label(group)
        return CloseAnswer(
            self._prompt.confirm(
                f'You are closing a window of group "{name}". Do you want to '
                "close the whole group or only this window?",
                f'Closing group "{name}"',
                (CloseAnswer.ALL, CloseAnswer.ONE, CloseAnswer.CANCEL),
                CloseAnswer.ALL,
            )
        )

    def _on_close_requested(
        self, handle: Handle, group: GroupId = None, closed: bool = False
    ) -> None:
        """
        Handle a user or program asking to close *handle*.

        *closed* tells that the window is already gone (the backend could not
        veto the close): it then leaves the registry even on ``cancel``.
        """
        registry = self.registry
        entry = registry.find(group)
        if entry is None or entry.get(handle) is None:
            registry.recover()
            entry = registry.find(group)
        if entry is None:
            _LOG.warning('Group "%s" not found', group_label(group))
            self._windows.destroy(handle)
            return
        if entry.get(handle) is None:
            _LOG.warning("Window %s not found in its group", handle)
            self._windows.destroy(handle)
            return

        if group is None or len(entry.members) == 1:
            answer = CloseAnswer.ONE if group is None else CloseAnswer.ALL
        else:
            answer = self._ask(group)

        if answer is CloseAnswer.CANCEL:
            if not closed:
                _LOG.debug("Closing window %s cancelled", handle)
                return
            _LOG.debug("Window %s already closed; keeping the rest of its group", handle)
            answer = CloseAnswer.ONE

        doomed = entry.handles() if answer is CloseAnswer.ALL else [handle]
        for h in doomed:
            if closed and h == handle:
                continue
            self._windows.destroy(h)
        deleted = registry.remove_windows(group, doomed)
        if deleted:
            _LOG.info('Group "%s" closed', group_label(group))
            return

        # Monitors may have been plugged or unplugged since the last layout.
        self._relayout(entry)
