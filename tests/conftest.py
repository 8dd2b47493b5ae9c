"""Shared pytest fixtures for tests."""

import itertools

import pytest

from mosaic_windows.display import StaticDisplay
from mosaic_windows.geometry import Rect
from mosaic_windows.state import JsonBackupStore


class FakeWindows:
    """In-memory window backend recording every call."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.rects = {}
        self.titles = {}
        self.hidden = set()
        self.docked = set()
        self.callbacks = {}
        self.destroyed = []
        self.focused = []

    def create_window(self, title=None):
        handle = next(self._ids)
        self.titles[handle] = title
        return handle

    def set_outer_rect(self, handle, rect):
        self.rects[handle] = rect

    def is_visible(self, handle):
        return handle in self.titles and handle not in self.hidden

    def is_docked(self, handle):
        return handle in self.docked

    def focus(self, handle):
        self.focused.append(handle)

    def destroy(self, handle):
        self.callbacks.pop(handle, None)
        self.titles.pop(handle, None)
        self.rects.pop(handle, None)
        self.destroyed.append(handle)

    def on_close_requested(self, handle, callback):
        self.callbacks[handle] = callback

    def user_close(self, handle):
        """Simulate the user clicking the close button of *handle*."""
        self.callbacks[handle](handle)

    def vanish(self, handle):
        """Simulate a window closed before its handler runs (no veto)."""
        callback = self.callbacks.pop(handle)
        self.titles.pop(handle, None)
        self.rects.pop(handle, None)
        callback(handle, closed=True)

    def watch(self):
        pass


class ScriptedPrompt:
    """Close prompt returning canned answers."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.asked = []

    def confirm(self, message, title, options, default):
        self.asked.append(title)
        return self.answers.pop(0) if self.answers else default


@pytest.fixture
def windows():
    return FakeWindows()


@pytest.fixture
def two_monitors():
    return [Rect(0, 0, 1000, 1000), Rect(1000, 0, 1000, 1000)]


@pytest.fixture
def display(two_monitors):
    return StaticDisplay(two_monitors)


@pytest.fixture
def store(tmp_path):
    """Backup store writing to a temporary state file."""
    return JsonBackupStore(tmp_path / "test_state.json")


@pytest.fixture
def make_prompt():
    return ScriptedPrompt
