"""Tests for ScreenLayoutEngine (planning and applying)."""

import pytest

from mosaic_windows.engine import ScreenLayoutEngine
from mosaic_windows.geometry import Placement, Rect
from mosaic_windows.state import WindowEntry

pytestmark = pytest.mark.unit


def _entries(*handles):
    return [WindowEntry(h) for h in handles]


def test_four_windows_split_over_two_monitors(two_monitors):
    placements = ScreenLayoutEngine().plan_group(_entries(1, 2, 3, 4), two_monitors)
    assert placements == [
        Placement(1, 1, Rect(0, 0, 500, 1000)),
        Placement(2, 1, Rect(500, 0, 500, 1000)),
        Placement(3, 2, Rect(1000, 0, 500, 1000)),
        Placement(4, 2, Rect(1500, 0, 500, 1000)),
    ]


def test_short_column_stretches_its_windows():
    monitor = Rect(0, 0, 1000, 1000)
    placements = ScreenLayoutEngine().plan_screen(["a", "b", "c"], monitor)
    rects = {p.handle: p.rect for p in placements}
    # Column 1 holds a (top) and c (bottom); column 2 holds b alone.
    assert rects["a"] == Rect(0, 500, 500, 500)
    assert rects["c"] == Rect(0, 0, 500, 500)
    assert rects["b"] == Rect(500, 0, 500, 1000)
    assert [p.handle for p in placements] == ["a", "c", "b"]


def test_cells_stay_inside_monitor():
    monitor = Rect(100, 50, 1001, 777)
    placements = ScreenLayoutEngine().plan_screen(list(range(7)), monitor)
    assert len(placements) == 7
    for p in placements:
        assert p.rect.x >= monitor.x and p.rect.right <= monitor.right
        assert p.rect.y >= monitor.y and p.rect.top <= monitor.top


def test_pinned_window_stays_on_its_monitor(two_monitors):
    entries = [WindowEntry(1, monitor=2), WindowEntry(2), WindowEntry(3)]
    buckets = ScreenLayoutEngine().deal(entries, two_monitors)
    assert buckets == [[2], [1, 3]]


def test_pin_to_missing_monitor_treated_as_unpinned(two_monitors):
    entries = [WindowEntry(1, monitor=3), WindowEntry(2)]
    buckets = ScreenLayoutEngine().deal(entries, two_monitors)
    assert sorted(h for bucket in buckets for h in bucket) == [1, 2]


def test_plan_without_monitors_raises():
    with pytest.raises(ValueError):
        ScreenLayoutEngine().plan_group(_entries(1), [])


def test_plan_of_nothing_is_empty(two_monitors):
    assert ScreenLayoutEngine().plan_group([], two_monitors) == []


def test_layout_needs_a_backend(two_monitors):
    with pytest.raises(RuntimeError):
        ScreenLayoutEngine().layout_group(_entries(1), two_monitors)


def test_layout_matches_plan(windows, two_monitors):
    handles = [windows.create_window() for _ in range(4)]
    engine = ScreenLayoutEngine(windows)
    applied = engine.layout_group(_entries(*handles), two_monitors)
    assert applied == engine.plan_group(_entries(*handles), two_monitors)
    assert windows.rects == {p.handle: p.rect for p in applied}


def test_layout_is_idempotent(windows, two_monitors):
    handles = [windows.create_window() for _ in range(5)]
    engine = ScreenLayoutEngine(windows)
    engine.layout_group(_entries(*handles), two_monitors)
    first = dict(windows.rects)
    engine.layout_group(_entries(*handles), two_monitors)
    assert windows.rects == first


def test_hidden_windows_are_not_laid_out(windows, two_monitors):
    handles = [windows.create_window() for _ in range(3)]
    windows.hidden.add(handles[0])
    applied = ScreenLayoutEngine(windows).layout_group(_entries(*handles), two_monitors)
    assert handles[0] not in windows.rects
    assert {p.handle for p in applied} == set(handles[1:])


def test_docked_windows_keep_their_cell_but_are_not_moved(windows):
    monitor = Rect(0, 0, 1000, 1000)
    handles = [windows.create_window() for _ in range(2)]
    windows.docked.add(handles[0])
    applied = ScreenLayoutEngine(windows).layout_screen(handles, monitor)
    assert [p.handle for p in applied] == [handles[1]]
    assert windows.rects == {handles[1]: Rect(500, 0, 500, 1000)}


def test_activate_focuses_in_assignment_order(windows):
    monitor = Rect(0, 0, 1000, 1000)
    handles = [windows.create_window() for _ in range(3)]
    ScreenLayoutEngine(windows).layout_screen(handles, monitor, activate=True)
    assert windows.focused == [handles[0], handles[2], handles[1]]


def test_layout_follows_monitor_changes(windows, two_monitors):
    handles = [windows.create_window() for _ in range(2)]
    entries = [WindowEntry(handles[0], monitor=2), WindowEntry(handles[1])]
    engine = ScreenLayoutEngine(windows)
    engine.layout_group(entries, two_monitors)
    assert windows.rects[handles[0]].x >= 1000

    # Monitor 2 unplugged: the pinned window falls back to monitor 1.
    engine.layout_group(entries, two_monitors[:1])
    assert all(r.right <= 1000 for r in windows.rects.values())
