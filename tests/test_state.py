"""Tests for the group registry and its JSON backup."""

import json

import pytest
from pydantic import ValidationError

from mosaic_windows.state import (
    GroupRegistry,
    InvalidGroupError,
    JsonBackupStore,
    WindowEntry,
    group_label,
    validate_group_id,
)

pytestmark = pytest.mark.unit


def _tuples(registry):
    return {
        (entry.group, m.handle, m.monitor)
        for entry in registry.groups
        for m in entry.members
    }


# --------------------------------------------------------------------------- #
# Group ids                                                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize("raw, expected", [(None, None), ("", None), (3, 3), ("g", "g")])
def test_valid_group_ids(raw, expected):
    assert validate_group_id(raw) == expected


@pytest.mark.parametrize("raw", ["all", "1", "42", True, 1.5, ["g"]])
def test_invalid_group_ids(raw):
    with pytest.raises(InvalidGroupError):
        validate_group_id(raw)


def test_strings_with_leading_zero_are_names():
    assert validate_group_id("07") == "07"


def test_group_label():
    assert group_label(None) == ""
    assert group_label(2) == "2"


# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #


def test_ungrouped_set_always_first():
    registry = GroupRegistry()
    assert registry.is_empty()
    assert registry.groups[0].group is None
    registry.add_window("g", WindowEntry(1))
    assert [e.group for e in registry.groups] == [None, "g"]


def test_add_window_reports_creation():
    registry = GroupRegistry()
    _, created = registry.add_window("g", WindowEntry(1))
    entry, created_again = registry.add_window("g", WindowEntry(2, monitor=2))
    assert created and not created_again
    assert entry.handles() == [1, 2]
    assert entry.get(2).monitor == 2


def test_integer_and_string_groups_are_distinct():
    registry = GroupRegistry()
    registry.add_window(1, WindowEntry("a"))
    registry.add_window("one", WindowEntry("b"))
    assert registry.find(1).handles() == ["a"]
    assert registry.find("one").handles() == ["b"]
    assert registry.find(2) is None


def test_empty_group_is_removed():
    registry = GroupRegistry()
    registry.add_window("g", WindowEntry(1))
    registry.add_window("g", WindowEntry(2))
    assert registry.remove_windows("g", [1]) is False
    assert registry.remove_windows("g", [2]) is True
    assert registry.find("g") is None


def test_ungrouped_set_is_never_removed():
    registry = GroupRegistry()
    registry.add_window(None, WindowEntry(1))
    assert registry.remove_windows(None, [1]) is False
    assert registry.find(None) is not None
    assert registry.is_empty()


def test_remove_group_returns_its_windows():
    registry = GroupRegistry()
    registry.add_window("g", WindowEntry(1))
    registry.add_window(None, WindowEntry(2))
    removed = registry.remove_group("g")
    assert removed.handles() == [1]
    assert registry.find("g") is None
    assert registry.remove_group(None).handles() == [2]
    assert registry.is_empty()
    assert registry.remove_group("missing") is None


def test_find_window():
    registry = GroupRegistry()
    registry.add_window("g", WindowEntry(7, monitor=1))
    entry, member = registry.find_window(7)
    assert entry.group == "g" and member.monitor == 1
    assert registry.find_window(8) is None


def test_restore_merges_duplicates_and_drops_empty_groups():
    registry = GroupRegistry()
    registry.restore(
        [
            {"group": None, "members": [{"handle": 1}]},
            {"group": "g", "members": [{"handle": 2}]},
            {"group": "g", "members": [{"handle": 3, "monitor": 2}]},
            {"group": "empty", "members": []},
        ]
    )
    assert [e.group for e in registry.groups] == [None, "g"]
    assert registry.find("g").handles() == [2, 3]


def test_restore_rejects_malformed_snapshot():
    with pytest.raises(ValidationError):
        GroupRegistry().restore([{"group": "g", "members": [{"handle": 1, "monitor": -1}]}])


# --------------------------------------------------------------------------- #
# Backup                                                                      #
# --------------------------------------------------------------------------- #


def test_round_trip_through_backup(store):
    registry = GroupRegistry(store)
    registry.add_window(None, WindowEntry("u"))
    registry.add_window("g", WindowEntry("a", monitor=2))
    registry.add_window(3, WindowEntry(10))

    reloaded = GroupRegistry(store)
    assert reloaded.load() is True
    assert _tuples(reloaded) == _tuples(registry)
    assert reloaded.find(3).handles() == [10]


def test_every_mutation_is_saved(store):
    registry = GroupRegistry(store)
    registry.add_window("g", WindowEntry(1))
    registry.remove_group("g")
    data = json.loads(store.path.read_text())
    assert data["registry"] == [{"group": None, "members": []}]
    assert "saved_at" in data


def test_backup_keeps_other_keys(store):
    store.save("other", {"x": 1})
    GroupRegistry(store).add_window("g", WindowEntry(1))
    assert store.load("other") == {"x": 1}


def test_missing_backup_gives_empty_registry(store):
    registry = GroupRegistry(store)
    assert registry.load() is False
    assert registry.is_empty()


def test_corrupt_backup_gives_empty_registry(store, caplog):
    store.path.write_text("{not json")
    registry = GroupRegistry(store)
    assert registry.load() is False
    assert registry.is_empty()
    assert "Failed to load backup" in caplog.text


def test_invalid_snapshot_gives_empty_registry(store, caplog):
    store.save("registry", [{"group": "g", "members": [{"monitor": 1}]}])
    registry = GroupRegistry(store)
    assert registry.load() is False
    assert registry.is_empty()
    assert "corrupt registry backup" in caplog.text


def test_save_failure_keeps_memory_state(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("")
    registry = GroupRegistry(JsonBackupStore(blocker / "state.json"))
    registry.add_window("g", WindowEntry(1))
    assert registry.find("g").handles() == [1]
    assert "Failed to write backup" in caplog.text


def test_recover_only_when_empty(store):
    GroupRegistry(store).add_window("g", WindowEntry(1))
    registry = GroupRegistry(store)
    assert registry.recover() is True
    assert registry.find("g") is not None
    # Not empty any more: no reload.
    assert registry.recover() is False
