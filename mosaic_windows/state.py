"""
mosaic_windows.state
--------------------

Group registry and its on-disk backup.

The registry is the tiler's only mutable state: an ordered list of groups,
each holding its windows and the monitor every window is pinned to. Entry 0
is always the *ungrouped* set (group id ``None``).

Design
~~~~~~
" GroupRegistry  in-memory model, mutated by the controller.
" JsonBackupStore  JSON file keeping registry snapshots so a fresh process
  (or a reset of the in-memory copy) can recover the groups. Written
  synchronously on every mutation, atomically, under an fcntl lock.
" Snapshots are validated with pydantic on load; anything unreadable yields an
  empty registry.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .backends import BackupStore
from .constants import ALL_GROUPS, NUMERIC_GROUP_PATTERN, REGISTRY_KEY, state_file
from .geometry import Handle

_LOG = logging.getLogger(__name__)

GroupId = Union[None, int, str]


class InvalidGroupError(ValueError):
    """Raised for group identifiers that cannot name a group."""


# --------------------------------------------------------------------------- #
# Dataclasses                                                                 #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class WindowEntry:
    """One tiled window; ``monitor`` 0 means it may go to any monitor."""

    handle: Handle
    monitor: int = 0


@dataclass(slots=True)
class GroupEntry:
    """A set of windows laid out together."""

    group: GroupId
    members: list[WindowEntry] = field(default_factory=list)

    def handles(self) -> list[Handle]:
        return [m.handle for m in self.members]

    def get(self, handle: Handle) -> Optional[WindowEntry]:
        for member in self.members:
            if member.handle == handle:
                return member
        return None


def group_label(group: GroupId) -> str:
    """Human readable group name (empty for the ungrouped set)."""
    if group is None:
        return ""
    return str(group)


def validate_group_id(group: Any) -> GroupId:
    """
    Return the canonical form of *group* or raise :class:`InvalidGroupError`.

    ``None`` and ``""`` select the ungrouped set. The name ``"all"`` and
    strings spelling a positive integer are reserved.
    """
    if group is None or group == "":
        return None
    if isinstance(group, bool):
        raise InvalidGroupError("Group must be a string, an integer or None")
    if isinstance(group, int):
        return group
    if isinstance(group, str):
        if group == ALL_GROUPS:
            raise InvalidGroupError(
                f'The group name "{ALL_GROUPS}" is reserved and cannot be used'
            )
        if re.match(NUMERIC_GROUP_PATTERN, group):
            raise InvalidGroupError(
                f'The group name "{group}" must not be an integer written as a '
                "string; use the integer itself"
            )
        return group
    raise InvalidGroupError(
        f"Group must be a string, an integer or None, not {type(group).__name__}"
    )


def _same_group(a: GroupId, b: GroupId) -> bool:
    # 1 and "1" are different groups; so are True and 1.
    return type(a) is type(b) and a == b


# --------------------------------------------------------------------------- #
# Snapshot schema                                                             #
# --------------------------------------------------------------------------- #


class WindowRecord(BaseModel):
    """Serialized :class:`WindowEntry`."""

    handle: Union[int, str]
    monitor: int = Field(default=0, ge=0)
    model_config = ConfigDict(extra="ignore")


class GroupRecord(BaseModel):
    """Serialized :class:`GroupEntry`."""

    group: Union[None, int, str] = None
    members: list[WindowRecord] = Field(default_factory=list)
    model_config = ConfigDict(extra="ignore")


_SNAPSHOT = TypeAdapter(list[GroupRecord])


# --------------------------------------------------------------------------- #
# Backup store                                                                #
# --------------------------------------------------------------------------- #


class JsonBackupStore:
    """
    Keep named snapshots in one JSON document.

    Failures are logged and swallowed: persistence is best effort, the
    in-memory state stays authoritative.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else state_file()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict:
        with self._path.open("r") as fp:
            fcntl.flock(fp.fileno(), fcntl.LOCK_SH)
            raw = json.load(fp)
            fcntl.flock(fp.fileno(), fcntl.LOCK_UN)
        if not isinstance(raw, dict):
            raise ValueError("top-level JSON value is not an object")
        return raw

    def _write_atomic(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        with tmp_path.open("w") as fp:
            fcntl.flock(fp.fileno(), fcntl.LOCK_EX)
            json.dump(data, fp, indent=2)
            fp.flush()
            os.fsync(fp.fileno())
            fcntl.flock(fp.fileno(), fcntl.LOCK_UN)
        tmp_path.replace(self._path)

    def load(self, key: str) -> Any | None:
        """Return the snapshot stored under *key*, or None."""
        if not self._path.exists():
            return None
        try:
            raw = self._read()
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            _LOG.warning("Failed to load backup from %s: %s", self._path, exc)
            return None
        return raw.get(key)

    def save(self, key: str, snapshot: Any) -> None:
        """Store *snapshot* under *key*, keeping the other keys."""
        data: dict = {}
        if self._path.exists():
            try:
                data = self._read()
            except (OSError, ValueError) as exc:
                _LOG.warning("Overwriting unreadable backup %s: %s", self._path, exc)
        data["schema"] = 1
        data["saved_at"] = datetime.now(timezone.utc).isoformat()
        data[key] = snapshot
        try:
            self._write_atomic(data)
        except OSError as exc:
            _LOG.warning("Failed to write backup to %s: %s", self._path, exc)


# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #


class GroupRegistry:
    """
    Ordered groups of tiled windows.

    Index 0 is the ungrouped set and always exists; other groups are removed as
    soon as their last window goes. Every mutating method persists to the
    backup store (when one is configured).
    """

    def __init__(
        self, store: Optional[BackupStore] = None, key: str = REGISTRY_KEY
    ) -> None:
        self._store = store
        self._key = key
        self._groups: list[GroupEntry] = [GroupEntry(None)]

    # ---------------  queries  -------------------------------------------- #

    @property
    def groups(self) -> list[GroupEntry]:
        """Shallow copy of the group list (ungrouped set first)."""
        return list(self._groups)

    @property
    def ungrouped(self) -> GroupEntry:
        return self._groups[0]

    def is_empty(self) -> bool:
        """True when no window is registered at all."""
        return len(self._groups) == 1 and not self._groups[0].members

    def find(self, group: GroupId) -> Optional[GroupEntry]:
        """Return the entry for *group*, or None when it does not exist."""
        if group is None:
            return self._groups[0]
        for entry in self._groups[1:]:
            if _same_group(entry.group, group):
                return entry
        return None

    def find_window(self, handle: Handle) -> Optional[tuple[GroupEntry, WindowEntry]]:
        for entry in self._groups:
            member = entry.get(handle)
            if member is not None:
                return entry, member
        return None

    def windows(self) -> list[WindowEntry]:
        return [m for entry in self._groups for m in entry.members]

    # ---------------  mutations  ------------------------------------------ #

    def add_window(self, group: GroupId, window: WindowEntry) -> tuple[GroupEntry, bool]:
        """
        Append *window* to *group*, creating the group when needed.

        Returns the group entry and whether it was created.
        """
        group = validate_group_id(group)
        entry = self.find(group)
        created = entry is None
        if entry is None:
            entry = GroupEntry(group)
            self._groups.append(entry)
        entry.members.append(window)
        self.save()
        return entry, created

    def remove_windows(self, group: GroupId, handles: Iterable[Handle]) -> bool:
        """
        Drop *handles* from *group*.

        Returns True when the group was deleted because it became empty (the
        ungrouped set is never deleted).
        """
        entry = self.find(group)
        if entry is None:
            return False
        doomed = list(handles)
        entry.members = [m for m in entry.members if m.handle not in doomed]
        deleted = False
        if entry.group is not None and not entry.members:
            self._groups.remove(entry)
            deleted = True
        self.save()
        return deleted

    def remove_group(self, group: GroupId) -> Optional[GroupEntry]:
        """Delete *group* (or empty the ungrouped set) and return what it held."""
        entry = self.find(group)
        if entry is None:
            return None
        removed = GroupEntry(entry.group, list(entry.members))
        if entry.group is None:
            entry.members = []
        else:
            self._groups.remove(entry)
        self.save()
        return removed

    def clear(self) -> None:
        self._groups = [GroupEntry(None)]
        self.save()

    # ---------------  snapshots  ------------------------------------------ #

    def snapshot(self) -> list[dict]:
        """JSON-compatible copy of the registry."""
        return [
            GroupRecord(
                group=entry.group,
                members=[
                    WindowRecord(handle=m.handle, monitor=m.monitor)
                    for m in entry.members
                ],
            ).model_dump()
            for entry in self._groups
        ]

    def restore(self, snapshot: Any) -> None:
        """
        Replace the registry with *snapshot*.

        Raises pydantic's ``ValidationError`` when the snapshot is malformed.
        Duplicate groups are merged and empty groups dropped.
        """
        records = _SNAPSHOT.validate_python(snapshot)
        groups: list[GroupEntry] = [GroupEntry(None)]
        for record in records:
            group = record.group if record.group != "" else None
            members = [WindowEntry(w.handle, w.monitor) for w in record.members]
            target = None
            for entry in groups:
                if (entry.group is None and group is None) or (
                    group is not None and _same_group(entry.group, group)
                ):
                    target = entry
                    break
            if target is None:
                if not members:
                    continue
                target = GroupEntry(group)
                groups.append(target)
            target.members.extend(members)
        self._groups = groups

    def save(self) -> None:
        """Persist a snapshot to the backup store."""
        if self._store is None:
            return
        self._store.save(self._key, self.snapshot())

    def load(self) -> bool:
        """
        Reload from the backup store.

        Returns False (leaving an empty registry) when there is no usable
        backup.
        """
        self._groups = [GroupEntry(None)]
        if self._store is None:
            return False
        raw = self._store.load(self._key)
        if raw is None:
            return False
        try:
            self.restore(raw)
        except ValidationError as exc:
            _LOG.warning("Ignoring corrupt registry backup: %s", exc)
            self._groups = [GroupEntry(None)]
            return False
        return True

    def recover(self) -> bool:
        """Reload from backup when the in-memory copy has been lost."""
        if not self.is_empty():
            return False
        _LOG.debug("Registry empty; trying to recover it from backup")
        return self.load()
