"""Domain entities for the plugin lock manifest.

Pure value objects, no framework dependencies, no I/O.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class LockEntry:
    """Verified correspondence between a plugin source and a cached artifact.

    Replaced wholesale whenever the artifact is downloaded again.
    """

    file_name: str
    content_hash: str


class LockManifest:
    """Mapping of plugin source identifier (URL) to :class:`LockEntry`.

    One instance is shared by every component of a run. Mutations and
    snapshots go through an internal lock so that a snapshot taken for
    persistence or reaping never observes a half-applied update.
    """

    def __init__(self, entries: dict[str, LockEntry] | None = None) -> None:
        self._entries: dict[str, LockEntry] = dict(entries or {})
        self._lock = threading.RLock()

    def get(self, source_id: str) -> LockEntry | None:
        with self._lock:
            return self._entries.get(source_id)

    def set(self, source_id: str, entry: LockEntry) -> None:
        with self._lock:
            self._entries[source_id] = entry

    def remove(self, source_id: str) -> bool:
        """Drop an entry. True = removed, False = was not present."""
        with self._lock:
            return self._entries.pop(source_id, None) is not None

    def snapshot(self) -> dict[str, LockEntry]:
        """Return a point-in-time copy of all entries."""
        with self._lock:
            return dict(self._entries)

    def file_names(self) -> set[str]:
        with self._lock:
            return {entry.file_name for entry in self._entries.values()}

    def __contains__(self, source_id: object) -> bool:
        with self._lock:
            return source_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LockManifest):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return f"LockManifest({self.snapshot()!r})"


class LockLoadReason(str, Enum):
    """Why a lock file could not be used and an empty manifest was returned."""

    ABSENT = "absent"
    UNDECODABLE = "undecodable"
    INVALID_JSON = "invalid_json"
    INVALID_SCHEMA = "invalid_schema"


@dataclass(frozen=True)
class LockLoadResult:
    """Outcome of reading a lock file.

    ``reason`` is ``None`` when the file was read and validated. Otherwise
    ``manifest`` is empty and ``reason``/``detail`` describe the fallback.
    """

    manifest: LockManifest = field(default_factory=LockManifest)
    reason: LockLoadReason | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def corrupted(self) -> bool:
        """True if a file existed but could not be trusted."""
        return self.reason is not None and self.reason is not LockLoadReason.ABSENT
