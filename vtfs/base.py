"""Entry model, operation payloads and the entry store interface.

Defines the record persisted for every path and the protocol that storage
backends (MappingEntryStore, SQLEntryStore) implement.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

ROOT_PATH = "/"
ROOT_INO = 1000
MODE_MASK = 0o777


class EntryKind(str, Enum):
    """Kind of a filesystem entry."""

    FILE = "file"
    DIR = "dir"

    @classmethod
    def parse(cls, value: "EntryKind | str") -> "EntryKind | None":
        """Return the kind named by ``value`` (case-insensitive), or None."""
        if isinstance(value, EntryKind):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Entry:
    """Snapshot of one path in the filesystem.

    Entries are never mutated in place; the engine builds a new snapshot with
    ``dataclasses.replace`` and puts it back into the store.

    Attributes:
        path: Canonical absolute path, unique key.
        ino: Inode number, shared by all hard links to the same file.
        kind: File or directory.
        mode: Permission bits (0 to 0o777).
        nlink: Link count.
        size: Content length in bytes (0 for directories).
        content: File bytes, None when empty or for directories.
        atime: Last access, epoch seconds.
        mtime: Last content modification, epoch seconds.
        ctime: Last metadata change, epoch seconds.
        parent_path: Canonical path of the containing directory, None for root.
    """

    path: str
    ino: int
    kind: EntryKind
    mode: int
    nlink: int
    size: int
    content: bytes | None
    atime: float
    mtime: float
    ctime: float
    parent_path: str | None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR


@dataclass(frozen=True)
class Stat:
    """Metadata returned by ``stat``. Timestamps are whole epoch seconds."""

    ino: int
    kind: EntryKind
    mode: int
    nlink: int
    size: int
    atime: int
    mtime: int
    ctime: int

    @classmethod
    def from_entry(cls, entry: Entry) -> "Stat":
        return cls(
            ino=entry.ino,
            kind=entry.kind,
            mode=entry.mode,
            nlink=entry.nlink,
            size=entry.size,
            atime=int(entry.atime),
            mtime=int(entry.mtime),
            ctime=int(entry.ctime),
        )


@dataclass(frozen=True)
class DirEntry:
    """One child returned by ``list_dir``."""

    name: str
    ino: int
    kind: EntryKind
    mode: int
    size: int


@dataclass(frozen=True)
class Created:
    """Payload returned by ``create``."""

    ino: int
    path: str


@runtime_checkable
class EntryStore(Protocol):
    """Keyed persistence of entries.

    Keys are canonical paths. Stores also answer lookups by parent path and by
    inode number. Faults in the underlying storage are raised as
    ``StoreError``.
    """

    def get(self, path: str) -> Entry | None:
        """Return the entry stored at ``path``, or None."""
        ...

    def put(self, entry: Entry) -> None:
        """Insert or replace the entry at ``entry.path``."""
        ...

    def delete(self, path: str) -> None:
        """Remove the entry at ``path`` if present."""
        ...

    def children(self, parent_path: str) -> list[Entry]:
        """Entries whose ``parent_path`` equals ``parent_path``."""
        ...

    def by_ino(self, ino: int) -> list[Entry]:
        """All entries sharing inode number ``ino``."""
        ...

    def max_ino(self) -> int | None:
        """Highest inode number stored, or None when empty."""
        ...

    def transaction(self) -> AbstractContextManager[None]:
        """Scope grouping several reads and writes into one unit."""
        ...
