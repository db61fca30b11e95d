"""Inode number allocation."""

from __future__ import annotations

import threading

from .base import ROOT_INO, EntryStore


class InodeAllocator:
    """Hands out unique, increasing inode numbers.

    The counter is seeded once from the highest inode in the store, then kept
    in memory so numbers freed by deletes are never handed out again during
    the allocator's lifetime. Callers allocate inside the same serialized unit
    that inserts the entry.
    """

    def __init__(self, store: EntryStore, root_ino: int = ROOT_INO):
        self._store = store
        self._root_ino = root_ino
        self._last: int | None = None
        self._lock = threading.Lock()

    def next_ino(self) -> int:
        """Return an inode number no live entry uses."""
        with self._lock:
            if self._last is None:
                self._last = max(self._store.max_ino() or 0, self._root_ino)
            self._last += 1
            return self._last
