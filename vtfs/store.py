"""Mapping-backed entry store.

Persists entries into any ``MutableMapping[str, bytes]``: a plain dict for an
in-process filesystem, or a disk-backed mapping for durability.
"""

from __future__ import annotations

import base64
import contextvars
import logging
import pickle
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager

from .base import Entry
from .context import commits_deferred
from .errors import StoreError

logger = logging.getLogger(__name__)


class MappingEntryStore:
    """Entry store backed by a mutable mapping.

    Each entry is pickled under a key derived from its canonical path. Lookups
    by parent path and by inode scan the mapping; nothing is cached, so a
    mapping shared between stores is always read fresh.

    Writes made inside :meth:`transaction` are staged and only reach the
    mapping when the outermost transaction exits cleanly. If the mapping has a
    ``commit()`` method it is called after the staged writes are applied,
    unless commits are deferred (see :func:`vtfs.defer_commits`).

    Example:
        >>> import vtfs
        >>> state = {}  # any MutableMapping[str, bytes]
        >>> store = vtfs.MappingEntryStore(state)
        >>> engine = vtfs.FileSystemEngine(store)
        >>> engine.create("/notes.txt", "file", 0o644).ok
        True
    """

    PREFIX = "__vtfs_entry_"

    def __init__(
        self,
        state: MutableMapping[str, bytes] | None = None,
        max_size_mb: int | None = None,
    ):
        """Initialize the store.

        Args:
            state: Backing mapping. Defaults to an empty dict.
            max_size_mb: Maximum total size of file contents in megabytes.
                None means unlimited.
        """
        self._state = state if state is not None else {}
        self._max_size_bytes: int | None = (
            max_size_mb * 1024 * 1024 if max_size_mb is not None else None
        )
        # Writes staged by the transaction open in the current context. A value
        # of None marks a pending delete.
        self._pending: contextvars.ContextVar[dict[str, Entry | None] | None] = (
            contextvars.ContextVar(f"vtfs_mapping_pending_{id(self)}", default=None)
        )

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def _encode_path(self, path: str) -> str:
        """Convert a canonical path to a state key.

        Uses base32 encoding for safe keys.

        Args:
            path: Canonical path (e.g., "/shared/data.csv").

        Returns:
            State key (e.g., "__vtfs_entry_F5ZWQYLSMVSC6ZDBORQS4Y3TOY").
        """
        encoded = base64.b32encode(path.encode()).decode().rstrip("=")
        return f"{self.PREFIX}{encoded}"

    def _is_entry_key(self, key: str) -> bool:
        return key.startswith(self.PREFIX)

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    def _load(self, key: str) -> Entry | None:
        try:
            raw = self._state.get(key)
            if raw is None:
                return None
            return pickle.loads(raw)
        except (pickle.UnpicklingError, EOFError, AttributeError, ValueError) as e:
            raise StoreError(f"Corrupt entry under key {key!r}: {e}") from e

    def _committed(self) -> Iterator[Entry]:
        for key in list(self._state.keys()):
            if not self._is_entry_key(key):
                continue
            entry = self._load(key)
            if entry is not None:
                yield entry

    def _entries(self) -> Iterator[Entry]:
        """All entries visible in the current context, staged writes included."""
        pending = self._pending.get()
        if not pending:
            yield from self._committed()
            return
        for entry in self._committed():
            if entry.path not in pending:
                yield entry
        for entry in pending.values():
            if entry is not None:
                yield entry

    # -------------------------------------------------------------------------
    # EntryStore
    # -------------------------------------------------------------------------

    def get(self, path: str) -> Entry | None:
        pending = self._pending.get()
        if pending is not None and path in pending:
            return pending[path]
        return self._load(self._encode_path(path))

    def put(self, entry: Entry) -> None:
        self._check_size_limit(entry)
        pending = self._pending.get()
        if pending is not None:
            pending[entry.path] = entry
            return
        self._state[self._encode_path(entry.path)] = pickle.dumps(entry)
        self._maybe_commit()

    def delete(self, path: str) -> None:
        pending = self._pending.get()
        if pending is not None:
            pending[path] = None
            return
        self._state.pop(self._encode_path(path), None)
        self._maybe_commit()

    def children(self, parent_path: str) -> list[Entry]:
        found = [e for e in self._entries() if e.parent_path == parent_path]
        return sorted(found, key=lambda e: e.path)

    def by_ino(self, ino: int) -> list[Entry]:
        found = [e for e in self._entries() if e.ino == ino]
        return sorted(found, key=lambda e: e.path)

    def max_ino(self) -> int | None:
        return max((e.ino for e in self._entries()), default=None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Stage writes and apply them together when the block exits cleanly.

        Nested transactions join the outermost one. If the block raises, the
        staged writes are discarded.
        """
        if self._pending.get() is not None:
            yield
            return

        pending: dict[str, Entry | None] = {}
        token = self._pending.set(pending)
        try:
            yield
        finally:
            self._pending.reset(token)
        # Only reached when the block did not raise.
        self._apply(pending)

    def _apply(self, pending: dict[str, Entry | None]) -> None:
        for path, entry in pending.items():
            key = self._encode_path(path)
            if entry is None:
                self._state.pop(key, None)
            else:
                self._state[key] = pickle.dumps(entry)
        if pending:
            logger.debug("Applied %d staged entry writes", len(pending))
            self._maybe_commit()

    def _maybe_commit(self) -> None:
        commit = getattr(self._state, "commit", None)
        if callable(commit) and not commits_deferred():
            commit()

    # -------------------------------------------------------------------------
    # Size limit
    # -------------------------------------------------------------------------

    def _current_size(self, excluding_ino: int) -> int:
        """Total content bytes of every file inode except ``excluding_ino``."""
        sizes: dict[int, int] = {}
        for entry in self._entries():
            if not entry.is_dir and entry.ino != excluding_ino:
                sizes[entry.ino] = entry.size
        return sum(sizes.values())

    def _check_size_limit(self, entry: Entry) -> None:
        """Reject a put that would push total content past ``max_size_mb``.

        Raises:
            StoreError: If the limit would be exceeded.
        """
        if self._max_size_bytes is None or entry.is_dir:
            return

        new_total = self._current_size(entry.ino) + entry.size
        if new_total > self._max_size_bytes:
            raise StoreError(
                f"Store size limit exceeded: {new_total / 1024 / 1024:.1f}MB > "
                f"{self._max_size_bytes / 1024 / 1024:.1f}MB"
            )
