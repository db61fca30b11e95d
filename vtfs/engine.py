"""Filesystem engine.

Implements the path-addressed filesystem operations on top of an
:class:`~vtfs.base.EntryStore`: creating, linking and deleting entries,
byte-range reads and writes, stat and directory listing.

Every public operation returns a :class:`~vtfs.errors.Success` or a
:class:`~vtfs.errors.Failure`. Filesystem conditions never escape as
exceptions; storage faults (``StoreError``) do.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace

from .base import (
    MODE_MASK,
    ROOT_INO,
    ROOT_PATH,
    Created,
    DirEntry,
    Entry,
    EntryKind,
    EntryStore,
    Stat,
)
from .errors import ErrorCode, Failure, FSError, Result, Success
from .inodes import InodeAllocator
from .paths import leaf_name, normalize, parent_of
from .store import MappingEntryStore

logger = logging.getLogger(__name__)


def _returns_result(method):
    """Wrap an engine method so FSError becomes a Failure and values a Success."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return Success(method(self, *args, **kwargs))
        except FSError as e:
            return Failure(e.code, e.filename)

    return wrapper


def _is_count(value) -> bool:
    """True for a non-negative int (bool excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class FileSystemEngine:
    """A single rooted filesystem stored entry-per-path in an EntryStore.

    Mutating operations (create, delete, read, write, link) each run as one
    serialized unit: an engine-wide lock plus a store transaction, both
    released on every exit path. stat, list_dir and exists take the same lock,
    so they never observe a mutation that is still in progress.

    Example:
        >>> engine = FileSystemEngine()
        >>> engine.create("/docs", "dir", 0o755).unwrap().path
        '/docs'
        >>> engine.create("/docs/a.txt", "file", 0o644).ok
        True
        >>> engine.write("/docs/a.txt", 0, b"hello").unwrap()
        5
        >>> engine.read("/docs/a.txt", 1, 3).unwrap()
        b'ell'
        >>> engine.delete("/").code
        <ErrorCode.BUSY: 'Busy'>
    """

    def __init__(
        self,
        store: EntryStore | None = None,
        clock: Callable[[], float] = time.time,
        root_ino: int = ROOT_INO,
    ):
        """Initialize the engine and make sure the root directory exists.

        Args:
            store: Entry store. Defaults to an in-process MappingEntryStore.
            clock: Source of epoch-second timestamps.
            root_ino: Inode number given to a newly created root.
        """
        self._store = store if store is not None else MappingEntryStore()
        self._clock = clock
        self._root_ino = root_ino
        self._inodes = InodeAllocator(self._store, root_ino)
        self._lock = threading.RLock()
        self._ensure_root()

    @property
    def store(self) -> EntryStore:
        return self._store

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock, self._store.transaction():
            yield

    def _ensure_root(self) -> None:
        with self._mutation():
            if self._store.get(ROOT_PATH) is not None:
                return
            now = self._clock()
            self._store.put(
                Entry(
                    path=ROOT_PATH,
                    ino=self._root_ino,
                    kind=EntryKind.DIR,
                    mode=MODE_MASK,
                    nlink=2,
                    size=0,
                    content=None,
                    atime=now,
                    mtime=now,
                    ctime=now,
                    parent_path=None,
                )
            )
        logger.info("Created root directory (ino %d)", self._root_ino)

    def _require(self, path: str) -> Entry:
        entry = self._store.get(path)
        if entry is None:
            raise FSError(ErrorCode.NOT_FOUND, path)
        return entry

    def _require_file(self, path: str) -> Entry:
        entry = self._require(path)
        if entry.is_dir:
            raise FSError(ErrorCode.IS_DIRECTORY, path)
        return entry

    def _require_dir(self, path: str) -> Entry:
        entry = self._require(path)
        if not entry.is_dir:
            raise FSError(ErrorCode.NOT_DIRECTORY, path)
        return entry

    def _require_absent(self, path: str) -> None:
        if self._store.get(path) is not None:
            raise FSError(ErrorCode.EXISTS, path)

    def _require_parent(self, path: str) -> Entry:
        """The existing directory that will contain ``path``."""
        parent = self._store.get(parent_of(path))
        if parent is None:
            raise FSError(ErrorCode.NOT_FOUND, path)
        if not parent.is_dir:
            raise FSError(ErrorCode.NOT_DIRECTORY, path)
        return parent

    def _update_inode(self, entry: Entry, **changes) -> None:
        """Apply inode-level changes to every path sharing ``entry``'s inode."""
        linked = [entry] if entry.is_dir else self._store.by_ino(entry.ino)
        for e in linked or [entry]:
            self._store.put(replace(e, **changes))

    def _touch_parent(self, parent: Entry, now: float, nlink_delta: int = 0) -> None:
        self._store.put(
            replace(parent, nlink=parent.nlink + nlink_delta, mtime=now, ctime=now)
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        """Check whether an entry exists at ``path``."""
        with self._lock:
            return self._store.get(normalize(path)) is not None

    @_returns_result
    def list_dir(self, path: str = ROOT_PATH) -> Result[list[DirEntry]]:
        """List the direct children of a directory.

        Returns:
            Success with a DirEntry per child, or Failure with NotFound or
            NotDirectory.
        """
        path = normalize(path)
        with self._lock:
            self._require_dir(path)
            return [
                DirEntry(
                    name=leaf_name(child.path),
                    ino=child.ino,
                    kind=child.kind,
                    mode=child.mode,
                    size=child.size,
                )
                for child in self._store.children(path)
            ]

    @_returns_result
    def create(
        self, path: str, kind: EntryKind | str = EntryKind.FILE, mode: int = MODE_MASK
    ) -> Result[Created]:
        """Create an empty file or directory.

        Args:
            path: Path of the new entry.
            kind: ``"file"``/``"dir"`` or an EntryKind.
            mode: Permission bits; masked to 0o777.

        Returns:
            Success with the new inode and canonical path, or Failure with
            Exists, NotFound, NotDirectory or InvalidArgument.
        """
        path = normalize(path)
        with self._mutation():
            self._require_absent(path)
            parent = self._require_parent(path)

            entry_kind = EntryKind.parse(kind)
            if entry_kind is None or isinstance(mode, bool) or not isinstance(mode, int):
                raise FSError(ErrorCode.INVALID_ARGUMENT, path)

            ino = self._inodes.next_ino()
            now = self._clock()
            is_dir = entry_kind is EntryKind.DIR
            self._store.put(
                Entry(
                    path=path,
                    ino=ino,
                    kind=entry_kind,
                    mode=mode & MODE_MASK,
                    nlink=2 if is_dir else 1,
                    size=0,
                    content=None,
                    atime=now,
                    mtime=now,
                    ctime=now,
                    parent_path=parent.path,
                )
            )
            # A subdirectory's ".." counts as a link to its parent.
            self._touch_parent(parent, now, nlink_delta=1 if is_dir else 0)

        logger.debug("Created %s %s (ino %d)", entry_kind.value, path, ino)
        return Created(ino=ino, path=path)

    @_returns_result
    def delete(self, path: str) -> Result[str]:
        """Remove a file path or an empty directory.

        Removing one path of a hard-linked file leaves the other paths with
        their link count reduced by one.

        Returns:
            Success with the removed canonical path, or Failure with Busy,
            NotFound or NotEmpty.
        """
        path = normalize(path)
        if path == ROOT_PATH:
            raise FSError(ErrorCode.BUSY, path)

        with self._mutation():
            entry = self._require(path)
            now = self._clock()

            if entry.is_dir:
                if self._store.children(path):
                    raise FSError(ErrorCode.NOT_EMPTY, path)
                self._store.delete(path)
                nlink_delta = -1
            else:
                self._store.delete(path)
                remaining = max(entry.nlink - 1, 1)
                for other in self._store.by_ino(entry.ino):
                    self._store.put(replace(other, nlink=remaining, ctime=now))
                nlink_delta = 0

            parent = self._store.get(entry.parent_path or ROOT_PATH)
            if parent is not None:
                self._touch_parent(parent, now, nlink_delta=nlink_delta)

        logger.debug("Deleted %s (ino %d)", path, entry.ino)
        return path

    @_returns_result
    def read(self, path: str, offset: int = 0, size: int | None = None) -> Result[bytes]:
        """Read up to ``size`` bytes starting at ``offset``.

        Reading at or past end of file returns ``b""``. The access time is
        updated on every successful read, including those.

        Args:
            path: File path.
            offset: Start position, >= 0.
            size: Maximum bytes to return; None reads to end of file.

        Returns:
            Success with the bytes read, or Failure with NotFound,
            IsDirectory or InvalidArgument.
        """
        path = normalize(path)
        if not _is_count(offset) or (size is not None and not _is_count(size)):
            raise FSError(ErrorCode.INVALID_ARGUMENT, path)

        with self._mutation():
            entry = self._require_file(path)
            self._update_inode(entry, atime=self._clock())

        data = entry.content or b""
        if offset >= len(data):
            return b""
        end = len(data) if size is None else min(offset + size, len(data))
        return data[offset:end]

    @_returns_result
    def write(self, path: str, offset: int, data: bytes) -> Result[int]:
        """Write ``data`` at ``offset``, extending the file if needed.

        Bytes before ``offset`` and after the written range are preserved.
        Writing past end of file leaves the gap zero-filled.

        Returns:
            Success with the number of bytes written, or Failure with
            NotFound, IsDirectory or InvalidArgument.
        """
        path = normalize(path)
        if not _is_count(offset) or not isinstance(data, (bytes, bytearray, memoryview)):
            raise FSError(ErrorCode.INVALID_ARGUMENT, path)
        data = bytes(data)

        with self._mutation():
            entry = self._require_file(path)
            old = entry.content or b""
            end = offset + len(data)

            buf = bytearray(max(end, len(old)))
            prefix = old[:offset]
            buf[: len(prefix)] = prefix
            buf[offset:end] = data
            if end < len(old):
                buf[end:] = old[end:]

            now = self._clock()
            self._update_inode(entry, content=bytes(buf), size=len(buf), mtime=now, ctime=now)

        logger.debug("Wrote %d bytes to %s at offset %d", len(data), path, offset)
        return len(data)

    @_returns_result
    def stat(self, path: str) -> Result[Stat]:
        """Return metadata for ``path``, or Failure with NotFound."""
        with self._lock:
            return Stat.from_entry(self._require(normalize(path)))

    @_returns_result
    def link(self, old_path: str, new_path: str) -> Result[str]:
        """Create ``new_path`` as a hard link to the file at ``old_path``.

        Returns:
            Success with the new canonical path, or Failure with NotFound,
            NotPermitted (directories cannot be linked), Exists or
            NotDirectory.
        """
        old_path = normalize(old_path)
        new_path = normalize(new_path)

        with self._mutation():
            old = self._require(old_path)
            if old.is_dir:
                raise FSError(ErrorCode.NOT_PERMITTED, old_path)
            self._require_absent(new_path)
            parent = self._require_parent(new_path)

            now = self._clock()
            nlink = old.nlink + 1
            self._update_inode(old, nlink=nlink, ctime=now)
            self._store.put(
                replace(
                    old,
                    path=new_path,
                    parent_path=parent.path,
                    nlink=nlink,
                    atime=now,
                    ctime=now,
                )
            )
            self._touch_parent(parent, now)

        logger.debug("Linked %s -> %s (ino %d)", new_path, old_path, old.ino)
        return new_path
