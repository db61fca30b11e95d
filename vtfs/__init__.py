"""vtfs: a path-addressed filesystem with inode metadata over a keyed entry store."""

from .base import Created, DirEntry, Entry, EntryKind, EntryStore, Stat
from .config import MemoryStoreConfig, SQLStoreConfig, StoreConfig, connect_store, open_store
from .context import defer_commits
from .engine import FileSystemEngine
from .errors import ErrorCode, Failure, FSError, Result, StoreError, Success
from .handler import RequestHandler
from .sql import SQLEntryStore
from .store import MappingEntryStore

__all__ = [
    "connect_store",
    "Created",
    "defer_commits",
    "DirEntry",
    "Entry",
    "EntryKind",
    "EntryStore",
    "ErrorCode",
    "Failure",
    "FileSystemEngine",
    "FSError",
    "MappingEntryStore",
    "MemoryStoreConfig",
    "open_store",
    "RequestHandler",
    "Result",
    "SQLEntryStore",
    "SQLStoreConfig",
    "Stat",
    "StoreConfig",
    "StoreError",
    "Success",
]
