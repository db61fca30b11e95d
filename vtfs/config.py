"""Configuration for entry stores.

Provides configuration dataclasses, the connect_store factory function and
open_store, which builds the configured store.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Literal

from .base import EntryStore
from .sql import SQLEntryStore
from .store import MappingEntryStore


@dataclass
class MemoryStoreConfig:
    """Configuration for a mapping-backed store.

    Attributes:
        type: Always "memory".
        max_size_mb: Maximum total size of file contents in megabytes.
            None means unlimited.
    """

    type: Literal["memory"] = "memory"
    max_size_mb: int | None = None


@dataclass
class SQLStoreConfig:
    """Configuration for a SQLAlchemy-backed store.

    Attributes:
        type: Always "sql".
        url: SQLAlchemy database URL (default: private in-memory SQLite).
        echo: Log every emitted SQL statement.
    """

    type: Literal["sql"] = "sql"
    url: str = "sqlite://"
    echo: bool = False


# Type alias for all store configs
StoreConfig = MemoryStoreConfig | SQLStoreConfig


def connect_store(
    type: Literal["memory", "sql"] = "memory",
    **kwargs,
) -> StoreConfig:
    """Configure entry storage.

    Args:
        type: Store type.
            - "memory": Entries pickled into a mapping (a dict unless one is
                        passed to open_store).
            - "sql": Entries in a relational database via SQLAlchemy.
        **kwargs: Additional configuration for the store type.
            For type="memory":
                - max_size_mb (int): Optional. Cap on total file content.
            For type="sql":
                - url (str): Optional. Database URL (default "sqlite://").
                - echo (bool): Optional. Log SQL (default: False).

    Returns:
        StoreConfig for open_store.

    Examples:
        >>> connect_store(type="memory")
        MemoryStoreConfig(type='memory', max_size_mb=None)

        >>> connect_store(type="sql", url="sqlite:///vtfs.db")
        SQLStoreConfig(type='sql', url='sqlite:///vtfs.db', echo=False)
    """
    if type == "memory":
        max_size_mb = kwargs.pop("max_size_mb", None)
        if kwargs:
            raise ValueError(
                f"Unexpected arguments for memory store: {list(kwargs.keys())}"
            )
        return MemoryStoreConfig(type=type, max_size_mb=max_size_mb)

    elif type == "sql":
        url = kwargs.pop("url", "sqlite://")
        echo = kwargs.pop("echo", False)

        if kwargs:
            raise ValueError(
                f"Unexpected arguments for sql store: {list(kwargs.keys())}"
            )

        if not url:
            raise ValueError("SQL store requires a non-empty 'url' parameter")

        return SQLStoreConfig(url=url, echo=echo)

    else:
        raise ValueError(f"Unsupported store type: {type}. Use 'memory' or 'sql'.")


def open_store(
    config: StoreConfig,
    state: MutableMapping[str, bytes] | None = None,
) -> EntryStore:
    """Build the store described by ``config``.

    Args:
        config: Result of connect_store.
        state: Backing mapping for a memory store. Ignored for SQL stores.
    """
    if isinstance(config, MemoryStoreConfig):
        return MappingEntryStore(state, max_size_mb=config.max_size_mb)
    if isinstance(config, SQLStoreConfig):
        return SQLEntryStore(config.url, echo=config.echo)
    raise ValueError(f"Unsupported store config: {config!r}")
