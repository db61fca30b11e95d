"""Tests for store configuration."""

import pytest

from vtfs import (
    FileSystemEngine,
    MappingEntryStore,
    MemoryStoreConfig,
    SQLEntryStore,
    SQLStoreConfig,
    connect_store,
    open_store,
)


class TestConnectStore:
    """Test connect_store() validation."""

    def test_memory_default(self):
        assert connect_store() == MemoryStoreConfig(type="memory", max_size_mb=None)

    def test_memory_with_limit(self):
        assert connect_store(type="memory", max_size_mb=5).max_size_mb == 5

    def test_sql(self):
        config = connect_store(type="sql", url="sqlite:///x.db", echo=True)
        assert config == SQLStoreConfig(url="sqlite:///x.db", echo=True)

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unsupported store type"):
            connect_store(type="redis")

    def test_unexpected_arguments(self):
        with pytest.raises(ValueError, match="Unexpected arguments"):
            connect_store(type="memory", url="sqlite://")
        with pytest.raises(ValueError, match="Unexpected arguments"):
            connect_store(type="sql", max_size_mb=1)

    def test_empty_url(self):
        with pytest.raises(ValueError, match="url"):
            connect_store(type="sql", url="")


class TestOpenStore:
    """Test open_store() construction."""

    def test_memory_store_uses_given_state(self):
        state = {}
        store = open_store(connect_store(), state)
        assert isinstance(store, MappingEntryStore)

        FileSystemEngine(store)
        assert state  # root entry written into the mapping

    def test_sql_store(self):
        store = open_store(connect_store(type="sql"))
        assert isinstance(store, SQLEntryStore)
        assert FileSystemEngine(store).stat("/").ok

    def test_unknown_config(self):
        with pytest.raises(ValueError):
            open_store(object())
