"""Shared fixtures for vtfs tests."""

import pytest

from vtfs import FileSystemEngine, MappingEntryStore, SQLEntryStore


class FakeClock:
    """Callable returning a controllable epoch-seconds timestamp."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each store backend, so engine behaviour is checked against both."""
    if request.param == "memory":
        return MappingEntryStore({})
    return SQLEntryStore("sqlite://")


@pytest.fixture
def engine(store, clock):
    return FileSystemEngine(store, clock=clock)
