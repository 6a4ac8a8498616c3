"""Shared pytest fixtures for tjcache tests."""

import pytest

from tjcache.services.registry import CacheRegistry
from tjcache.storage.backends import MemoryBackend
from tjcache.storage.durable import DurableKeyStore
from tjcache.sync.persistence import FilterPersistence


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """A clock that only moves when the test says so."""
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def durable(backend, clock):
    """Durable store over an in-memory backend."""
    return DurableKeyStore(backend, ttl=300, clock=clock)


@pytest.fixture
def persistence(durable):
    return FilterPersistence(durable)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point TJCACHE_DATA_DIR at a temporary directory."""
    path = tmp_path / "tjcache-data"
    monkeypatch.setenv("TJCACHE_DATA_DIR", str(path))
    return path


@pytest.fixture(autouse=True)
def reset_registry():
    """Each test starts without a process-wide registry."""
    CacheRegistry.reset_instance()
    yield
    CacheRegistry.reset_instance()
