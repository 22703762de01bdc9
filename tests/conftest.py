"""
Pytest configuration and shared fixtures.

Every test runs against the in-memory store so no Redis server is needed.
"""

import os

# Set environment variables BEFORE any app imports
os.environ["KV_STORE_BACKEND"] = "memory"
os.environ["ENABLE_METRICS"] = "false"
os.environ["WRITE_BACK_DELAY_SECONDS"] = "0"

import pytest

from app.services.cache.cache_config import CacheConfig
from app.services.cache.cache_engine import CacheEngine
from app.services.cache.stats import InMemoryStatsCollector
from app.services.key_value_store.in_memory_store import InMemoryStore


class TickingClock:
    """Clock that advances one second on every reading."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


class ManualClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def stats() -> InMemoryStatsCollector:
    return InMemoryStatsCollector()


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(default_ttl_seconds=60, default_max_size=100, write_back_delay_seconds=0)


@pytest.fixture
def engine(store: InMemoryStore, cache_config: CacheConfig, stats: InMemoryStatsCollector) -> CacheEngine:
    """Cache engine with a deterministic LRU clock and no write-back delay."""
    return CacheEngine(store, config=cache_config, stats=stats, clock=TickingClock())


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def expiring_store(manual_clock: ManualClock) -> InMemoryStore:
    """In-memory store whose expiry clock is driven by manual_clock."""
    return InMemoryStore(clock=manual_clock)
