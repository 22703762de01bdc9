"""Tests for the store and cache engine factories."""

from unittest.mock import patch

import pytest

from app.config import Settings
from app.services.cache import cache_engine
from app.services.cache.cache_engine import CacheEngine
from app.services.cache.cache_factory import create_cache_engine
from app.services.cache.eviction_policy import (
    create_eviction_index,
    EvictionPolicy,
    LFUIndex,
    LRUIndex
)
from app.services.cache.stats import InMemoryStatsCollector
from app.services.key_value_store.exceptions import InvalidStoreBackendError
from app.services.key_value_store.in_memory_store import InMemoryStore
from app.services.key_value_store.redis_store import RedisStore
from app.services.key_value_store.store_factory import create_store


class TestCreateStore:
    """Backend selection."""

    def test_memory_backend(self):
        assert isinstance(create_store("memory"), InMemoryStore)

    def test_backend_name_is_case_insensitive(self):
        assert isinstance(create_store(" MEMORY "), InMemoryStore)

    def test_redis_backend(self):
        store = create_store("redis", redis_url="redis://localhost:6379/0", socket_timeout=1.0)
        assert isinstance(store, RedisStore)

    def test_redis_backend_requires_url(self):
        with pytest.raises(ValueError):
            create_store("redis")

    def test_unknown_backend(self):
        with pytest.raises(InvalidStoreBackendError) as exc_info:
            create_store("memcached")
        assert exc_info.value.backend == "memcached"


class TestCreateCacheEngine:
    """Engine wiring from settings."""

    def test_uses_settings(self):
        settings = Settings(
            cache_default_ttl_seconds=120,
            cache_max_size=5,
            lru_index_key="my_lru",
            lfu_index_key="my_lfu",
            dirty_set_key="my_dirty",
            write_back_delay_seconds=0.5
        )

        engine = create_cache_engine(settings, InMemoryStore())

        assert isinstance(engine, CacheEngine)
        assert engine.config.default_ttl_seconds == 120
        assert engine.config.default_max_size == 5
        assert engine.lru_index.index_key == "my_lru"
        assert engine.lfu_index.index_key == "my_lfu"
        assert engine.deferred_writer.dirty_set_key == "my_dirty"

    def test_uses_given_stats_collector(self):
        stats = InMemoryStatsCollector()
        engine = create_cache_engine(Settings(), InMemoryStore(), stats=stats)
        assert engine.stats_collector is stats


class TestSettings:
    """Derived settings."""

    def test_redis_url_without_password(self):
        settings = Settings(redis_host="cache", redis_port=6380, redis_db=2, redis_password="")
        assert settings.redis_url == "redis://cache:6380/2"

    def test_redis_url_with_password(self):
        settings = Settings(redis_host="cache", redis_port=6379, redis_db=0, redis_password="s3cret")
        assert settings.redis_url == "redis://:s3cret@cache:6379/0"


class TestEngineIndexes:
    """The engine builds its eviction indexes through the factory."""

    def test_indexes_come_from_factory(self):
        with patch.object(cache_engine, "create_eviction_index", wraps=create_eviction_index) as factory:
            engine = create_cache_engine(Settings(), InMemoryStore())

        policies = [call.args[0] for call in factory.call_args_list]
        assert policies == [EvictionPolicy.LRU, EvictionPolicy.LFU]
        assert isinstance(engine.lru_index, LRUIndex)
        assert isinstance(engine.lfu_index, LFUIndex)
