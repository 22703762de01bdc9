"""Cache strategies and LRU/LFU eviction on top of the key-value store."""

from app.services.cache.cache_config import CacheConfig
from app.services.cache.cache_engine import CacheEngine, is_cacheable
from app.services.cache.cache_factory import create_cache_engine
from app.services.cache.deferred_writer import DeferredWriter
from app.services.cache.eviction_policy import (
    create_eviction_index,
    EvictionIndex,
    EvictionPolicy,
    LFUIndex,
    LRUIndex
)
from app.services.cache.exceptions import (
    InvalidEvictionPolicyError,
    InvalidMaxKeyCountError
)
from app.services.cache.stats import CacheStats, InMemoryStatsCollector, StatsCollector

__all__ = [
    "create_cache_engine",
    "create_eviction_index",
    "is_cacheable",
    "CacheConfig",
    "CacheEngine",
    "CacheStats",
    "DeferredWriter",
    "EvictionIndex",
    "EvictionPolicy",
    "InMemoryStatsCollector",
    "LFUIndex",
    "LRUIndex",
    "StatsCollector",
    "InvalidEvictionPolicyError",
    "InvalidMaxKeyCountError",
]
