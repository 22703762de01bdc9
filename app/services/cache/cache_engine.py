"""Cache strategies and eviction policies on top of the key-value store."""

import time
from typing import Any, Awaitable, Callable, Optional, Union
import structlog

from app.exceptions import CacheSerializationError, StoreError
from app.services.cache.cache_config import CacheConfig
from app.services.cache.deferred_writer import DeferredWriter, PersistFn, resolve
from app.services.cache.eviction_policy import (
    create_eviction_index,
    EvictionIndex,
    EvictionPolicy,
    validate_max_size
)
from app.services.cache.serializer import deserialize, serialize
from app.services.cache.stats import CacheStats, InMemoryStatsCollector, StatsCollector
from app.services.key_value_store.base import KeyValueStore

logger = structlog.get_logger()

Loader = Callable[[], Union[Any, Awaitable[Any]]]

CACHE_ASIDE = "cache_aside"
READ_THROUGH = "read_through"
LRU_GET = "lru_get"
LFU_GET = "lfu_get"

_MISSING = object()


def is_cacheable(value: Any) -> bool:
    """None, empty strings and empty collections are returned but never cached."""
    if value is None:
        return False
    if isinstance(value, (str, bytes, list, tuple, dict, set)) and len(value) == 0:
        return False
    return True


class CacheEngine:
    """
    Policy-parameterized cache over a KeyValueStore.

    Read strategies (cache-aside, read-through) treat every cache-layer
    failure as a miss and fall back to the loader. Write strategies let
    failures of the persist function propagate. No operation takes a lock:
    concurrent misses on one key may both run the loader, and concurrent
    LRU/LFU writers may over- or under-evict.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[CacheConfig] = None,
        stats: Optional[StatsCollector] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the engine.

        Args:
            store: Backing key-value store
            config: Cache configuration; defaults are used when omitted
            stats: Hit/miss collector; a fresh in-memory collector when omitted
            clock: Time source for LRU access scores
        """
        self._store = store
        self._config = config or CacheConfig()
        self._stats = stats or InMemoryStatsCollector(export_metrics=self._config.export_metrics)
        self._lru = create_eviction_index(EvictionPolicy.LRU, store, self._config.lru_index_key, clock=clock)
        self._lfu = create_eviction_index(EvictionPolicy.LFU, store, self._config.lfu_index_key)
        self._writer = DeferredWriter(
            store,
            dirty_set_key=self._config.dirty_set_key,
            delay_seconds=self._config.write_back_delay_seconds
        )

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def stats_collector(self) -> StatsCollector:
        return self._stats

    @property
    def lru_index(self) -> EvictionIndex:
        return self._lru

    @property
    def lfu_index(self) -> EvictionIndex:
        return self._lfu

    @property
    def deferred_writer(self) -> DeferredWriter:
        return self._writer

    def _ttl(self, ttl: Optional[int]) -> int:
        return self._config.default_ttl_seconds if ttl is None else ttl

    # ======= READ STRATEGIES =======

    async def cache_aside(self, key: str, loader: Loader, ttl: Optional[int] = None) -> Any:
        """
        Return the cached value for key, or load, cache and return it.

        The caller owns the loading logic; the cache is consulted first and
        filled on a miss. Cache failures never prevent returning the loader's
        value; only a loader failure propagates.

        Args:
            key: Cache key
            loader: Sync or async callable producing the authoritative value
            ttl: Expiry in seconds for a filled entry

        Returns:
            The cached or freshly loaded value
        """
        return await self._load_through(key, loader, ttl, CACHE_ASIDE)

    async def read_through(self, key: str, loader: Loader, ttl: Optional[int] = None) -> Any:
        """
        Read via the cache tier, which loads from the source on a miss.

        Same observable contract as cache_aside; counted separately in stats.
        """
        return await self._load_through(key, loader, ttl, READ_THROUGH)

    async def _load_through(self, key: str, loader: Loader, ttl: Optional[int], strategy: str) -> Any:
        cached = await self._read_cached(key, strategy)
        if cached is not _MISSING:
            self._stats.record_hit(strategy)
            logger.debug("Cache hit", key=key, strategy=strategy)
            return cached

        self._stats.record_miss(strategy)
        logger.debug("Cache miss", key=key, strategy=strategy)

        value = await resolve(loader())

        if is_cacheable(value):
            try:
                await self._store.set(key, serialize(key, value), ttl=self._ttl(ttl))
            except (StoreError, CacheSerializationError) as e:
                logger.warning("Cache fill failed", key=key, strategy=strategy, error=str(e))

        return value

    async def _read_cached(self, key: str, strategy: str) -> Any:
        try:
            raw = await self._store.get(key)
        except StoreError as e:
            logger.warning("Cache read failed, using loader", key=key, strategy=strategy, error=str(e))
            return _MISSING

        if raw is None:
            return _MISSING

        try:
            return deserialize(key, raw)
        except CacheSerializationError as e:
            logger.warning("Undecodable cache entry treated as miss", key=key, strategy=strategy, error=str(e))
            return _MISSING

    # ======= WRITE STRATEGIES =======

    async def write_through(self, key: str, value: Any, persist_fn: PersistFn, ttl: Optional[int] = None) -> Any:
        """
        Persist value first, then cache what was persisted.

        A persist function returning None is taken to have stored value
        unchanged. If persisting fails nothing is cached and the error
        propagates.

        Returns:
            The persisted value
        """
        result = await resolve(persist_fn(value))
        if result is None:
            result = value

        await self._store.set(key, serialize(key, result), ttl=self._ttl(ttl))
        logger.debug("Write-through cached", key=key)
        return result

    async def write_around(self, key: str, value: Any, persist_fn: PersistFn) -> Any:
        """
        Persist value and invalidate the cached copy instead of refreshing it.

        The next read of key is a guaranteed miss.

        Returns:
            The persisted value
        """
        result = await resolve(persist_fn(value))
        if result is None:
            result = value

        await self._store.delete(key)
        logger.debug("Write-around invalidated", key=key)
        return result

    async def write_back(self, key: str, value: Any, persist_fn: PersistFn, ttl: Optional[int] = None) -> Any:
        """
        Cache value now, persist it later.

        The key is marked dirty and persist_fn runs after the configured
        delay; the marker is cleared only when that persist succeeds. An
        update is lost if the process exits before the deferred persist runs.

        Returns:
            The cached value
        """
        payload = serialize(key, value)

        await self._store.set(key, payload, ttl=self._ttl(ttl))
        await self._writer.mark_dirty(key)
        self._writer.schedule(key, value, persist_fn)

        logger.debug("Write-back cached, persist deferred", key=key)
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Cache a value without any index bookkeeping. Returns False on store failure."""
        payload = serialize(key, value)
        try:
            await self._store.set(key, payload, ttl=self._ttl(ttl))
            return True
        except StoreError as e:
            logger.error("Cache set failed", key=key, error=str(e))
            return False

    # ======= EVICTION POLICIES =======

    async def lru_set(self, key: str, value: Any, ttl: Optional[int] = None, max_size: Optional[int] = None) -> bool:
        """
        Cache value under the LRU policy, evicting the least recently used key when full.

        Returns:
            True if the value was cached, False on store failure
        """
        return await self._indexed_set(self._lru, key, value, ttl, max_size)

    async def lru_get(self, key: str, max_size: Optional[int] = None) -> Any:
        """
        Read key and mark it most recently used.

        max_size is accepted for symmetry with lru_set; reads never evict.

        Returns:
            The cached value, or None when absent
        """
        return await self._indexed_get(self._lru, key, LRU_GET)

    async def lfu_set(self, key: str, value: Any, ttl: Optional[int] = None, max_size: Optional[int] = None) -> bool:
        """
        Cache value under the LFU policy, evicting the least frequently used key when full.

        The key's access count starts at 1.

        Returns:
            True if the value was cached, False on store failure
        """
        return await self._indexed_set(self._lfu, key, value, ttl, max_size)

    async def lfu_get(self, key: str) -> Any:
        """
        Read key and bump its access count.

        Returns:
            The cached value, or None when absent
        """
        return await self._indexed_get(self._lfu, key, LFU_GET)

    async def _indexed_set(
        self,
        index: EvictionIndex,
        key: str,
        value: Any,
        ttl: Optional[int],
        max_size: Optional[int]
    ) -> bool:
        if max_size is None:
            max_size = self._config.default_max_size
        validate_max_size(max_size)
        payload = serialize(key, value)

        try:
            await index.make_room(max_size)
            await self._store.set(key, payload, ttl=self._ttl(ttl))
            await index.admit(key)
        except StoreError as e:
            logger.error("Indexed cache set failed", policy=index.policy.value, key=key, error=str(e))
            return False

        return True

    async def _indexed_get(self, index: EvictionIndex, key: str, strategy: str) -> Any:
        try:
            raw = await self._store.get(key)
            if raw is None:
                self._stats.record_miss(strategy)
                # Drop the record of an entry that expired on its own
                await index.remove(key)
                return None

            value = deserialize(key, raw)
            await index.touch(key)
        except (StoreError, CacheSerializationError) as e:
            logger.warning("Indexed cache get failed", policy=index.policy.value, key=key, error=str(e))
            self._stats.record_miss(strategy)
            return None

        self._stats.record_hit(strategy)
        return value

    # ======= INVALIDATION & STATISTICS =======

    async def invalidate(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Matching keys are also dropped from both eviction indexes.

        Args:
            pattern: Glob-style pattern, e.g. "cache:room:42:*"

        Returns:
            Number of keys removed; 0 when nothing matched or the store failed
        """
        try:
            keys = await self._store.keys(pattern)
            if not keys:
                return 0

            removed = await self._store.delete(*keys)
            await self._lru.remove(*keys)
            await self._lfu.remove(*keys)
        except StoreError as e:
            logger.error("Cache invalidation failed", pattern=pattern, error=str(e))
            return 0

        logger.info("Invalidated cache keys", pattern=pattern, count=removed)
        return removed

    async def stats(self) -> CacheStats:
        """Get hit/miss counters and the current LRU/LFU index populations."""
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            lru_size=await self._lru.size(),
            lfu_size=await self._lfu.size()
        )
