"""LRU (Least Recently Used) eviction index."""

import time
from typing import Callable

from app.services.cache.eviction_policy.eviction_policy import EvictionIndex, EvictionPolicy
from app.services.key_value_store.base import KeyValueStore


class LRUIndex(EvictionIndex):
    """
    Scores each key with its last access time.
    
    The lowest score is the least recently used key, so the head of the
    sorted set is always the next eviction victim.
    """
    
    policy = EvictionPolicy.LRU
    
    def __init__(
        self,
        store: KeyValueStore,
        index_key: str,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize LRU index.
        
        Args:
            store: Store holding the cache entries and the index
            index_key: Key of the sorted set used as the index
            clock: Time source for access scores; must not go backwards
        """
        super().__init__(store, index_key)
        self._clock = clock
    
    async def admit(self, key: str) -> None:
        await self._store.zadd(self._index_key, {key: self._clock()})
    
    async def touch(self, key: str) -> None:
        # XX: an unindexed key stays unindexed
        await self._store.zadd(self._index_key, {key: self._clock()}, xx=True)
