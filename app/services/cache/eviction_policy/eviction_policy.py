"""Eviction policy definitions and the shared sorted-set index."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
import structlog

from app.services.cache.exceptions import InvalidMaxKeyCountError
from app.services.key_value_store.base import KeyValueStore

logger = structlog.get_logger()


class EvictionPolicy(str, Enum):
    """Enumeration of supported eviction policies."""
    
    LRU = "LRU"  # Least Recently Used
    LFU = "LFU"  # Least Frequently Used


def validate_max_size(max_size: int) -> None:
    """Reject non-positive or non-integer capacities."""
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
        raise InvalidMaxKeyCountError(max_size)


class EvictionIndex(ABC):
    """
    Score-ordered bookkeeping of cached keys for one eviction policy.
    
    Each cached key has one member in the sorted set at index_key; the member
    with the lowest score is the eviction victim. The index is advisory: keys
    that expired on their own may still have a record until they are evicted
    or pruned.
    """
    
    policy: EvictionPolicy
    
    def __init__(self, store: KeyValueStore, index_key: str):
        """
        Initialize the index.
        
        Args:
            store: Store holding both the cache entries and the sorted set
            index_key: Key of the sorted set used as the index
        """
        self._store = store
        self._index_key = index_key
    
    @property
    def index_key(self) -> str:
        """Get the key of the backing sorted set."""
        return self._index_key
    
    async def size(self) -> int:
        """Get the number of keys recorded in the index."""
        return await self._store.zcard(self._index_key)
    
    async def contains(self, key: str) -> bool:
        """Check whether a key has a record in the index."""
        return await self._store.zscore(self._index_key, key) is not None
    
    async def score(self, key: str) -> Optional[float]:
        return await self._store.zscore(self._index_key, key)
    
    async def make_room(self, max_size: int) -> Optional[str]:
        """
        Evict the lowest-scored key if the index already holds max_size keys.
        
        Runs before every indexed write, whether or not the key being written
        is already indexed. Population is read and the victim removed in
        separate store round-trips, so concurrent writers may over- or
        under-evict.
        
        Args:
            max_size: Maximum population of the index
            
        Returns:
            The evicted key, or None if nothing was evicted
            
        Raises:
            InvalidMaxKeyCountError: If max_size is not a positive integer
        """
        validate_max_size(max_size)
        
        if await self.size() >= max_size:
            return await self.evict_one()
        return None
    
    async def evict_one(self) -> Optional[str]:
        """
        Delete the lowest-scored key's cache entry and its index record.
        
        Among equal scores the store's member ordering picks exactly one
        victim. Evicting from an empty index is a no-op.
        
        Returns:
            The evicted key, or None if the index was empty
        """
        victims = await self._store.zrange(self._index_key, 0, 0)
        if not victims:
            return None
        
        victim = victims[0]
        await self._store.delete(victim)
        await self._store.zrem(self._index_key, victim)
        
        logger.info(
            "Evicted cache entry",
            policy=self.policy.value,
            key=victim,
            index_key=self._index_key
        )
        return victim
    
    async def remove(self, *keys: str) -> int:
        """Remove index records without touching the cache entries."""
        return await self._store.zrem(self._index_key, *keys)
    
    @abstractmethod
    async def admit(self, key: str) -> None:
        """
        Record a freshly written key, replacing any previous score.
        
        Args:
            key: The key that was just written to the cache
        """
        pass
    
    @abstractmethod
    async def touch(self, key: str) -> None:
        """
        Record an access to a key that is already indexed.
        
        Keys without a record are left unindexed.
        
        Args:
            key: The key that was just read
        """
        pass
