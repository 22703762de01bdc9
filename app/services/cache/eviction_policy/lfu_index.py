"""LFU (Least Frequently Used) eviction index."""

from app.services.cache.eviction_policy.eviction_policy import EvictionIndex, EvictionPolicy


class LFUIndex(EvictionIndex):
    """
    Scores each key with its access count.
    
    A write (re)starts the count at 1 and each read adds 1, so the head of
    the sorted set is the least frequently used key.
    """
    
    policy = EvictionPolicy.LFU
    
    async def admit(self, key: str) -> None:
        await self._store.zadd(self._index_key, {key: 1})
    
    async def touch(self, key: str) -> None:
        await self._store.zincrby(self._index_key, 1, key, xx=True)
