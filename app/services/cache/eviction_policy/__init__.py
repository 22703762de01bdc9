"""Sorted-set backed eviction indexes for the LRU and LFU policies."""

import time
from typing import Callable, Union

from app.services.cache.eviction_policy.eviction_policy import (
    EvictionIndex,
    EvictionPolicy,
    validate_max_size
)
from app.services.cache.eviction_policy.lfu_index import LFUIndex
from app.services.cache.eviction_policy.lru_index import LRUIndex
from app.services.cache.exceptions import InvalidEvictionPolicyError
from app.services.key_value_store.base import KeyValueStore


def create_eviction_index(
    eviction_policy: Union[EvictionPolicy, str],
    store: KeyValueStore,
    index_key: str,
    clock: Callable[[], float] = time.time
) -> EvictionIndex:
    """
    Create an eviction index for the given policy.
    
    Args:
        eviction_policy: The eviction policy to use (LRU or LFU)
        store: Store holding the cache entries and the index
        index_key: Key of the sorted set used as the index
        clock: Time source, only used by LRU
        
    Returns:
        An index implementing the EvictionIndex interface
        
    Raises:
        InvalidEvictionPolicyError: If the eviction policy is not supported
    """
    if isinstance(eviction_policy, str):
        try:
            eviction_policy = EvictionPolicy(eviction_policy.upper())
        except ValueError:
            raise InvalidEvictionPolicyError(eviction_policy)
    
    if eviction_policy == EvictionPolicy.LRU:
        return LRUIndex(store, index_key, clock=clock)
    elif eviction_policy == EvictionPolicy.LFU:
        return LFUIndex(store, index_key)
    else:
        raise InvalidEvictionPolicyError(str(eviction_policy))


__all__ = [
    "create_eviction_index",
    "validate_max_size",
    "EvictionIndex",
    "EvictionPolicy",
    "LRUIndex",
    "LFUIndex",
]
