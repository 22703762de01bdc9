"""In-process key-value store with Redis-compatible semantics."""

import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

from app.exceptions import StoreError
from app.services.key_value_store.base import KeyValueStore, ScoredMember
from app.services.key_value_store.glob import glob_match

STRING = "string"
HASH = "hash"
LIST = "list"
SET = "set"
ZSET = "zset"


def _normalize_range(length: int, start: int, stop: int) -> Tuple[int, int]:
    """Turn inclusive Redis-style indexes into a Python slice (start, end)."""
    if start < 0:
        start = max(length + start, 0)
    if stop < 0:
        stop = length + stop
    stop = min(stop, length - 1)
    if start > stop:
        return 0, 0
    return start, stop + 1


class InMemoryStore(KeyValueStore):
    """
    Thread-safe in-memory key-value store.

    Mirrors the observable behaviour of the Redis commands the application
    relies on: expiry is purged lazily on access, empty containers disappear,
    and sorted sets order equal scores by member.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the store.

        Args:
            clock: Time source used for key expiry, in seconds
        """
        self._clock = clock
        self._data: Dict[str, Tuple[str, Any]] = {}
        self._expires_at: Dict[str, float] = {}
        self._lock = threading.RLock()

    def _purge_if_expired(self, key: str) -> None:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and self._clock() >= expires_at:
            self._data.pop(key, None)
            del self._expires_at[key]

    def _lookup(self, key: str, expected_type: str) -> Optional[Any]:
        self._purge_if_expired(key)
        entry = self._data.get(key)
        if entry is None:
            return None
        entry_type, value = entry
        if entry_type != expected_type:
            raise StoreError(
                f"WRONGTYPE Operation against key '{key}' holding {entry_type}, expected {expected_type}"
            )
        return value

    def _lookup_or_create(self, key: str, expected_type: str, factory: Callable[[], Any]) -> Any:
        value = self._lookup(key, expected_type)
        if value is None:
            value = factory()
            self._data[key] = (expected_type, value)
        return value

    def _drop_if_empty(self, key: str, value: Any) -> None:
        if not value:
            self._remove(key)

    def _remove(self, key: str) -> bool:
        self._expires_at.pop(key, None)
        return self._data.pop(key, None) is not None

    def _sorted_members(self, zset: Dict[str, float]) -> List[ScoredMember]:
        return sorted(zset.items(), key=lambda item: (item[1], item[0]))

    # String operations

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._lookup(key, STRING)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with self._lock:
            self._remove(key)
            self._data[key] = (STRING, str(value))
            if ttl is not None:
                self._expires_at[key] = self._clock() + ttl

    async def incr(self, key: str, amount: int = 1) -> int:
        with self._lock:
            current = self._lookup(key, STRING)
            try:
                number = int(current) if current is not None else 0
            except ValueError:
                raise StoreError(f"ERR value at '{key}' is not an integer")
            number += amount
            self._data[key] = (STRING, str(number))
            return number

    async def decr(self, key: str, amount: int = 1) -> int:
        return await self.incr(key, -amount)

    # Key introspection

    async def delete(self, *keys: str) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                self._purge_if_expired(key)
                if self._remove(key):
                    removed += 1
            return removed

    async def exists(self, key: str) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            return key in self._data

    async def expire(self, key: str, ttl: int) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            if key not in self._data:
                return False
            self._expires_at[key] = self._clock() + ttl
            return True

    async def ttl(self, key: str) -> int:
        with self._lock:
            self._purge_if_expired(key)
            if key not in self._data:
                return -2
            expires_at = self._expires_at.get(key)
            if expires_at is None:
                return -1
            return int(expires_at - self._clock() + 0.5)

    async def keys(self, pattern: str) -> List[str]:
        with self._lock:
            for key in list(self._data):
                self._purge_if_expired(key)
            return [key for key in self._data if glob_match(pattern, key)]

    # Hash operations

    async def hset(self, key: str, mapping: Mapping[str, Union[str, int, float]]) -> int:
        with self._lock:
            if not mapping:
                return 0
            hash_value = self._lookup_or_create(key, HASH, dict)
            created = sum(1 for field in mapping if field not in hash_value)
            hash_value.update({field: str(value) for field, value in mapping.items()})
            return created

    async def hget(self, key: str, field: str) -> Optional[str]:
        with self._lock:
            hash_value = self._lookup(key, HASH)
            return hash_value.get(field) if hash_value else None

    async def hgetall(self, key: str) -> Dict[str, str]:
        with self._lock:
            hash_value = self._lookup(key, HASH)
            return dict(hash_value) if hash_value else {}

    # List operations

    async def lpush(self, key: str, *values: str) -> int:
        with self._lock:
            list_value = self._lookup_or_create(key, LIST, list)
            for value in values:
                list_value.insert(0, str(value))
            return len(list_value)

    async def rpush(self, key: str, *values: str) -> int:
        with self._lock:
            list_value = self._lookup_or_create(key, LIST, list)
            list_value.extend(str(value) for value in values)
            return len(list_value)

    async def lpop(self, key: str) -> Optional[str]:
        with self._lock:
            list_value = self._lookup(key, LIST)
            if not list_value:
                return None
            value = list_value.pop(0)
            self._drop_if_empty(key, list_value)
            return value

    async def rpop(self, key: str) -> Optional[str]:
        with self._lock:
            list_value = self._lookup(key, LIST)
            if not list_value:
                return None
            value = list_value.pop()
            self._drop_if_empty(key, list_value)
            return value

    async def lrange(self, key: str, start: int, stop: int) -> List[str]:
        with self._lock:
            list_value = self._lookup(key, LIST)
            if not list_value:
                return []
            begin, end = _normalize_range(len(list_value), start, stop)
            return list_value[begin:end]

    async def ltrim(self, key: str, start: int, stop: int) -> None:
        with self._lock:
            list_value = self._lookup(key, LIST)
            if not list_value:
                return
            begin, end = _normalize_range(len(list_value), start, stop)
            list_value[:] = list_value[begin:end]
            self._drop_if_empty(key, list_value)

    async def llen(self, key: str) -> int:
        with self._lock:
            list_value = self._lookup(key, LIST)
            return len(list_value) if list_value else 0

    # Set operations

    async def sadd(self, key: str, *members: str) -> int:
        with self._lock:
            if not members:
                return 0
            set_value = self._lookup_or_create(key, SET, set)
            added = {str(member) for member in members} - set_value
            set_value.update(added)
            return len(added)

    async def srem(self, key: str, *members: str) -> int:
        with self._lock:
            set_value = self._lookup(key, SET)
            if not set_value:
                return 0
            removed = set_value & {str(member) for member in members}
            set_value -= removed
            self._drop_if_empty(key, set_value)
            return len(removed)

    async def smembers(self, key: str) -> Set[str]:
        with self._lock:
            set_value = self._lookup(key, SET)
            return set(set_value) if set_value else set()

    async def sismember(self, key: str, member: str) -> bool:
        with self._lock:
            set_value = self._lookup(key, SET)
            return bool(set_value) and str(member) in set_value

    async def scard(self, key: str) -> int:
        with self._lock:
            set_value = self._lookup(key, SET)
            return len(set_value) if set_value else 0

    # Score-ordered set operations

    async def zadd(self, key: str, mapping: Mapping[str, float], xx: bool = False) -> int:
        with self._lock:
            if not mapping:
                return 0
            if xx:
                zset = self._lookup(key, ZSET)
                if not zset:
                    return 0
                for member, score in mapping.items():
                    if member in zset:
                        zset[member] = float(score)
                return 0
            zset = self._lookup_or_create(key, ZSET, dict)
            added = sum(1 for member in mapping if member not in zset)
            zset.update({member: float(score) for member, score in mapping.items()})
            return added

    async def zincrby(self, key: str, amount: float, member: str, xx: bool = False) -> Optional[float]:
        with self._lock:
            if xx:
                zset = self._lookup(key, ZSET)
                if not zset or member not in zset:
                    return None
            else:
                zset = self._lookup_or_create(key, ZSET, dict)
            zset[member] = zset.get(member, 0.0) + float(amount)
            return zset[member]

    async def zrange(
        self,
        key: str,
        start: int,
        stop: int,
        desc: bool = False,
        withscores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        with self._lock:
            zset = self._lookup(key, ZSET)
            if not zset:
                return []
            ordered = self._sorted_members(zset)
            if desc:
                ordered.reverse()
            begin, end = _normalize_range(len(ordered), start, stop)
            selected = ordered[begin:end]
            if withscores:
                return selected
            return [member for member, _ in selected]

    async def zrem(self, key: str, *members: str) -> int:
        with self._lock:
            zset = self._lookup(key, ZSET)
            if not zset:
                return 0
            removed = 0
            for member in members:
                if zset.pop(member, None) is not None:
                    removed += 1
            self._drop_if_empty(key, zset)
            return removed

    async def zcard(self, key: str) -> int:
        with self._lock:
            zset = self._lookup(key, ZSET)
            return len(zset) if zset else 0

    async def zscore(self, key: str, member: str) -> Optional[float]:
        with self._lock:
            zset = self._lookup(key, ZSET)
            return zset.get(member) if zset else None

    async def zrank(self, key: str, member: str, desc: bool = False) -> Optional[int]:
        with self._lock:
            zset = self._lookup(key, ZSET)
            if not zset or member not in zset:
                return None
            ordered = [m for m, _ in self._sorted_members(zset)]
            if desc:
                ordered.reverse()
            return ordered.index(member)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        with self._lock:
            self._data.clear()
            self._expires_at.clear()
