"""Redis-backed key-value store."""

import functools
from typing import Dict, List, Mapping, Optional, Set, Union

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError
import structlog

from app.exceptions import StoreError, StoreUnavailableError
from app.services.key_value_store.base import KeyValueStore, ScoredMember

logger = structlog.get_logger()


def _translate_errors(func):
    """Re-raise redis client errors as store errors."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.warning("Redis unreachable", operation=func.__name__, error=str(e))
            raise StoreUnavailableError(f"Redis unreachable during {func.__name__}: {e}") from e
        except RedisError as e:
            raise StoreError(f"Redis error during {func.__name__}: {e}") from e

    return wrapper


class RedisStore(KeyValueStore):
    """
    Key-value store on top of a redis.asyncio client.

    The client is created lazily by redis-py, so constructing the store never
    touches the network; the first command opens the connection pool.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: Optional[float] = None) -> "RedisStore":
        """
        Build a store from a redis:// URL.

        Args:
            url: Connection URL, e.g. redis://localhost:6379/0
            socket_timeout: Optional socket timeout in seconds
        """
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout
        )
        return cls(client)

    @_translate_errors
    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    @_translate_errors
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self._client.set(key, value, ex=ttl)

    @_translate_errors
    async def incr(self, key: str, amount: int = 1) -> int:
        return await self._client.incrby(key, amount)

    @_translate_errors
    async def decr(self, key: str, amount: int = 1) -> int:
        return await self._client.decrby(key, amount)

    @_translate_errors
    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._client.delete(*keys)

    @_translate_errors
    async def exists(self, key: str) -> bool:
        return await self._client.exists(key) > 0

    @_translate_errors
    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self._client.expire(key, ttl))

    @_translate_errors
    async def ttl(self, key: str) -> int:
        return await self._client.ttl(key)

    @_translate_errors
    async def keys(self, pattern: str) -> List[str]:
        # SCAN instead of KEYS so large keyspaces don't block the server
        return [key async for key in self._client.scan_iter(match=pattern)]

    @_translate_errors
    async def hset(self, key: str, mapping: Mapping[str, Union[str, int, float]]) -> int:
        if not mapping:
            return 0
        return await self._client.hset(key, mapping=dict(mapping))

    @_translate_errors
    async def hget(self, key: str, field: str) -> Optional[str]:
        return await self._client.hget(key, field)

    @_translate_errors
    async def hgetall(self, key: str) -> Dict[str, str]:
        return await self._client.hgetall(key)

    @_translate_errors
    async def lpush(self, key: str, *values: str) -> int:
        return await self._client.lpush(key, *values)

    @_translate_errors
    async def rpush(self, key: str, *values: str) -> int:
        return await self._client.rpush(key, *values)

    @_translate_errors
    async def lpop(self, key: str) -> Optional[str]:
        return await self._client.lpop(key)

    @_translate_errors
    async def rpop(self, key: str) -> Optional[str]:
        return await self._client.rpop(key)

    @_translate_errors
    async def lrange(self, key: str, start: int, stop: int) -> List[str]:
        return await self._client.lrange(key, start, stop)

    @_translate_errors
    async def ltrim(self, key: str, start: int, stop: int) -> None:
        await self._client.ltrim(key, start, stop)

    @_translate_errors
    async def llen(self, key: str) -> int:
        return await self._client.llen(key)

    @_translate_errors
    async def sadd(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return await self._client.sadd(key, *members)

    @_translate_errors
    async def srem(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return await self._client.srem(key, *members)

    @_translate_errors
    async def smembers(self, key: str) -> Set[str]:
        return set(await self._client.smembers(key))

    @_translate_errors
    async def sismember(self, key: str, member: str) -> bool:
        return bool(await self._client.sismember(key, member))

    @_translate_errors
    async def scard(self, key: str) -> int:
        return await self._client.scard(key)

    @_translate_errors
    async def zadd(self, key: str, mapping: Mapping[str, float], xx: bool = False) -> int:
        if not mapping:
            return 0
        return await self._client.zadd(key, dict(mapping), xx=xx)

    @_translate_errors
    async def zincrby(self, key: str, amount: float, member: str, xx: bool = False) -> Optional[float]:
        if xx:
            # ZADD XX INCR behaves like ZINCRBY restricted to existing members
            return await self._client.zadd(key, {member: amount}, xx=True, incr=True)
        return await self._client.zincrby(key, amount, member)

    @_translate_errors
    async def zrange(
        self,
        key: str,
        start: int,
        stop: int,
        desc: bool = False,
        withscores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        result = await self._client.zrange(key, start, stop, desc=desc, withscores=withscores)
        if withscores:
            return [(member, float(score)) for member, score in result]
        return result

    @_translate_errors
    async def zrem(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return await self._client.zrem(key, *members)

    @_translate_errors
    async def zcard(self, key: str) -> int:
        return await self._client.zcard(key)

    @_translate_errors
    async def zscore(self, key: str, member: str) -> Optional[float]:
        return await self._client.zscore(key, member)

    @_translate_errors
    async def zrank(self, key: str, member: str, desc: bool = False) -> Optional[int]:
        if desc:
            return await self._client.zrevrank(key, member)
        return await self._client.zrank(key, member)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()
