"""Base interface for key-value store backends."""

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union

ScoredMember = Tuple[str, float]


class KeyValueStore(ABC):
    """
    Abstract async key-value store.

    Values are stored as strings. Every operation is independently atomic at the
    single-command level; callers get no transaction across commands.
    """

    # String operations

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get a string value by key.

        Args:
            key: The key to look up

        Returns:
            The stored value, or None if the key is absent or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """
        Set a string value, replacing whatever the key held before.

        Args:
            key: The key to store
            value: The value to store
            ttl: Optional expiry in seconds; None keeps the key until deleted
        """
        pass

    @abstractmethod
    async def incr(self, key: str, amount: int = 1) -> int:
        """Increment an integer value (missing keys count as 0) and return the result."""
        pass

    @abstractmethod
    async def decr(self, key: str, amount: int = 1) -> int:
        """Decrement an integer value (missing keys count as 0) and return the result."""
        pass

    # Key introspection

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """
        Delete keys of any type.

        Returns:
            The number of keys that existed and were removed
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """Set a key's expiry in seconds. Returns False when the key does not exist."""
        pass

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """
        Get the remaining time to live of a key.

        Returns:
            Seconds left, -1 for a key without expiry, -2 for a missing key
        """
        pass

    @abstractmethod
    async def keys(self, pattern: str) -> List[str]:
        """
        List keys matching a glob-style pattern.

        Args:
            pattern: Glob pattern over the flat key namespace (e.g. "room:42:*")
        """
        pass

    # Hash operations

    @abstractmethod
    async def hset(self, key: str, mapping: Mapping[str, Union[str, int, float]]) -> int:
        """Set hash fields. Returns the number of fields that were newly created."""
        pass

    @abstractmethod
    async def hget(self, key: str, field: str) -> Optional[str]:
        pass

    @abstractmethod
    async def hgetall(self, key: str) -> Dict[str, str]:
        """Get all fields of a hash; an empty dict when the key is absent."""
        pass

    # List operations

    @abstractmethod
    async def lpush(self, key: str, *values: str) -> int:
        """Prepend values to a list. Returns the new list length."""
        pass

    @abstractmethod
    async def rpush(self, key: str, *values: str) -> int:
        """Append values to a list. Returns the new list length."""
        pass

    @abstractmethod
    async def lpop(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def rpop(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def lrange(self, key: str, start: int, stop: int) -> List[str]:
        """Get list elements between two inclusive indexes (negative indexes count from the end)."""
        pass

    @abstractmethod
    async def ltrim(self, key: str, start: int, stop: int) -> None:
        """Keep only the elements between two inclusive indexes."""
        pass

    @abstractmethod
    async def llen(self, key: str) -> int:
        pass

    # Set operations

    @abstractmethod
    async def sadd(self, key: str, *members: str) -> int:
        """Add members to a set. Returns the number of members that were not already present."""
        pass

    @abstractmethod
    async def srem(self, key: str, *members: str) -> int:
        """Remove members from a set. Returns the number of members removed."""
        pass

    @abstractmethod
    async def smembers(self, key: str) -> Set[str]:
        pass

    @abstractmethod
    async def sismember(self, key: str, member: str) -> bool:
        pass

    @abstractmethod
    async def scard(self, key: str) -> int:
        pass

    # Score-ordered set operations

    @abstractmethod
    async def zadd(self, key: str, mapping: Mapping[str, float], xx: bool = False) -> int:
        """
        Add members with scores, or update the score of existing members.

        Args:
            key: The sorted set key
            mapping: Member to score mapping
            xx: Only update members that already exist, never add new ones

        Returns:
            The number of members newly added
        """
        pass

    @abstractmethod
    async def zincrby(self, key: str, amount: float, member: str, xx: bool = False) -> Optional[float]:
        """
        Increment the score of a member.

        Args:
            key: The sorted set key
            amount: Increment to apply
            member: Member whose score is incremented
            xx: Only increment an existing member; a missing member is left absent

        Returns:
            The new score, or None when xx is set and the member is absent
        """
        pass

    @abstractmethod
    async def zrange(
        self,
        key: str,
        start: int,
        stop: int,
        desc: bool = False,
        withscores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        """
        Get members by rank between two inclusive indexes.

        Members are ordered by score, equal scores by member. With desc the
        order is reversed. With withscores, (member, score) pairs are returned.
        """
        pass

    @abstractmethod
    async def zrem(self, key: str, *members: str) -> int:
        pass

    @abstractmethod
    async def zcard(self, key: str) -> int:
        pass

    @abstractmethod
    async def zscore(self, key: str, member: str) -> Optional[float]:
        pass

    @abstractmethod
    async def zrank(self, key: str, member: str, desc: bool = False) -> Optional[int]:
        """Get the zero-based rank of a member, or None when absent."""
        pass

    # Connection

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend connections."""
        pass
