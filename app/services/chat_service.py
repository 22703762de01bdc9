"""Chat rooms, messages, presence and leaderboard backed by the key-value store."""

import json
import time
from typing import Any, Dict, List, Optional
import structlog

from app.services.cache.cache_engine import CacheEngine
from app.services.key_value_store.base import KeyValueStore
from app.services.key_value_store.glob import escape_glob

logger = structlog.get_logger()

ALL_ROOMS_KEY = "chat:rooms:all"
ONLINE_USERS_KEY = "chat:users:online"
RANKING_KEY = "chat:users:ranking"
LEADERBOARD_KEY = "chat:leaderboard"

USER_HASH_TTL_SECONDS = 3600
LAST_SEEN_TTL_SECONDS = 3600


def _now_ms() -> int:
    return int(time.time() * 1000)


def room_key(room_id: str) -> str:
    return f"chat:room:{room_id}"


def room_users_key(room_id: str) -> str:
    return f"chat:room:{room_id}:users"


def room_messages_key(room_id: str) -> str:
    return f"chat:room:{room_id}:messages"


def user_rooms_key(user_id: str) -> str:
    return f"chat:user:{user_id}:rooms"


def user_stats_key(user_id: str) -> str:
    return f"chat:user:{user_id}:stats"


def room_cache_pattern(room_id: str) -> str:
    """Glob covering every cached lookup of a room, with the room id escaped."""
    return f"cache:room:{escape_glob(room_id)}:*"


class ChatService:
    """
    Chat bookkeeping on top of the store's data structures.

    Writes go straight to the store. Read-heavy lookups (room info, recent
    messages) go through cache-aside and every room mutation invalidates the
    room's cached lookups.
    """

    def __init__(
        self,
        store: KeyValueStore,
        cache: CacheEngine,
        message_limit: int = 100,
        cache_ttl_seconds: int = 300
    ):
        """
        Initialize the chat service.

        Args:
            store: Key-value store holding chat data
            cache: Cache engine used for room lookups
            message_limit: Maximum number of messages kept per room
            cache_ttl_seconds: TTL of cached room lookups
        """
        self._store = store
        self._cache = cache
        self._message_limit = message_limit
        self._cache_ttl_seconds = cache_ttl_seconds

    # ======= ROOMS =======

    async def create_room(self, room_id: str, name: str, created_by: str) -> Dict[str, Any]:
        room = {
            "id": room_id,
            "name": name,
            "created_by": created_by,
            "created_at": _now_ms()
        }
        await self._store.hset(room_key(room_id), room)
        await self._store.sadd(ALL_ROOMS_KEY, room_id)
        await self._cache.invalidate(room_cache_pattern(room_id))

        logger.info("Room created", room_id=room_id, created_by=created_by)
        return room

    async def list_rooms(self) -> List[str]:
        return sorted(await self._store.smembers(ALL_ROOMS_KEY))

    async def get_room_info(self, room_id: str) -> Optional[Dict[str, Any]]:
        """
        Get room metadata with its current users and message count.

        Returns:
            Room info dict, or None if the room does not exist
        """
        async def load_room() -> Optional[Dict[str, Any]]:
            room = await self._store.hgetall(room_key(room_id))
            if not room.get("id"):
                return None
            users = sorted(await self._store.smembers(room_users_key(room_id)))
            info: Dict[str, Any] = dict(room)
            info["created_at"] = int(room.get("created_at", 0))
            info["users"] = users
            info["user_count"] = len(users)
            info["message_count"] = await self._store.llen(room_messages_key(room_id))
            return info

        return await self._cache.cache_aside(
            f"cache:room:{room_id}:info",
            load_room,
            self._cache_ttl_seconds
        )

    async def join_room(self, user_id: str, room_id: str, username: str) -> bool:
        user_key = f"chat:user:{user_id}"
        await self._store.hset(user_key, {
            "id": user_id,
            "username": username,
            "last_seen": _now_ms(),
            "status": "online"
        })
        await self._store.expire(user_key, USER_HASH_TTL_SECONDS)

        await self._store.sadd(room_users_key(room_id), user_id)
        added = await self._store.sadd(user_rooms_key(user_id), room_id)
        await self._store.zadd(f"chat:room:{room_id}:stats", {user_id: _now_ms()})
        await self._store.incr(f"chat:room:{room_id}:joins")
        if added:
            await self._store.incr(f"{user_stats_key(user_id)}:rooms_joined")

        await self._cache.invalidate(room_cache_pattern(room_id))
        logger.info("User joined room", user_id=user_id, room_id=room_id)
        return True

    async def leave_room(self, user_id: str, room_id: str) -> bool:
        removed = await self._store.srem(room_users_key(room_id), user_id)
        await self._store.srem(user_rooms_key(user_id), room_id)

        await self._cache.invalidate(room_cache_pattern(room_id))
        logger.info("User left room", user_id=user_id, room_id=room_id)
        return removed > 0

    # ======= MESSAGES =======

    async def send_message(self, room_id: str, user_id: str, username: str, message: str) -> Dict[str, Any]:
        """
        Store a message, keeping only the newest message_limit per room.

        Returns:
            The stored message
        """
        timestamp = _now_ms()
        message_obj = {
            "id": f"msg_{timestamp}_{user_id}",
            "user_id": user_id,
            "username": username,
            "message": message,
            "timestamp": timestamp,
            "room_id": room_id
        }

        messages_key = room_messages_key(room_id)
        await self._store.lpush(messages_key, json.dumps(message_obj))
        await self._store.ltrim(messages_key, 0, self._message_limit - 1)

        stats_key = user_stats_key(user_id)
        await self._store.incr(f"{stats_key}:messages_sent")
        await self._store.set(f"{stats_key}:last_active", str(timestamp))
        await self._store.zincrby(RANKING_KEY, 1, user_id)

        await self._cache.invalidate(room_cache_pattern(room_id))
        return message_obj

    async def get_messages(self, room_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Get up to limit most recent messages of a room, oldest first."""
        async def load_messages() -> List[Dict[str, Any]]:
            raw_messages = await self._store.lrange(room_messages_key(room_id), 0, limit - 1)
            messages = [json.loads(raw) for raw in raw_messages]
            messages.reverse()
            return messages

        return await self._cache.cache_aside(
            f"cache:room:{room_id}:messages:{limit}",
            load_messages,
            self._cache_ttl_seconds
        )

    # ======= USERS & PRESENCE =======

    async def get_user_stats(self, user_id: str) -> Dict[str, int]:
        stats_key = user_stats_key(user_id)
        return {
            "messages_sent": int(await self._store.get(f"{stats_key}:messages_sent") or 0),
            "rooms_joined": int(await self._store.get(f"{stats_key}:rooms_joined") or 0),
            "last_active": int(await self._store.get(f"{stats_key}:last_active") or 0)
        }

    async def get_top_users(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get the most active users by messages sent, highest first."""
        ranking = await self._store.zrange(RANKING_KEY, 0, limit - 1, desc=True, withscores=True)
        return [{"user_id": user_id, "score": score} for user_id, score in ranking]

    async def set_user_online(self, user_id: str) -> bool:
        await self._store.sadd(ONLINE_USERS_KEY, user_id)
        await self._store.set(f"chat:user:{user_id}:last_seen", str(_now_ms()), ttl=LAST_SEEN_TTL_SECONDS)
        return True

    async def set_user_offline(self, user_id: str) -> bool:
        removed = await self._store.srem(ONLINE_USERS_KEY, user_id)
        logger.info("User went offline", user_id=user_id)
        return removed > 0

    async def get_online_users(self) -> List[str]:
        return sorted(await self._store.smembers(ONLINE_USERS_KEY))

    async def is_user_online(self, user_id: str) -> bool:
        return await self._store.sismember(ONLINE_USERS_KEY, user_id)

    # ======= LEADERBOARD =======

    async def update_user_score(self, user_id: str, score: float) -> None:
        await self._store.zadd(LEADERBOARD_KEY, {user_id: score})

    async def increment_user_score(self, user_id: str, amount: float = 1) -> float:
        return await self._store.zincrby(LEADERBOARD_KEY, amount, user_id)

    async def get_leaderboard(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get the top scores, highest first."""
        entries = await self._store.zrange(LEADERBOARD_KEY, 0, limit - 1, desc=True, withscores=True)
        return [
            {"rank": position + 1, "user_id": user_id, "score": score}
            for position, (user_id, score) in enumerate(entries)
        ]

    async def get_user_rank(self, user_id: str) -> Optional[int]:
        """Get a user's 1-based leaderboard rank, or None if the user has no score."""
        rank = await self._store.zrank(LEADERBOARD_KEY, user_id, desc=True)
        return None if rank is None else rank + 1

    async def remove_from_leaderboard(self, user_id: str) -> bool:
        return await self._store.zrem(LEADERBOARD_KEY, user_id) > 0
