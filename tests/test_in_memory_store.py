"""Tests for the in-memory key-value store."""

import pytest

from app.exceptions import StoreError


class TestStringsAndKeys:
    """String values, expiry and key introspection."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self, store):
        await store.set("a", "1")
        assert await store.get("a") == "1"
        assert await store.exists("a") is True

        assert await store.delete("a", "missing") == 1
        assert await store.get("a") is None
        assert await store.exists("a") is False

    @pytest.mark.asyncio
    async def test_expiry(self, expiring_store, manual_clock):
        await expiring_store.set("session", "data", ttl=10)
        assert await expiring_store.ttl("session") == 10

        manual_clock.advance(9)
        assert await expiring_store.get("session") == "data"

        manual_clock.advance(1)
        assert await expiring_store.get("session") is None
        assert await expiring_store.ttl("session") == -2

    @pytest.mark.asyncio
    async def test_ttl_without_expiry(self, store):
        await store.set("k", "v")
        assert await store.ttl("k") == -1
        assert await store.expire("k", 5) is True
        assert await store.ttl("k") == 5
        assert await store.expire("missing", 5) is False

    @pytest.mark.asyncio
    async def test_set_clears_previous_expiry(self, store):
        await store.set("k", "v", ttl=5)
        await store.set("k", "w")
        assert await store.ttl("k") == -1

    @pytest.mark.asyncio
    async def test_incr_decr(self, store):
        assert await store.incr("counter") == 1
        assert await store.incr("counter", 5) == 6
        assert await store.decr("counter", 2) == 4
        assert await store.get("counter") == "4"

    @pytest.mark.asyncio
    async def test_incr_non_integer_raises(self, store):
        await store.set("k", "abc")
        with pytest.raises(StoreError):
            await store.incr("k")

    @pytest.mark.asyncio
    async def test_keys_glob(self, store):
        await store.set("room:42:info", "x")
        await store.set("room:42:messages:50", "x")
        await store.set("room:7:info", "x")
        await store.sadd("room:42:users", "u1")

        assert sorted(await store.keys("room:42:*")) == [
            "room:42:info",
            "room:42:messages:50",
            "room:42:users",
        ]
        assert await store.keys("nothing:*") == []

    @pytest.mark.asyncio
    async def test_wrong_type_raises(self, store):
        await store.set("k", "v")
        with pytest.raises(StoreError):
            await store.lpush("k", "x")


class TestContainers:
    """Hash, list and set operations."""

    @pytest.mark.asyncio
    async def test_hash(self, store):
        assert await store.hset("h", {"a": 1, "b": "two"}) == 2
        assert await store.hset("h", {"a": 3}) == 0
        assert await store.hgetall("h") == {"a": "3", "b": "two"}
        assert await store.hget("h", "b") == "two"
        assert await store.hgetall("missing") == {}

    @pytest.mark.asyncio
    async def test_list_push_pop_range(self, store):
        await store.lpush("l", "a", "b")
        await store.rpush("l", "c")
        assert await store.lrange("l", 0, -1) == ["b", "a", "c"]
        assert await store.lrange("l", 0, 0) == ["b"]
        assert await store.lrange("l", 5, 10) == []
        assert await store.lpop("l") == "b"
        assert await store.rpop("l") == "c"
        assert await store.llen("l") == 1

    @pytest.mark.asyncio
    async def test_ltrim_and_empty_list_disappears(self, store):
        await store.rpush("l", "1", "2", "3", "4")
        await store.ltrim("l", 0, 1)
        assert await store.lrange("l", 0, -1) == ["1", "2"]

        await store.lpop("l")
        await store.lpop("l")
        assert await store.exists("l") is False

    @pytest.mark.asyncio
    async def test_set(self, store):
        assert await store.sadd("s", "a", "b", "a") == 2
        assert await store.smembers("s") == {"a", "b"}
        assert await store.sismember("s", "a") is True
        assert await store.srem("s", "a", "zzz") == 1
        assert await store.scard("s") == 1
        assert await store.sismember("missing", "a") is False


class TestSortedSets:
    """Score-ordered set operations."""

    @pytest.mark.asyncio
    async def test_order_by_score_then_member(self, store):
        await store.zadd("z", {"b": 1, "a": 1, "c": 0.5})
        assert await store.zrange("z", 0, -1) == ["c", "a", "b"]
        assert await store.zrange("z", 0, 0, desc=True) == ["b"]
        assert await store.zrange("z", 0, -1, withscores=True) == [("c", 0.5), ("a", 1.0), ("b", 1.0)]

    @pytest.mark.asyncio
    async def test_zadd_updates_in_place(self, store):
        assert await store.zadd("z", {"a": 1}) == 1
        assert await store.zadd("z", {"a": 5}) == 0
        assert await store.zcard("z") == 1
        assert await store.zscore("z", "a") == 5.0

    @pytest.mark.asyncio
    async def test_zadd_xx_never_inserts(self, store):
        await store.zadd("z", {"a": 1})
        await store.zadd("z", {"a": 2, "b": 2}, xx=True)
        assert await store.zscore("z", "a") == 2.0
        assert await store.zscore("z", "b") is None
        assert await store.zadd("missing", {"a": 1}, xx=True) == 0
        assert await store.exists("missing") is False

    @pytest.mark.asyncio
    async def test_zincrby(self, store):
        assert await store.zincrby("z", 2, "a") == 2.0
        assert await store.zincrby("z", 1, "a", xx=True) == 3.0
        assert await store.zincrby("z", 1, "b", xx=True) is None
        assert await store.zcard("z") == 1

    @pytest.mark.asyncio
    async def test_zrank_and_zrem(self, store):
        await store.zadd("z", {"low": 1, "mid": 5, "high": 10})
        assert await store.zrank("z", "low") == 0
        assert await store.zrank("z", "high", desc=True) == 0
        assert await store.zrank("z", "missing") is None

        assert await store.zrem("z", "mid", "missing") == 1
        assert await store.zcard("z") == 2


class TestKeyPatterns:
    """keys() with escaped patterns."""

    @pytest.mark.asyncio
    async def test_escaped_star_matches_literally(self, store):
        await store.set("room:4*:info", "1")
        await store.set("room:42:info", "2")

        assert await store.keys("room:4\\*:*") == ["room:4*:info"]
        assert sorted(await store.keys("room:4*:*")) == ["room:4*:info", "room:42:info"]
