"""Tests for the cache read/write strategies."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.exceptions import CacheSerializationError, StoreUnavailableError
from app.services.cache.cache_engine import is_cacheable


def failing_loader():
    raise AssertionError("loader must not be called on a cache hit")


class TestCacheAside:
    """Cache-aside and read-through reads."""

    @pytest.mark.asyncio
    async def test_miss_then_hit_skips_loader(self, engine):
        loader = AsyncMock(return_value={"id": "1", "name": "Jan"})

        first = await engine.cache_aside("user:1", loader, 60)
        second = await engine.cache_aside("user:1", failing_loader, 60)

        assert first == {"id": "1", "name": "Jan"}
        assert second == first
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_counts_hits_and_misses(self, engine, stats):
        await engine.cache_aside("k", lambda: "value")
        await engine.cache_aside("k", lambda: "value")
        await engine.read_through("other", lambda: "value")

        assert stats.hits == 1
        assert stats.misses == 2

    @pytest.mark.asyncio
    async def test_fill_uses_ttl(self, engine, store):
        await engine.cache_aside("k", lambda: [1, 2], 30)
        assert await store.ttl("k") == 30

    @pytest.mark.asyncio
    async def test_fill_uses_default_ttl(self, engine, store):
        await engine.read_through("k", lambda: [1, 2])
        assert await store.ttl("k") == 60

    @pytest.mark.asyncio
    @pytest.mark.parametrize("empty", [None, "", [], {}])
    async def test_empty_values_are_not_cached(self, engine, store, empty):
        assert await engine.cache_aside("k", lambda: empty) == empty
        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_store_read_failure_falls_back_to_loader(self, engine, store):
        with patch.object(store, "get", AsyncMock(side_effect=StoreUnavailableError())):
            value = await engine.cache_aside("k", lambda: {"fresh": True})

        assert value == {"fresh": True}

    @pytest.mark.asyncio
    async def test_store_write_failure_still_returns_loader_value(self, engine, store):
        loader = MagicMock(return_value={"fresh": True})
        with patch.object(store, "set", AsyncMock(side_effect=StoreUnavailableError())):
            value = await engine.read_through("k", loader)

        assert value == {"fresh": True}
        loader.assert_called_once()
        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, engine, store):
        await store.set("k", "{not json")
        assert await engine.cache_aside("k", lambda: "reloaded") == "reloaded"
        assert await engine.cache_aside("k", failing_loader) == "reloaded"

    @pytest.mark.asyncio
    async def test_unserializable_loader_value_is_returned_uncached(self, engine, store):
        value = {"when": object()}
        assert await engine.cache_aside("k", lambda: value) is value
        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_loader_failure_propagates(self, engine):
        loader = AsyncMock(side_effect=RuntimeError("database down"))
        with pytest.raises(RuntimeError, match="database down"):
            await engine.cache_aside("k", loader)


class TestWriteThrough:
    """Write-through writes."""

    @pytest.mark.asyncio
    async def test_caches_persisted_value(self, engine):
        persist = AsyncMock(side_effect=lambda value: {**value, "version": 2})

        result = await engine.write_through("wt:1", {"id": "1"}, persist, 60)

        assert result == {"id": "1", "version": 2}
        assert await engine.cache_aside("wt:1", failing_loader) == result

    @pytest.mark.asyncio
    async def test_persist_returning_none_caches_input(self, engine):
        saved = []
        result = await engine.write_through("wt:1", {"id": "1"}, saved.append)

        assert result == {"id": "1"}
        assert saved == [{"id": "1"}]
        assert await engine.cache_aside("wt:1", failing_loader) == {"id": "1"}

    @pytest.mark.asyncio
    async def test_failed_persist_leaves_no_cache_entry(self, engine, store):
        persist = AsyncMock(side_effect=RuntimeError("write rejected"))

        with pytest.raises(RuntimeError, match="write rejected"):
            await engine.write_through("wt:1", {"id": "1"}, persist)

        assert await store.get("wt:1") is None

    @pytest.mark.asyncio
    async def test_store_failure_after_persist_propagates(self, engine, store):
        with patch.object(store, "set", AsyncMock(side_effect=StoreUnavailableError())):
            with pytest.raises(StoreUnavailableError):
                await engine.write_through("wt:1", {"id": "1"}, lambda value: value)


class TestWriteAround:
    """Write-around writes."""

    @pytest.mark.asyncio
    async def test_invalidates_previously_cached_value(self, engine, stats):
        await engine.cache_aside("wa:1", lambda: {"name": "old"})
        persist = AsyncMock(side_effect=lambda value: value)

        result = await engine.write_around("wa:1", {"name": "new"}, persist)

        assert result == {"name": "new"}
        misses_before = stats.misses
        assert await engine.cache_aside("wa:1", lambda: {"name": "new"}) == {"name": "new"}
        assert stats.misses == misses_before + 1

    @pytest.mark.asyncio
    async def test_failed_persist_keeps_cache_untouched(self, engine, store):
        await store.set("wa:1", '"cached"')
        persist = AsyncMock(side_effect=RuntimeError("write rejected"))

        with pytest.raises(RuntimeError):
            await engine.write_around("wa:1", "new", persist)

        assert await store.get("wa:1") == '"cached"'


class TestWriteBack:
    """Write-back writes."""

    @pytest.mark.asyncio
    async def test_returns_immediately_and_marks_dirty(self, engine):
        persist = AsyncMock()

        result = await engine.write_back("wb:1", {"score": 10}, persist, 60)

        assert result == {"score": 10}
        assert await engine.deferred_writer.is_dirty("wb:1") is True
        assert await engine.cache_aside("wb:1", failing_loader) == {"score": 10}

        await engine.deferred_writer.drain()
        persist.assert_awaited_once_with({"score": 10})
        assert await engine.deferred_writer.is_dirty("wb:1") is False

    @pytest.mark.asyncio
    async def test_failed_persist_keeps_dirty_marker(self, engine):
        persist = AsyncMock(side_effect=RuntimeError("database down"))

        await engine.write_back("wb:1", {"score": 10}, persist)
        await engine.deferred_writer.drain()

        persist.assert_awaited_once()
        assert await engine.deferred_writer.dirty_keys() == {"wb:1"}
        assert await engine.cache_aside("wb:1", failing_loader) == {"score": 10}

    @pytest.mark.asyncio
    async def test_unserializable_value_raises_before_caching(self, engine, store):
        persist = AsyncMock()

        with pytest.raises(CacheSerializationError):
            await engine.write_back("wb:1", {"bad": {1, 2}}, persist)

        assert await store.exists("wb:1") is False
        assert await engine.deferred_writer.is_dirty("wb:1") is False
        assert engine.deferred_writer.pending_count == 0


class TestRoundTrip:
    """Values survive a write followed by a cache hit."""

    NESTED = {
        "id": "42",
        "score": 12.5,
        "count": 3,
        "active": True,
        "tags": ["a", "b"],
        "profile": {"age": 31, "nickname": None, "history": [[1, 2], {"x": -1}]},
    }

    @pytest.mark.asyncio
    async def test_write_through_round_trip(self, engine):
        await engine.write_through("rt:1", self.NESTED, lambda value: value, 60)
        assert await engine.read_through("rt:1", failing_loader) == self.NESTED

    @pytest.mark.asyncio
    async def test_write_back_round_trip(self, engine):
        await engine.write_back("rt:2", self.NESTED, AsyncMock(), 60)
        assert await engine.cache_aside("rt:2", failing_loader) == self.NESTED
        await engine.deferred_writer.drain()


class TestSet:
    """Plain best-effort set."""

    @pytest.mark.asyncio
    async def test_set_and_store_failure(self, engine, store):
        assert await engine.set("k", {"a": 1}) is True
        assert await engine.cache_aside("k", failing_loader) == {"a": 1}

        with patch.object(store, "set", AsyncMock(side_effect=StoreUnavailableError())):
            assert await engine.set("k", {"a": 2}) is False


class TestIsCacheable:
    """Which loader values get cached."""

    @pytest.mark.parametrize("value", [0, False, "x", [0], {"a": None}, 1.5])
    def test_cacheable(self, value):
        assert is_cacheable(value) is True

    @pytest.mark.parametrize("value", [None, "", [], {}, ()])
    def test_not_cacheable(self, value):
        assert is_cacheable(value) is False
