"""End-to-end tests for the HTTP routes against the in-memory store."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.exceptions import StoreUnavailableError
from app.main import app
from app.services.user_repository import UserRepository


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        app.state.user_repository = UserRepository(read_latency_seconds=0, write_latency_seconds=0)
        yield test_client


class TestHealth:
    """Health endpoint."""

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "store": "up"}

    def test_degraded_when_store_down(self, client):
        with patch.object(app.state.store, "ping", AsyncMock(return_value=False)):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["store"] == "down"


class TestCacheRoutes:
    """Cache strategy endpoints."""

    def test_cache_aside_miss_then_hit(self, client):
        first = client.get("/api/cache/cache-aside/1")
        second = client.get("/api/cache/cache-aside/1")

        assert first.status_code == 200
        assert first.json()["data"]["name"] == "Jan Kowalski"
        assert first.json()["strategy"] == "Cache-Aside"
        assert second.json()["data"] == first.json()["data"]

        stats = client.get("/api/cache/stats").json()
        assert stats["hits"] >= 1
        assert stats["misses"] >= 1

    def test_unknown_user_is_404(self, client):
        response = client.get("/api/cache/read-through/999")

        assert response.status_code == 404
        assert response.json()["error_code"] == "USER_NOT_FOUND"

    def test_write_through_then_read(self, client):
        response = client.post("/api/cache/write-through", json={"id": "3", "name": "Ewa"})

        assert response.status_code == 200
        assert response.json()["data"] == {"id": "3", "name": "Ewa"}
        assert client.get("/api/cache/cache-aside/3").json()["data"]["name"] == "Ewa"

    def test_write_around_persists(self, client):
        response = client.post("/api/cache/write-around", json={"id": "4", "name": "Piotr"})

        assert response.status_code == 200
        assert client.get("/api/cache/read-through/4").json()["data"]["name"] == "Piotr"

    def test_write_back_persists_after_drain(self, client):
        response = client.post("/api/cache/write-back", json={"id": "5", "name": "Ola"})

        assert response.status_code == 200
        assert response.json()["data"] == {"id": "5", "name": "Ola"}

        client.portal.call(app.state.cache_engine.deferred_writer.drain)
        user = client.portal.call(app.state.user_repository.find_user, "5")
        assert user == {"id": "5", "name": "Ola"}
        assert client.get("/api/cache/stats").json()["dirty_keys"] == 0

    def test_lru_set_and_get(self, client):
        for key in ("a", "b", "c"):
            response = client.post(f"/api/cache/lru/lru-demo-{key}?max_size=2", json={"data": {"v": key}})
            assert response.json()["success"] is True

        assert client.get("/api/cache/lru/lru-demo-a").json()["value"] is None
        assert client.get("/api/cache/lru/lru-demo-c").json()["value"] == {"v": "c"}

    def test_lfu_set_and_get(self, client):
        client.post("/api/cache/lfu/lfu-demo", json={"data": 7, "ttl": 60})

        response = client.get("/api/cache/lfu/lfu-demo")

        assert response.json() == {"strategy": "LFU", "key": "lfu-demo", "value": 7}

    def test_invalidate_pattern(self, client):
        client.post("/api/cache/lru/inv:1", json={"data": 1})
        client.post("/api/cache/lru/inv:2", json={"data": 2})

        first = client.delete("/api/cache/invalidate/inv:*")
        second = client.delete("/api/cache/invalidate/inv:*")

        assert first.json() == {"pattern": "inv:*", "deleted_keys": 2}
        assert second.json()["deleted_keys"] == 0

    def test_strategies(self, client):
        body = client.get("/api/cache/strategies").json()

        assert len(body["cache_strategies"]) == 5
        assert [p["name"] for p in body["eviction_policies"]] == ["LRU", "LFU"]

    def test_benchmark(self, client):
        body = client.get("/api/cache/benchmark/lfu?iterations=5").json()

        assert body["iterations"] == 5
        assert body["errors"] == 0

    def test_benchmark_unknown_strategy(self, client):
        response = client.get("/api/cache/benchmark/fifo")

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNKNOWN_STRATEGY"

    def test_store_outage_maps_to_503(self, client):
        failing = AsyncMock(side_effect=StoreUnavailableError())
        with patch.object(app.state.store, "zcard", failing):
            response = client.get("/api/cache/stats")

        assert response.status_code == 503
        assert response.json()["error_code"] == "STORE_UNAVAILABLE"


class TestChatRoutes:
    """Chat endpoints."""

    def test_room_flow(self, client):
        created = client.post(
            "/api/chat/rooms",
            json={"room_id": "api-room", "name": "General", "created_by": "1"}
        )
        assert created.status_code == 201

        client.post("/api/chat/rooms/api-room/join", json={"user_id": "1", "username": "Jan"})
        sent = client.post(
            "/api/chat/rooms/api-room/messages",
            json={"user_id": "1", "username": "Jan", "message": "hello"}
        )
        assert sent.status_code == 201

        info = client.get("/api/chat/rooms/api-room").json()
        assert info["users"] == ["1"]
        assert info["message_count"] == 1

        messages = client.get("/api/chat/rooms/api-room/messages?limit=10").json()
        assert [m["message"] for m in messages["messages"]] == ["hello"]

        assert "api-room" in client.get("/api/chat/rooms").json()["rooms"]

    def test_missing_room_is_404(self, client):
        response = client.get("/api/chat/rooms/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ROOM_NOT_FOUND"

    def test_invalid_message_limit(self, client):
        assert client.get("/api/chat/rooms/x/messages?limit=0").status_code == 422

    def test_presence(self, client):
        client.post("/api/chat/users/api-user/online")

        assert "api-user" in client.get("/api/chat/users/online").json()["users"]
        assert client.post("/api/chat/users/api-user/offline").json() == {"success": True}

    def test_leaderboard(self, client):
        ranked = client.post("/api/chat/leaderboard", json={"user_id": "api-top", "score": 1e9})

        assert ranked.json() == {"user_id": "api-top", "rank": 1}
        assert client.get("/api/chat/leaderboard/api-top/rank").json()["rank"] == 1
        assert client.get("/api/chat/leaderboard?limit=1").json()["entries"][0]["user_id"] == "api-top"
        assert client.delete("/api/chat/leaderboard/api-top").json() == {"success": True}
        assert client.get("/api/chat/leaderboard/api-top/rank").json()["rank"] is None

    def test_user_stats(self, client):
        client.post(
            "/api/chat/rooms/stats-room/messages",
            json={"user_id": "stats-user", "username": "S", "message": "x"}
        )

        stats = client.get("/api/chat/users/stats-user/stats").json()

        assert stats["user_id"] == "stats-user"
        assert stats["messages_sent"] == 1
        assert client.get("/api/chat/stats/top-users?limit=100").status_code == 200

    def test_metrics_disabled(self, client):
        assert client.get("/metrics").status_code == 404
