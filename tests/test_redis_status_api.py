import pytest

from storefront.services import cache_monitor


class TestStatus:

    @pytest.mark.asyncio
    async def test_reports_connection_and_keys_per_prefix(self, client, cache):
        await cache.set("product:1", {"a": 1}, 600)
        await cache.set("product:2", {"a": 2}, 600)
        await cache.set("category:all", [], 86400)

        body = (await client.get("/api/redis-status")).json()

        assert body["success"] is True
        assert body["redis"]["connected"] is True
        assert body["redis"]["connection_status"]["state"] == "connected"
        assert body["redis"]["response_time_ms"] >= 0
        stats = body["cache_stats"]
        assert stats["total_keys"] == 3
        assert stats["by_prefix"]["product"] == {"keys": ["product:1", "product:2"], "count": 2}
        assert stats["by_prefix"]["media"] == {"keys": [], "count": 0}
        assert 0 < stats["ttl_samples"]["product"] <= 600
        assert stats["ttl_samples"]["media"] == -1
        assert body["operations"]

    @pytest.mark.asyncio
    async def test_key_listing_is_capped(self, cache):
        for i in range(10):
            await cache.set(f"api:k{i}", i, 60)

        status = await cache_monitor.get_status(cache, key_sample=3)
        assert len(status["cache_stats"]["by_prefix"]["api"]["keys"]) == 3
        assert status["cache_stats"]["by_prefix"]["api"]["count"] == 10

    @pytest.mark.asyncio
    async def test_reports_outage_without_failing(self, app, client, broken_cache):
        app.state.cache = broken_cache

        response = await client.get("/api/redis-status")
        assert response.status_code == 200
        body = response.json()
        assert body["redis"]["connected"] is False
        assert body["redis"]["connection_status"]["last_error"]
        assert body["cache_stats"]["total_keys"] == 0


class TestCommands:
    """POST /api/redis-status"""

    @pytest.mark.asyncio
    async def test_set_then_get(self, client, cache):
        response = await client.post("/api/redis-status", json={
            "action": "set", "cache_type": "api", "key": "probe", "data": {"x": 1},
        })
        assert response.status_code == 200
        assert response.json()["result"] is True
        assert 0 < await cache.ttl("api:probe") <= 300

        got = (await client.post("/api/redis-status", json={"action": "get", "cache_type": "api", "key": "probe"})).json()
        assert got["exists"] is True
        assert got["data"] == {"x": 1}

    @pytest.mark.asyncio
    async def test_get_missing_key(self, client):
        got = (await client.post("/api/redis-status", json={"action": "get", "cache_type": "api", "key": "nope"})).json()
        assert got == {
            "success": True, "action": "get", "cache_type": "api", "key": "nope", "exists": False, "data": None,
        }

    @pytest.mark.asyncio
    async def test_set_with_custom_ttl(self, client, cache):
        await client.post("/api/redis-status", json={
            "action": "set", "cache_type": "page", "key": "home", "data": "<html>", "ttl": 30,
        })
        assert 0 < await cache.ttl("page:home") <= 30

    @pytest.mark.asyncio
    async def test_ping(self, client):
        body = (await client.post("/api/redis-status", json={"action": "ping"})).json()
        assert body["result"] is True

    @pytest.mark.asyncio
    async def test_malformed_json(self, client):
        response = await client.post("/api/redis-status", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid JSON body"}

    @pytest.mark.asyncio
    async def test_missing_fields(self, client, cache):
        response = await client.post("/api/redis-status", json={"action": "set", "cache_type": "api", "key": "probe"})
        assert response.status_code == 400
        assert response.json()["error"] == "Required parameters: cache_type, key, data"
        assert await cache.scan("api:*") == []

    @pytest.mark.asyncio
    async def test_unknown_action(self, client):
        response = await client.post("/api/redis-status", json={"action": "explode"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_unknown_cache_type_writes_nothing(self, client, redis_client):
        response = await client.post("/api/redis-status", json={
            "action": "set", "cache_type": "sessions", "key": "k", "data": 1,
        })
        assert response.status_code == 400
        assert response.json()["error"] == "Unknown cache type: sessions"
        assert await redis_client.dbsize() == 0


class TestFlush:
    """DELETE /api/redis-status"""

    @pytest.mark.asyncio
    async def test_flush_by_cache_type(self, client, cache):
        await cache.set("media:a", 1, 60)
        await cache.set("media:b", 1, 60)
        await cache.set("api:products", 1, 60)

        body = (await client.delete("/api/redis-status", params={"cache_type": "media"})).json()
        assert body == {"success": True, "action": "flush_cache_type", "cache_type": "media", "deleted_keys": 2}
        assert await cache.get("api:products") == 1

    @pytest.mark.asyncio
    async def test_flush_all(self, client, cache, redis_client):
        await cache.set("media:a", 1, 60)
        await cache.set("product:1", 1, 60)
        await redis_client.set("foreign:key", "1")

        body = (await client.delete("/api/redis-status", params={"cache_type": "all"})).json()
        assert body["deleted_keys"] == 2
        # keys outside the cache prefixes are left alone
        assert await redis_client.get("foreign:key") == "1"

    @pytest.mark.asyncio
    async def test_flush_by_pattern(self, client, cache):
        await cache.set("api:products:limit=5", 1, 60)
        await cache.set("api:categories", 1, 60)

        body = (await client.delete("/api/redis-status", params={"pattern": "api:*products*"})).json()
        assert body["action"] == "flush_pattern"
        assert body["deleted_keys"] == 1

    @pytest.mark.asyncio
    async def test_bad_requests(self, client):
        assert (await client.delete("/api/redis-status")).status_code == 400
        response = await client.delete("/api/redis-status", params={"cache_type": "sessions"})
        assert response.status_code == 400
        assert response.json()["error"] == "Unknown cache type: sessions"
