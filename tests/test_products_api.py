import asyncio
from datetime import datetime, timezone

import pytest

from storefront.config import settings
from storefront.services import product_service
from storefront.repos import characteristics as characteristics_repo


def add_product(db, name, **extra):
    doc = {
        "name": name,
        "price": extra.pop("price", 10.0),
        "is_deleted": False,
        "created_at": datetime.now(timezone.utc),
        **extra,
    }
    return str(db.products.insert_one(doc).inserted_id)


class TestListingCache:
    """Cold call, cached call, write invalidation and refetch"""

    @pytest.mark.asyncio
    async def test_end_to_end_read_through_and_invalidation(self, client, db, cache):
        add_product(db, "Drill")

        cold = await client.get("/api/products")
        assert cold.status_code == 200
        assert cold.json()["total"] == 1
        assert await cache.get("api:products") is not None

        # a write that bypasses the API is not visible until invalidation
        add_product(db, "Saw")
        cached = await client.get("/api/products")
        assert cached.json() == cold.json()
        assert cache.stats.snapshot()["hits"]["api"] == 1

        created = await client.post("/api/products", json={"name": "Hammer", "price": 25})
        assert created.status_code == 201
        assert await cache.get("api:products") is None

        fresh = await client.get("/api/products")
        assert fresh.json()["total"] == 3
        assert {p["name"] for p in fresh.json()["data"]} == {"Drill", "Saw", "Hammer"}

    @pytest.mark.asyncio
    async def test_query_params_get_their_own_entries(self, client, db, cache):
        add_product(db, "Drill", category_id="tools")
        add_product(db, "Lamp", category_id="light")

        body = (await client.get("/api/products", params={"category_id": "tools", "limit": 5})).json()
        assert [p["name"] for p in body["data"]] == ["Drill"]
        assert await cache.get("api:products:category_id=tools&limit=5") == body

    @pytest.mark.asyncio
    async def test_repeated_params_in_other_order_are_separate_entries(self, client, db):
        add_product(db, "in-a", category_id="a")
        add_product(db, "in-b", category_id="b")

        ab = await client.get("/api/products", params=[("category_id", "a"), ("category_id", "b")])
        ba = await client.get("/api/products", params=[("category_id", "b"), ("category_id", "a")])
        uncached = await client.get("/api/products", params=[("category_id", "b"), ("category_id", "a"), ("nocache", "true")])

        assert ba.headers["X-Cache"] == "MISS"
        assert [p["name"] for p in ba.json()["data"]] == [p["name"] for p in uncached.json()["data"]]
        assert [p["name"] for p in ab.json()["data"]] != [p["name"] for p in ba.json()["data"]]

    @pytest.mark.asyncio
    async def test_cache_status_headers(self, client, db):
        add_product(db, "Drill")

        first = await client.get("/api/products")
        second = await client.get("/api/products")
        bypass = await client.get("/api/products", params={"nocache": "true"})

        assert first.headers["X-Cache"] == "MISS"
        assert second.headers["X-Cache"] == "HIT"
        assert bypass.headers["X-Cache"] == "BYPASS"
        assert first.headers["X-Cache-TTL"] == "1800"

    @pytest.mark.asyncio
    async def test_nocache_bypasses_the_cache(self, client, db, cache):
        add_product(db, "Drill")

        await client.get("/api/products", params={"nocache": "true"})
        assert await cache.scan("api:*") == []

    @pytest.mark.asyncio
    async def test_missing_collection_returns_empty_listing(self, client, cache):
        response = await client.get("/api/products")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": [], "count": 0}
        assert await cache.scan("api:*") == []

    @pytest.mark.asyncio
    async def test_cache_outage_still_serves_from_database(self, app, client, db, broken_cache):
        app.state.cache = broken_cache
        add_product(db, "Drill")

        response = await client.get("/api/products")
        assert response.status_code == 200
        assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_listing_pagination_sort_and_soft_delete(client, db):
    for i, name in enumerate(["B", "A", "C"]):
        add_product(db, name, price=i)
    add_product(db, "Gone", is_deleted=True)

    body = (await client.get("/api/products", params={"sort": "name_asc", "limit": 2, "page": 2})).json()
    assert body["total"] == 3
    assert [p["name"] for p in body["data"]] == ["C"]

    body = (await client.get("/api/products", params={"sort": "price_desc", "offset": 0, "limit": 1})).json()
    assert [p["name"] for p in body["data"]] == ["C"]


@pytest.mark.asyncio
async def test_invalid_sort_is_a_bad_request(client, db):
    add_product(db, "Drill")
    response = await client.get("/api/products", params={"sort": "random"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_slow_query_times_out(client, db, monkeypatch):
    add_product(db, "Drill")

    async def slow_threadpool(*args, **kwargs):
        await asyncio.sleep(1)
        return 0, []

    monkeypatch.setattr(product_service, "run_in_threadpool", slow_threadpool)
    monkeypatch.setattr(settings, "QUERY_TIMEOUT_SECONDS", 0.05)

    response = await client.get("/api/products")
    assert response.status_code == 504


class TestProductById:

    @pytest.mark.asyncio
    async def test_product_is_remembered_under_entity_key(self, client, db, cache):
        product_id = add_product(db, "Drill")

        first = await client.get(f"/api/products/{product_id}")
        assert first.status_code == 200
        assert first.json()["data"]["name"] == "Drill"
        assert (await cache.get(f"product:{product_id}"))["name"] == "Drill"

    @pytest.mark.asyncio
    async def test_update_invalidates_entity_key(self, client, db, cache):
        product_id = add_product(db, "Drill")
        await client.get(f"/api/products/{product_id}")

        updated = await client.put(f"/api/products/{product_id}", json={"price": 99})
        assert updated.status_code == 200
        assert await cache.get(f"product:{product_id}") is None

        assert (await client.get(f"/api/products/{product_id}")).json()["data"]["price"] == 99

    @pytest.mark.asyncio
    async def test_delete_is_soft_and_invalidates(self, client, db, cache):
        product_id = add_product(db, "Drill")
        await client.get(f"/api/products/{product_id}")

        assert (await client.delete(f"/api/products/{product_id}")).status_code == 200
        assert await cache.get(f"product:{product_id}") is None
        assert (await client.get(f"/api/products/{product_id}")).status_code == 404
        assert db.products.count_documents({"is_deleted": True}) == 1

    @pytest.mark.asyncio
    async def test_unknown_and_invalid_ids(self, client, db):
        assert (await client.get("/api/products/000000000000000000000000")).status_code == 404
        assert (await client.get("/api/products/not-an-id")).status_code == 400
        assert (await client.put("/api/products/not-an-id", json={"price": 1})).status_code == 400


@pytest.mark.asyncio
async def test_create_validates_numeric_fields(client, db):
    assert (await client.post("/api/products", json={"name": "Drill", "price": -1})).status_code == 400
    assert (await client.post("/api/products", json={"name": "Drill", "stock_quantity": "many"})).status_code == 400
    assert db.products.count_documents({}) == 0


@pytest.mark.asyncio
async def test_create_with_legacy_characteristics(client, db):
    db[characteristics_repo.GROUPS].insert_one({"_id": "g1", "name": "Color", "is_active": True})
    db[characteristics_repo.LEGACY_VALUES].insert_one({"_id": "v1", "group_id": "g1", "value": "Red"})

    created = await client.post("/api/products", json={
        "name": "Drill",
        "characteristics": [{"value_id": "v1"}],
    })
    product_id = created.json()["data"]["_id"]

    response = await client.get(f"/api/products/{product_id}/characteristics")
    assert response.status_code == 200
    view = response.json()["data"]
    assert view["total_characteristics"] == 1
    assert view["groups"][0]["characteristics"][0]["value"] == {
        "kind": "enum", "id": "v1", "label": "Red", "color_hex": None,
    }


@pytest.mark.asyncio
async def test_characteristics_view_is_route_cached(client, db, cache):
    db[characteristics_repo.GROUPS].insert_one({"_id": "g1", "name": "Color", "is_active": True})
    db[characteristics_repo.LEGACY_VALUES].insert_one({"_id": "v1", "group_id": "g1", "value": "Red"})
    db[characteristics_repo.LEGACY_LINKS].insert_one({"product_id": "p1", "value_id": "v1"})

    first = await client.get("/api/products/p1/characteristics")
    db[characteristics_repo.LEGACY_LINKS].delete_many({})
    second = await client.get("/api/products/p1/characteristics")

    assert first.json() == second.json()
    assert await cache.get("api:products:p1:characteristics") == first.json()
    assert 0 < await cache.ttl("api:products:p1:characteristics") <= 3600

    # any product write drops it
    await client.post("/api/products", json={"name": "Other"})
    assert await cache.get("api:products:p1:characteristics") is None
