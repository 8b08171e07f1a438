"""
Shared fixtures: in-process Redis (fakeredis), in-memory MongoDB (mongomock)
and an ASGI client bound to an app wired to both.
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import fakeredis
import fakeredis.aioredis
import mongomock
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.main import create_app
from storefront.services.cache_store import CacheStore
from storefront.services.single_flight import SingleFlight


@pytest.fixture
def redis_client():
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def cache(redis_client) -> CacheStore:
    return CacheStore(redis_client, ping_timeout=1.0, scan_count=100)


@pytest.fixture
def broken_client() -> AsyncMock:
    """A Redis client whose every command fails as if the server were down."""
    client = AsyncMock()
    down = RedisConnectionError("Connection refused")
    client.ping.side_effect = down
    client.get.side_effect = down
    client.set.side_effect = down
    client.delete.side_effect = down
    client.ttl.side_effect = down
    return client


@pytest.fixture
def broken_cache(broken_client) -> CacheStore:
    return CacheStore(broken_client, ping_timeout=0.1)


@pytest.fixture
def db():
    return mongomock.MongoClient().storefront


@pytest.fixture
def app(db, cache):
    application = create_app()
    application.state.db = db
    application.state.cache = cache
    application.state.single_flight = SingleFlight()
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
