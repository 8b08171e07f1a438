from pymongo.database import Database
from pymongo import MongoClient
import redis.asyncio as aioredis
from fastapi import Request
from storefront.config import Settings
from storefront.services.cache_store import CacheStore
from storefront.services.single_flight import SingleFlight


def create_mongo_client(uri: str) -> MongoClient:
    # synchronous PyMongo client (use run_in_threadpool for blocking calls)
    return MongoClient(uri, maxPoolSize=100, serverSelectionTimeoutMS=5000)

def create_redis_client(settings: Settings) -> aioredis.Redis:
    # redis.asyncio client (async)
    return aioredis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.CACHE_SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=settings.CACHE_CONNECT_TIMEOUT_SECONDS,
    )

def create_cache_store(settings: Settings) -> CacheStore:
    return CacheStore(
        create_redis_client(settings),
        enabled=settings.CACHE_ENABLED,
        ping_timeout=settings.CACHE_PING_TIMEOUT_SECONDS,
        scan_count=settings.CACHE_SCAN_COUNT,
    )

def get_db(request: Request) -> Database:
    return request.app.state.db

def get_cache(request: Request) -> CacheStore:
    return request.app.state.cache

def get_single_flight(request: Request) -> SingleFlight:
    return request.app.state.single_flight
