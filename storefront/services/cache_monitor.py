# services/cache_monitor.py
import logging
import time
from typing import Any, Dict, Optional

from storefront.services.cache_invalidation import flush_all, flush_prefix, invalidate
from storefront.services.cache_keys import CACHE_PREFIXES, CacheTTL, namespaced_key
from storefront.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

OPERATIONS = [
    "GET /api/redis-status - connection status and key statistics",
    "POST /api/redis-status - manual set/get/ping",
    "DELETE /api/redis-status - flush by cache_type or pattern",
]


def is_known_cache_type(cache_type: Optional[str]) -> bool:
    return cache_type in CACHE_PREFIXES


async def get_status(cache: CacheStore, key_sample: int = 50) -> Dict[str, Any]:
    """Connection status, per-prefix key listing and TTL samples."""
    start = time.perf_counter()
    connected = await cache.ping()

    by_prefix: Dict[str, Dict[str, Any]] = {}
    ttl_samples: Dict[str, int] = {}
    for prefix in CACHE_PREFIXES:
        keys = sorted(await cache.scan(f"{prefix}:*"))
        by_prefix[prefix] = {"keys": keys[:key_sample], "count": len(keys)}
        ttl_samples[prefix] = await cache.ttl(keys[0]) if keys else -1

    response_time_ms = round((time.perf_counter() - start) * 1000, 2)

    return {
        "success": True,
        "redis": {
            "connected": connected,
            "connection_status": cache.connection_status(),
            "response_time_ms": response_time_ms,
        },
        "cache_stats": {
            "total_keys": sum(entry["count"] for entry in by_prefix.values()),
            "by_prefix": by_prefix,
            "ttl_samples": ttl_samples,
        },
        "hit_stats": cache.stats.snapshot(),
        "operations": OPERATIONS,
    }


async def manual_set(cache: CacheStore, cache_type: str, key: str, data: Any, ttl: Optional[int]) -> Dict[str, Any]:
    ttl = ttl or int(CacheTTL.SHORT)
    result = await cache.set(namespaced_key(cache_type, key), data, ttl)
    return {"success": True, "action": "set", "cache_type": cache_type, "key": key, "ttl": ttl, "result": result}


async def manual_get(cache: CacheStore, cache_type: str, key: str) -> Dict[str, Any]:
    data = await cache.get(namespaced_key(cache_type, key))
    return {"success": True, "action": "get", "cache_type": cache_type, "key": key, "exists": data is not None, "data": data}


async def manual_ping(cache: CacheStore) -> Dict[str, Any]:
    return {"success": True, "action": "ping", "result": await cache.ping()}


async def flush(cache: CacheStore, *, cache_type: Optional[str] = None, pattern: Optional[str] = None) -> Dict[str, Any]:
    if cache_type == "all":
        result = await flush_all(cache)
        logger.warning(f"All cache prefixes flushed, deleted {result.deleted_count} keys")
        return {"success": True, "action": "flush_all", "deleted_keys": result.deleted_count,
                "caches_cleared": list(CACHE_PREFIXES)}

    if pattern:
        result = await invalidate(cache, [pattern])
        return {"success": True, "action": "flush_pattern", "pattern": pattern, "deleted_keys": result.deleted_count}

    if not is_known_cache_type(cache_type):
        raise ValueError(f"Unknown cache type: {cache_type}")
    result = await flush_prefix(cache, cache_type)
    return {"success": True, "action": "flush_cache_type", "cache_type": cache_type, "deleted_keys": result.deleted_count}
