from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.database import Database
from typing import Optional
import json
import logging
from storefront.config import settings
from storefront.deps import get_cache, get_db
from storefront.schemas.cache_schema import CacheCommand
from storefront.services import cache_monitor
from storefront.services.cache_store import CacheStore
from storefront.services.cache_warming import warm_critical_caches

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cache"])


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": error})


@router.get("/redis-status")
async def redis_status(cache: CacheStore = Depends(get_cache)):
    return await cache_monitor.get_status(cache, key_sample=settings.CACHE_MONITOR_KEY_SAMPLE)


@router.delete("/redis-status")
async def flush_cache(
    cache_type: Optional[str] = None,
    pattern: Optional[str] = None,
    cache: CacheStore = Depends(get_cache),
):
    if not cache_type and not pattern:
        return _bad_request("Either cache_type or pattern is required")
    if cache_type and cache_type != "all" and not pattern and not cache_monitor.is_known_cache_type(cache_type):
        return _bad_request(f"Unknown cache type: {cache_type}")
    return await cache_monitor.flush(cache, cache_type=cache_type, pattern=pattern)


@router.post("/redis-status")
async def cache_command(request: Request, cache: CacheStore = Depends(get_cache)):
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _bad_request("Invalid JSON body")

    try:
        command = CacheCommand.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        return _bad_request(str(first.get("msg", "Invalid request")).removeprefix("Value error, "))

    if command.action == "ping":
        return await cache_monitor.manual_ping(cache)

    if not cache_monitor.is_known_cache_type(command.cache_type):
        return _bad_request(f"Unknown cache type: {command.cache_type}")

    if command.action == "set":
        return await cache_monitor.manual_set(cache, command.cache_type, command.key, command.data, command.ttl)
    return await cache_monitor.manual_get(cache, command.cache_type, command.key)


@router.post("/warmup")
async def warmup(db: Database = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    stats = await warm_critical_caches(db, cache)
    logger.info(f"Manual cache warmup: {stats}")
    return {**stats, "stored": stats["success"], "success": stats["failed"] == 0}
