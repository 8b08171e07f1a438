# middleware/route_cache.py
import functools
from bson import ObjectId
import logging
from typing import Any, Awaitable, Callable, Iterable

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from storefront.repos.helper import collections_exist
from storefront.services.cache_decorators import remember
from storefront.services.cache_keys import request_cache_key

logger = logging.getLogger(__name__)

BYPASS_PARAM = "nocache"
CACHE_HEADER = "X-Cache"
TTL_HEADER = "X-Cache-TTL"


def _bypass(request: Request) -> bool:
    return request.query_params.get(BYPASS_PARAM, "").lower() in ("true", "1")


def _to_payload(result: Any) -> Any:
    return jsonable_encoder(result, custom_encoder={ObjectId: str})


def _cached_response(payload: Any, status: str, ttl: int) -> JSONResponse:
    return JSONResponse(content=payload, headers={CACHE_HEADER: status, TTL_HEADER: str(int(ttl))})


def cached_route(ttl: int, *, required_collections: Iterable[str] = (), empty_key: str = "data"):
    """
    Read-through cache for GET handlers declaring ``request: Request``.

    The key is derived from the request path and query string. Handlers
    whose data lives in ``required_collections`` answer with an empty list
    until those collections exist, without touching the cache.
    """
    required = tuple(required_collections)

    def decorator(fn: Callable[..., Awaitable[Any]]):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            request: Request = kwargs["request"]
            state = request.app.state

            if required:
                present = await run_in_threadpool(collections_exist, state.db, required)
                missing = [name for name, ok in present.items() if not ok]
                if missing:
                    logger.warning(f"Collections not ready for {request.url.path}: {', '.join(missing)}")
                    return {"success": True, empty_key: [], "count": 0}

            produced = []

            async def produce():
                produced.append(True)
                return _to_payload(await fn(*args, **kwargs))

            if _bypass(request):
                return _cached_response(await produce(), "BYPASS", ttl)

            key = request_cache_key(request.url.path, request.query_params.multi_items())
            payload = await remember(
                state.cache, key, ttl, produce,
                namespace="api", flight=getattr(state, "single_flight", None),
            )
            # callers that joined another request's computation count as hits
            return _cached_response(payload, "MISS" if produced else "HIT", ttl)
        return wrapper
    return decorator
