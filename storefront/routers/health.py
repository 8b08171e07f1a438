from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from storefront.deps import get_cache, get_db
from storefront.services.cache_store import CacheStore
from pymongo.database import Database
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"], prefix="/api")

@router.get("/health", summary="Health Check", description="Check the health status of the application and its dependencies")
async def health_check(cache: CacheStore = Depends(get_cache), db: Database = Depends(get_db)):
    mongo_status = "disconnected"
    mongo_error = None

    # The cache fails open, so a Redis outage only degrades the service
    redis_ok = await cache.ping()
    redis_status = "connected" if redis_ok else "disconnected"
    redis_error = None if redis_ok else (cache.last_error or "Connection failed")

    # Test MongoDB connection
    try:
        await run_in_threadpool(db.command, "ping")
        mongo_status = "connected"
    except Exception as e:
        logger.error(f"MongoDB health check error: {str(e)}")
        mongo_error = "Health check failed"

    if mongo_status != "connected":
        overall_status = "unhealthy"
    elif not redis_ok:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    response = {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "redis": {
                "status": redis_status,
                "error": redis_error
            },
            "mongodb": {
                "status": mongo_status,
                "error": mongo_error
            }
        }
    }

    # Return appropriate HTTP status
    if overall_status == "unhealthy":
        return JSONResponse(status_code=503, content=response)

    return response
