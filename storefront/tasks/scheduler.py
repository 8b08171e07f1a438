# tasks/scheduler.py
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pymongo.database import Database
from storefront.services.cache_store import CacheStore
from storefront.services.cache_warming import warm_critical_caches

logger = logging.getLogger(__name__)


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler()

def schedule_jobs(scheduler: AsyncIOScheduler, db: Database, cache: CacheStore, interval_minutes: int = 30) -> None:
    # Keep the product listing and category tree warm
    scheduler.add_job(
        warm_caches,
        trigger=IntervalTrigger(minutes=interval_minutes),
        args=[db, cache],
        id="warm_critical_caches",
        replace_existing=True,
    )

async def warm_caches(db: Database, cache: CacheStore):
    logger.info("Warming critical caches")
    stats = await warm_critical_caches(db, cache)
    if stats["failed"]:
        logger.warning(f"Scheduled cache warmup incomplete: {stats}")
