# main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.concurrency import run_in_threadpool
import logging
import asyncio
import sys
from storefront.config import settings
from storefront.deps import create_mongo_client, create_cache_store
from storefront.logging_config import setup_logging
from storefront.middleware.error_handler import register_error_handlers
from storefront.repos.products import ensure_indexes as ensure_product_indexes
from storefront.repos.categories import ensure_indexes as ensure_category_indexes
from storefront.routers.health import router as health_router
from storefront.routers.products_route import products
from storefront.routers.categories_route import categories
from storefront.routers.cache_route import redis_status
from storefront.services.cache_warming import warm_critical_caches
from storefront.services.single_flight import SingleFlight
from storefront.tasks.scheduler import create_scheduler, schedule_jobs


# Setup logging
log_level = "DEBUG" if settings.DEBUG else "INFO"
log_file = "logs/app.log" if settings.ENVIRONMENT == "production" else None
setup_logging(log_level=log_level, log_file=log_file)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Catalog API",
        description="Product catalog with read-through Redis caching",
        version="1.0.0"
    )

    @app.on_event("startup")
    async def startup():
        try:
            logger.info("Starting application...")

            # Database connection
            try:
                app.state.mongo_client = create_mongo_client(settings.MONGO_URI)
                app.state.db = app.state.mongo_client.get_default_database()
                logger.info("MongoDB client created")
            except Exception as e:
                logger.error(f"Failed to connect to MongoDB: {str(e)}")
                sys.exit(1)

            # Cache: an unreachable Redis is not fatal, the store reconnects on use
            app.state.cache = create_cache_store(settings)
            app.state.single_flight = SingleFlight()
            if not await app.state.cache.connect():
                logger.warning("Redis unavailable at startup, serving without cache")

            # Database indexes
            try:
                await run_in_threadpool(ensure_product_indexes, app.state.db)
                await run_in_threadpool(ensure_category_indexes, app.state.db)
                logger.info("Database indexes ensured")
            except Exception as e:
                logger.error(f"Failed to ensure database indexes: {str(e)}")

            # Scheduler
            try:
                app.state.scheduler = create_scheduler()
                schedule_jobs(app.state.scheduler, app.state.db, app.state.cache,
                              interval_minutes=settings.CACHE_WARM_INTERVAL_MINUTES)
                app.state.scheduler.start()
                logger.info("Scheduler started")
            except Exception as e:
                logger.error(f"Failed to start scheduler: {str(e)}")

            # Initial warm-up
            task = asyncio.create_task(warm_critical_caches(app.state.db, app.state.cache))
            task.add_done_callback(lambda t: logger.error(f"Cache warming failed: {t.exception()}") if not t.cancelled() and t.exception() else None)

            logger.info("Application startup completed successfully")

        except Exception as e:
            logger.critical(f"Critical startup failure: {str(e)}")
            sys.exit(1)

    @app.on_event("shutdown")
    async def shutdown():
        logger.info("Starting application shutdown...")

        try:
            if hasattr(app.state, 'scheduler'):
                app.state.scheduler.shutdown(wait=False)
                logger.info("Scheduler shutdown completed")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {str(e)}")

        if hasattr(app.state, 'cache'):
            await app.state.cache.shutdown()

        try:
            if hasattr(app.state, 'mongo_client'):
                app.state.mongo_client.close()
                logger.info("MongoDB connection closed")
        except Exception as e:
            logger.error(f"Error closing MongoDB connection: {str(e)}")

        logger.info("Application shutdown completed")

    # Error handling middleware (should be first)
    register_error_handlers(app)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health_router)
    app.include_router(products.router)
    app.include_router(categories.router)
    app.include_router(redis_status.router)

    return app


app = create_app()
