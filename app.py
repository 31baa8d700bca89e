"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.export_store.memory import InMemoryExportStore
from infrastructure.export_store.redis_client import create_redis_client
from infrastructure.export_store.redis_store import RedisExportStore
from repositories.mongo_clicks import MongoClickEventStore
from repositories.mongo_links import MongoLinkRepository
from routes.export_routes import router as export_router
from routes.health_routes import router as health_router
from routes.stats_routes import router as stats_router
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri)
        db = mongo_client[settings.db.db_name]
        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.settings = settings

        click_store = MongoClickEventStore(db[settings.db.clicks_collection])
        await click_store.ensure_indexes()
        app.state.click_store = click_store
        app.state.link_repository = MongoLinkRepository(
            db[settings.db.links_collection]
        )

        # Redis is optional; without it exports live in process memory
        redis_client = None
        if settings.redis.redis_uri:
            redis_client = await create_redis_client(settings.redis.redis_uri)
        app.state.redis = redis_client
        if redis_client is not None:
            app.state.export_store = RedisExportStore(redis_client)
        else:
            app.state.export_store = InMemoryExportStore()

        log.info(
            "app_started",
            env=settings.env,
            db_name=settings.db.db_name,
            export_store=type(app.state.export_store).__name__,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(stats_router)
    app.include_router(export_router)

    return app
