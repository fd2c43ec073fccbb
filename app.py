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
from infrastructure.geo import build_geo_locator
from repositories.factory import build_repositories
from routes.analytics_routes import router as analytics_router
from routes.health_routes import router as health_router
from routes.track_routes import router as track_router
from services.container import build_services
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: Optional[AsyncMongoClient] = None
        db = None
        if settings.analytics.storage_backend == "mongo":
            mongo_client = AsyncMongoClient(settings.db.mongodb_uri, tz_aware=True)
            db = mongo_client[settings.db.db_name]

        repositories = build_repositories(settings.analytics, db)
        geo_locator = build_geo_locator(settings.analytics)
        services = build_services(settings.analytics, repositories, geo_locator)

        await repositories.event_store.ensure_indexes()

        app.state.mongo_client = mongo_client
        app.state.settings = settings
        app.state.services = services

        log.info(
            "app_started",
            storage_backend=settings.analytics.storage_backend,
            geo_provider=settings.analytics.geo_provider,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await geo_locator.aclose()
        if mongo_client is not None:
            await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # all origins allowed with credentials support.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(track_router)
    app.include_router(analytics_router)

    return app
