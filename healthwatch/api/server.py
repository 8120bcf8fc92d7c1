"""FastAPI server exposing the health panel."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from healthwatch.api.health_routes import health_router
from healthwatch.config import settings
from healthwatch.health.scheduler import HealthScheduler, should_schedule
from healthwatch.health.service import HealthService, build_service

logger = logging.getLogger(__name__)


def create_app(service: HealthService | None = None) -> FastAPI:
    """Build the app; ``service`` overrides the one wired from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        health_service = service or build_service()
        app.state.health_service = health_service
        logger.info("Health service ready: %d resources", len(health_service.store.definitions))

        scheduler = None
        if should_schedule(settings):
            scheduler = HealthScheduler(health_service, interval_seconds=settings.scheduler_interval_seconds)
            try:
                await scheduler.start()
            except Exception:
                logger.exception("Health scheduler failed to start")
        app.state.health_scheduler = scheduler

        yield

        if scheduler is not None:
            await scheduler.stop()

    app = FastAPI(title="healthwatch", lifespan=lifespan)
    app.include_router(health_router, prefix="/api")
    return app
