"""Startup and shutdown hooks.

Startup order: check the database, create the schema, build the ingestion
service, start the scheduler. Without a database the app still serves
``/api/parse-test``, ``/api/stats`` and ``/health``; every endpoint that
needs storage fails or reports ``is_running: false``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from advanced_alchemy.extensions.litestar import base
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import text

from cs2logs.config.settings import Settings, get_settings
from cs2logs.server.plugins import assembler, classifier, sqlalchemy_config
from cs2logs.server.scheduler import create_scheduler
from cs2logs.services.ingestion import LogIngestionService

# Registers every model on the shared metadata before create_all
import cs2logs.domain  # noqa: F401

if TYPE_CHECKING:
    from litestar import Litestar

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 10.0


async def _ping_database() -> None:
    async with sqlalchemy_config.get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def database_reachable(timeout: float = CONNECT_TIMEOUT_SECONDS) -> bool:
    """Run ``SELECT 1`` against the configured engine within ``timeout`` seconds."""
    try:
        await asyncio.wait_for(_ping_database(), timeout=timeout)
    except Exception as e:
        logger.warning("Database unavailable at startup: %s", e)
        return False
    return True


async def create_schema(settings: Settings) -> None:
    """Create all tables, dropping them first when ``DB_DROP_ON_STARTUP`` is set."""
    metadata = base.DefaultBase.metadata
    async with sqlalchemy_config.get_engine().begin() as conn:
        if settings.database.drop_on_startup:
            logger.warning("DB_DROP_ON_STARTUP is set: dropping %d table(s)", len(metadata.tables))
            await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)
    logger.info("Database schema ready (%s)", ", ".join(sorted(metadata.tables)))


async def on_startup(app: "Litestar") -> None:
    if not await database_reachable():
        logger.warning("Starting in degraded mode: ingestion, log browsing and scheduled jobs are disabled")
        return

    settings = get_settings()
    await create_schema(settings)

    ingestion_service = LogIngestionService(classifier=classifier, assembler=assembler)
    scheduler = create_scheduler(sqlalchemy_config.create_session_maker(), settings, ingestion_service)
    scheduler.start()
    logger.info("Scheduler started with %d job(s)", len(scheduler.get_jobs()))

    app.state.ingestion_service = ingestion_service
    app.state.scheduler = scheduler


async def on_shutdown(app: "Litestar") -> None:
    scheduler: AsyncIOScheduler | None = getattr(app.state, "scheduler", None)
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
