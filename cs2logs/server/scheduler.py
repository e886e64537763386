"""APScheduler configuration and scheduled job definitions.

This module configures the AsyncIOScheduler from APScheduler 3.x and defines
the periodic maintenance jobs of the ingestion pipeline.

Jobs create their own database sessions to avoid shared state issues.
"""

from __future__ import annotations

import logging
from datetime import timezone
from typing import TYPE_CHECKING, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cs2logs.config.settings import Settings
    from cs2logs.services.ingestion import LogIngestionService, RoundStatsAssembler

logger = logging.getLogger(__name__)


async def buffer_cleanup_job(
    assembler: "RoundStatsAssembler",
    max_age_seconds: int,
) -> int:
    """Discard round statistics blocks whose closing line never arrived.

    Args:
        assembler: Shared round statistics assembler.
        max_age_seconds: Age after which an open block is dropped.
    """
    dropped = assembler.cleanup(max_age_seconds)
    logger.debug("Buffer cleanup dropped %d block(s)", dropped)
    return dropped


async def reparse_failed_job(
    session_factory: "Callable[[], AsyncSession]",
    ingestion_service: "LogIngestionService",
    batch_size: int,
    max_retries: int,
) -> None:
    """Re-classify unresolved failed parses.

    Args:
        session_factory: SQLAlchemy async session factory.
        ingestion_service: Service holding the shared classifier.
        batch_size: Maximum failures handled per run.
        max_retries: Failures with this many attempts are skipped.
    """
    async with session_factory() as session:
        result = await ingestion_service.reparse_failed(
            session,
            batch_size=batch_size,
            max_retries=max_retries,
        )
        await session.commit()

    logger.info(
        "Reparse run: %d resolved, %d still failing",
        result.resolved,
        result.still_failing,
    )


def create_scheduler(
    session_factory: "Callable[[], AsyncSession]",
    settings: "Settings",
    ingestion_service: "LogIngestionService",
) -> AsyncIOScheduler:
    """Create and configure the APScheduler instance.

    Args:
        session_factory: SQLAlchemy async session factory for creating job sessions.
        settings: Application settings for job configuration.
        ingestion_service: Service whose assembler and classifier the jobs use.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    scheduler = AsyncIOScheduler(timezone=timezone.utc)

    if not settings.scheduler.enabled:
        logger.info("Scheduler disabled via settings")
        return scheduler

    scheduler.add_job(
        buffer_cleanup_job,
        IntervalTrigger(minutes=settings.scheduler.buffer_cleanup_interval_minutes),
        id="buffer-cleanup",
        name="Drop stale round statistics buffers",
        args=[ingestion_service.assembler, settings.logparser.stats_buffer_max_age_seconds],
        replace_existing=True,
    )
    logger.info(
        "Scheduled buffer cleanup every %d minute(s)",
        settings.scheduler.buffer_cleanup_interval_minutes,
    )

    scheduler.add_job(
        reparse_failed_job,
        IntervalTrigger(minutes=settings.scheduler.reparse_interval_minutes),
        id="reparse-failed",
        name="Re-classify failed parses",
        args=[
            session_factory,
            ingestion_service,
            settings.scheduler.reparse_batch_size,
            settings.scheduler.reparse_max_retries,
        ],
        replace_existing=True,
    )
    logger.info(
        "Scheduled failed-parse reparse every %d minute(s)",
        settings.scheduler.reparse_interval_minutes,
    )

    return scheduler
