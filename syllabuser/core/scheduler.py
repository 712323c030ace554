"""APScheduler configuration for exam session housekeeping."""

import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from syllabuser.core.config import settings
from syllabuser.services.exam_session import ExamSessionRegistry

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def purge_finished_sessions_job(registry: ExamSessionRegistry) -> int:
    """Drop finished and closed exam sessions past the retention window."""
    try:
        return await registry.purge_finished(
            timedelta(minutes=settings.FINISHED_SESSION_RETENTION_MINUTES)
        )
    except Exception as e:
        logger.exception(f"Error purging exam sessions: {e}")
        return 0


def init_scheduler(registry: ExamSessionRegistry) -> AsyncIOScheduler:
    """Initialize and configure the scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler(
        timezone=settings.SCHEDULER_TIMEZONE,
        job_defaults={
            "coalesce": True,  # Combine missed runs
            "max_instances": 1,
            "misfire_grace_time": 300,
        },
    )

    scheduler.add_job(
        purge_finished_sessions_job,
        trigger=IntervalTrigger(minutes=settings.SESSION_PURGE_INTERVAL_MINUTES),
        args=[registry],
        id="purge_finished_sessions",
        name="Purge finished exam sessions",
        replace_existing=True,
    )

    logger.info(
        f"Scheduler initialized; purging exam sessions every {settings.SESSION_PURGE_INTERVAL_MINUTES} min"
    )
    return scheduler


def start_scheduler(registry: ExamSessionRegistry) -> None:
    """Start the scheduler."""
    global scheduler
    if scheduler is None:
        scheduler = init_scheduler(registry)

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler() -> None:
    """Stop the scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    scheduler = None
