"""Periodic allocation jobs with APScheduler.

Jobs:
- batch allocation of unassigned leads every BATCH_INTERVAL_MINUTES
- nightly reset of the workers' daily load counters
"""

from __future__ import annotations

import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from leadrouter.adapters.persistence.database import async_session_factory
from leadrouter.adapters.persistence.repositories import SqlWorkerRepository
from leadrouter.config import settings
from leadrouter.domain.errors import NoActiveWorkers

logger = logging.getLogger(__name__)

BATCH_JOB_ID = "allocation_batch"
RESET_JOB_ID = "daily_load_reset"


class AllocationScheduler:
    def __init__(self):
        self.scheduler = AsyncIOScheduler(
            timezone=settings.scheduler_timezone,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 300,
            },
        )
        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self._is_running = False

    def _on_job_executed(self, event: JobExecutionEvent):
        logger.debug("Job executed: %s", event.job_id)

    def _on_job_error(self, event: JobExecutionEvent):
        logger.error("Job %s failed: %s", event.job_id, event.exception, exc_info=event.exception)

    def start(self):
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        self._register_jobs()
        self.scheduler.start()
        self._is_running = True
        logger.info("Scheduler started")

    def stop(self):
        if not self._is_running:
            return

        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("Scheduler stopped")

    def _register_jobs(self):
        self.scheduler.add_job(
            run_allocation_batch,
            IntervalTrigger(minutes=settings.batch_interval_minutes),
            id=BATCH_JOB_ID,
            name="Allocate unassigned leads",
            replace_existing=True,
        )
        self.scheduler.add_job(
            reset_daily_loads,
            CronTrigger(hour=settings.daily_reset_hour, minute=0),
            id=RESET_JOB_ID,
            name="Reset daily lead counters",
            replace_existing=True,
        )
        logger.info(
            "Jobs registered: batch every %d min, daily reset at %02d:00",
            settings.batch_interval_minutes, settings.daily_reset_hour,
        )

    def list_jobs(self) -> list[dict]:
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in self.scheduler.get_jobs()
        ]


async def run_allocation_batch(limit: int | None = None):
    """One scheduled batch pass; returns the summary or None if nobody is active."""
    from leadrouter.infrastructure.api.dependencies import build_allocation_engine

    async with async_session_factory() as session:
        engine = build_allocation_engine(session)
        try:
            return await engine.run_batch(limit or settings.allocation_batch_limit)
        except NoActiveWorkers:
            logger.warning("Scheduled batch skipped: no active sales workers")
            return None


async def reset_daily_loads() -> int:
    async with async_session_factory() as session:
        count = await SqlWorkerRepository(session).reset_daily_loads()
        await session.commit()
    logger.info("Daily lead counters reset for %d workers", count)
    return count


allocation_scheduler = AllocationScheduler()
