"""Scheduler for the daily collection runs.

Two cron jobs on an APScheduler AsyncIOScheduler:

- collect_feeds: `collect_fresh()` at the configured UTC time
  (default 20:00 UTC = 05:00 KST)
- collect_courses: `collect_courses()` thirty minutes later

A failed run is logged and the scheduler keeps running; the next day's run is
the retry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.config.settings import Settings, get_settings
from src.core.exceptions import CollectionRunError
from src.orchestration.aggregator import CollectionOrchestrator, CollectionReport

logger = structlog.get_logger(__name__)

FEEDS_JOB_ID = "collect_feeds"
COURSES_JOB_ID = "collect_courses"
COURSES_OFFSET_MINUTES = 30


def offset_time(hour: int, minute: int, offset_minutes: int) -> tuple[int, int]:
    """(hour, minute) shifted by offset_minutes, wrapping at midnight."""
    total = (hour * 60 + minute + offset_minutes) % (24 * 60)
    return total // 60, total % 60


class Scheduler:
    """Runs the collection jobs on a daily cron schedule.

    Example:
        scheduler = Scheduler(container.orchestrator)
        await scheduler.start()

        summary = await scheduler.run_now("collect_feeds")

        await scheduler.stop()
    """

    def __init__(self, orchestrator: CollectionOrchestrator, settings: Optional[Settings] = None):
        self._orchestrator = orchestrator
        self._settings = settings or get_settings()
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self.last_results: dict[str, dict[str, Any]] = {}

        logger.info("scheduler_initialized")

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is currently running."""
        return self._is_running

    def _jobs(self) -> dict[str, Callable[[], Awaitable[CollectionReport]]]:
        return {
            FEEDS_JOB_ID: self._orchestrator.collect_fresh,
            COURSES_JOB_ID: self._orchestrator.collect_courses,
        }

    async def start(self) -> None:
        """Start APScheduler and register both collection jobs."""
        if self._is_running:
            logger.warning("scheduler_already_running")
            return

        logger.info("scheduler_starting")

        hour = self._settings.collection_cron_hour
        minute = self._settings.collection_cron_minute
        course_hour, course_minute = offset_time(hour, minute, COURSES_OFFSET_MINUTES)

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self._execute_job,
            trigger=CronTrigger(hour=hour, minute=minute, timezone="UTC"),
            id=FEEDS_JOB_ID,
            args=[FEEDS_JOB_ID],
            name="HoneyBee: collect feeds",
            replace_existing=True,
        )
        self._scheduler.add_job(
            self._execute_job,
            trigger=CronTrigger(hour=course_hour, minute=course_minute, timezone="UTC"),
            id=COURSES_JOB_ID,
            args=[COURSES_JOB_ID],
            name="HoneyBee: collect courses",
            replace_existing=True,
        )
        self._scheduler.start()

        self._is_running = True
        logger.info(
            "scheduler_started",
            feeds_at=f"{hour:02d}:{minute:02d} UTC",
            courses_at=f"{course_hour:02d}:{course_minute:02d} UTC",
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._is_running:
            logger.warning("scheduler_not_running")
            return

        logger.info("scheduler_stopping")

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._is_running = False
        logger.info("scheduler_stopped")

    async def _execute_job(self, job_id: str) -> Optional[dict[str, Any]]:
        """Run one collection job. Run-level failures are logged, not raised."""
        logger.info("job_execution_start", job_id=job_id)

        try:
            report = await self._jobs()[job_id]()
        except CollectionRunError as e:
            logger.error("job_execution_failed", job_id=job_id, error=str(e), error_type=type(e).__name__)
            self.last_results[job_id] = {"success": False, "error": str(e)}
            return None

        summary = report.summary()
        self.last_results[job_id] = {"success": True, **summary}
        logger.info(
            "job_execution_complete",
            job_id=job_id,
            total_articles=summary["total_articles"],
            sources_failed=summary["sources_failed"],
            duration_ms=summary["duration_ms"],
        )
        return summary

    async def run_now(self, job_id: str) -> Optional[dict[str, Any]]:
        """Run a job immediately, outside its schedule.

        Raises:
            KeyError: If job_id is not a known job.
        """
        if job_id not in self._jobs():
            raise KeyError(job_id)
        return await self._execute_job(job_id)

    def next_run_times(self) -> dict[str, Optional[datetime]]:
        if not self._scheduler:
            return {}
        return {job.id: job.next_run_time for job in self._scheduler.get_jobs()}

    def status(self) -> dict[str, Any]:
        return {
            "running": self._is_running,
            "jobs": {
                job_id: next_run.isoformat() if next_run else None
                for job_id, next_run in self.next_run_times().items()
            },
            "last_results": {
                job_id: {"success": r["success"], "error": r.get("error")}
                for job_id, r in self.last_results.items()
            },
        }
