"""APScheduler driver for the price tracking pass.

A single interval job runs PriceTracker.run_tracking_pass. max_instances=1
keeps two passes from overlapping when one runs longer than the interval;
failures are logged and never stop the scheduler.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional, Set

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.job import Job

from pricewatch.config import settings
from pricewatch.services.price_tracker import PriceTracker

logger = structlog.get_logger(__name__)

TRACKING_JOB_ID = "price_tracking_pass"


class PriceTrackingScheduler:
    """Owns the tracking job and manually triggered passes."""

    def __init__(self, tracker: PriceTracker, interval_minutes: Optional[int] = None):
        """
        Args:
            tracker: PriceTracker that performs the actual pass
            interval_minutes: Minutes between passes (TRACKING_INTERVAL_MINUTES by default)
        """
        self.tracker = tracker
        self.interval_minutes = interval_minutes or settings.TRACKING_INTERVAL_MINUTES
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.logger = logger.bind(service="tracking_scheduler")
        self._manual_tasks: Set[asyncio.Task] = set()

    def start(self) -> Optional[Job]:
        """Start the scheduler and register the tracking job."""
        self.tracker.resume()
        if self.scheduler.running:
            self.logger.warning("scheduler_already_running")
            return self.scheduler.get_job(TRACKING_JOB_ID)

        job = self.scheduler.add_job(
            func=self._run_pass_wrapper,
            trigger=IntervalTrigger(
                minutes=self.interval_minutes,
                start_date=datetime.now(timezone.utc),
                timezone="UTC",
            ),
            id=TRACKING_JOB_ID,
            name="Price tracking pass",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        self.logger.info(
            "scheduler_started",
            interval_minutes=self.interval_minutes,
            next_run=job.next_run_time.isoformat() if job.next_run_time else None,
        )
        return job

    async def stop(self, drain_timeout: Optional[float] = 10.0) -> None:
        """Stop scheduling, let the running pass finish its product, flush emails."""
        self.tracker.request_stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            self.logger.info("scheduler_stopped")
        if self._manual_tasks:
            await asyncio.wait(set(self._manual_tasks), timeout=drain_timeout)
        await self.tracker.drain(timeout=drain_timeout)

    async def _run_pass_wrapper(self) -> None:
        """What APScheduler (and manual triggers) call. Never raises."""
        try:
            await self.tracker.run_tracking_pass()
        except Exception as e:
            self.logger.error("tracking_pass_failed", error=str(e), exc_info=True)

    def trigger_now(self) -> bool:
        """Start a pass in the background.

        Returns:
            False when a pass is already running and nothing was started
        """
        if self.tracker.is_pass_running:
            self.logger.info("manual_trigger_ignored_pass_running")
            return False
        task = asyncio.create_task(self._run_pass_wrapper())
        self._manual_tasks.add(task)
        task.add_done_callback(self._manual_tasks.discard)
        self.logger.info("manual_trigger_started")
        return True

    def get_jobs_status(self) -> dict:
        job = self.scheduler.get_job(TRACKING_JOB_ID)
        tracker = self.tracker
        return {
            "job_id": TRACKING_JOB_ID if job else None,
            "next_run": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "trigger": str(job.trigger) if job else None,
            "pass_running": tracker.is_pass_running,
            "last_pass_started_at": (
                tracker.last_pass_started_at.isoformat() if tracker.last_pass_started_at else None
            ),
            "last_pass_stats": tracker.last_pass_stats,
            "pending_emails": tracker.pending_emails,
        }

    def is_running(self) -> bool:
        return self.scheduler.running


_scheduler: Optional[PriceTrackingScheduler] = None


def get_tracking_scheduler() -> PriceTrackingScheduler:
    """Get the global scheduler wrapping the global PriceTracker."""
    global _scheduler
    if _scheduler is None:
        from pricewatch.services.price_tracker import get_price_tracker

        _scheduler = PriceTrackingScheduler(get_price_tracker())
    return _scheduler
