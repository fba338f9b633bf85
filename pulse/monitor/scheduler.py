"""
Monitor Scheduler

APScheduler-based driver for the status engine and summary notifications.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from pulse.monitor.engine import StatusEngine
from pulse.monitor.notifier import SummaryNotifier

logger = structlog.get_logger(__name__)

ENGINE_JOB_ID = "status-engine"
SUMMARY_JOB_ID = "summary-notifier"


class MonitorScheduler:
    """
    Runs the status engine on a fixed interval and the notifier on a cron.

    The engine runs once immediately at start, then every
    ``evaluation_interval_seconds``. Both jobs are single-instance, and
    missed firings are coalesced into one.
    """

    def __init__(
        self,
        engine: StatusEngine,
        notifier: SummaryNotifier | None = None,
        notify_cron: str | None = None,
        cron_timezone: str = "UTC",
        evaluation_interval_seconds: int = 60,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            engine: Status engine to drive
            notifier: Summary notifier (None disables summaries)
            notify_cron: Five-field crontab expression for summaries
            cron_timezone: Timezone the cron expression is read in
            evaluation_interval_seconds: Status engine cadence
        """
        self.engine = engine
        self.notifier = notifier
        self.notify_cron = notify_cron
        self.cron_timezone = cron_timezone
        self.evaluation_interval_seconds = evaluation_interval_seconds
        self._scheduler: AsyncIOScheduler | None = None
        self._running = False

    def _create_scheduler(self) -> AsyncIOScheduler:
        """Create and configure the APScheduler instance."""
        jobstores = {
            "default": MemoryJobStore(),
        }
        executors = {
            "default": AsyncIOExecutor(),
        }
        job_defaults = {
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,  # Only one instance of each job at a time
            "misfire_grace_time": 30,
        }

        return AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone="UTC",
        )

    async def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self.engine.resume()
        self._scheduler = self._create_scheduler()

        self._scheduler.add_job(
            self.engine.run_cycle,
            trigger=IntervalTrigger(seconds=self.evaluation_interval_seconds),
            id=ENGINE_JOB_ID,
            name="status-engine",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
        )
        logger.info(
            "Status evaluation engine scheduled",
            interval_seconds=self.evaluation_interval_seconds,
        )

        self._schedule_notifier()

        self._scheduler.start()
        self._running = True
        logger.info("Monitor scheduler started")

    def _schedule_notifier(self) -> None:
        if self._scheduler is None:
            return

        if self.notifier is None or not self.notify_cron:
            logger.info("Summary notifications disabled (no webhook URL or schedule)")
            return

        try:
            trigger = CronTrigger.from_crontab(self.notify_cron, timezone=self.cron_timezone)
        except Exception as e:
            logger.error(
                "Invalid cron pattern for summaries, notifications disabled",
                pattern=self.notify_cron,
                timezone=self.cron_timezone,
                error=str(e),
            )
            return

        self._scheduler.add_job(
            self.notifier.send_summary,
            trigger=trigger,
            id=SUMMARY_JOB_ID,
            name="summary-notifier",
            replace_existing=True,
        )
        logger.info(
            "Summary notifications scheduled",
            pattern=self.notify_cron,
            timezone=self.cron_timezone,
        )

    async def stop(self) -> None:
        """Stop scheduling and let an in-flight engine cycle finish its current check."""
        if not self._running or self._scheduler is None:
            return

        logger.info("Stopping monitor scheduler")
        # Drain the engine first; executor shutdown cancels in-flight jobs
        await self.engine.stop()
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._running = False
        logger.info("Monitor scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    @property
    def notifications_enabled(self) -> bool:
        if self._scheduler is None:
            return False
        return self._scheduler.get_job(SUMMARY_JOB_ID) is not None

    def get_next_run_times(self) -> dict[str, datetime | None]:
        """Get next scheduled run time for each job."""
        if self._scheduler is None:
            return {}
        return {job.id: job.next_run_time for job in self._scheduler.get_jobs()}
