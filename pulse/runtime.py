"""
Runtime Assembly

Builds the monitoring components once from Settings and wires them
together. The API lifespan and the CLI both go through here.
"""

from __future__ import annotations

import structlog
from prometheus_client import CollectorRegistry

from pulse.config import DEFAULT_ADMIN_SECRET, Settings
from pulse.monitor.cache import ListCache
from pulse.monitor.clock import Clock, system_clock
from pulse.monitor.engine import StatusEngine
from pulse.monitor.metrics import CheckMetrics
from pulse.monitor.notifier import SummaryDelivery, SummaryNotifier, WebhookDelivery
from pulse.monitor.scheduler import MonitorScheduler
from pulse.monitor.service import CheckService
from pulse.monitor.store import CheckStore

logger = structlog.get_logger(__name__)


class Monitor:
    """
    Owns the store and every component that shares it.

    Nothing here is global: build one Monitor per process (or per test)
    and pass its parts to whoever needs them.
    """

    def __init__(
        self,
        settings: Settings,
        clock: Clock = system_clock,
        delivery: SummaryDelivery | None = None,
        metrics_registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Build the components.

        Args:
            settings: Application settings
            clock: Source of the current time (epoch seconds)
            delivery: Summary delivery channel (a webhook from settings if None)
            metrics_registry: Prometheus registry (a private one if None)
        """
        self.settings = settings
        self.store = CheckStore(settings.database_path)
        self.cache = ListCache(ttl_seconds=settings.list_cache_ttl_seconds)
        self.metrics = CheckMetrics(registry=metrics_registry)
        self.service = CheckService(self.store, self.metrics, self.cache, clock)
        self.engine = StatusEngine(self.store, self.metrics, self.cache, clock)

        if delivery is None and settings.webhook_url:
            delivery = WebhookDelivery(
                url=settings.webhook_url,
                payload_format=settings.webhook_format,
                title=settings.app_title,
                timeout_seconds=settings.webhook_timeout_seconds,
            )
        self.delivery = delivery
        self.notifier = SummaryNotifier(self.store, delivery) if delivery else None

        self.scheduler = MonitorScheduler(
            engine=self.engine,
            notifier=self.notifier,
            notify_cron=settings.webhook_schedule or None,
            cron_timezone=settings.cron_timezone,
            evaluation_interval_seconds=settings.evaluation_interval_seconds,
        )

    async def start(self, run_scheduler: bool = True) -> None:
        """
        Open the store, hydrate metrics, and optionally start background jobs.

        Args:
            run_scheduler: Start the status engine and notifier jobs
        """
        if self.settings.admin_secret == DEFAULT_ADMIN_SECRET:
            logger.warning("Default admin secret in use, set PULSE_ADMIN_SECRET for production")

        self.store.open()
        self.metrics.hydrate(await self.store.list_all())

        if run_scheduler:
            await self.scheduler.start()

    async def stop(self) -> None:
        """Stop background jobs and release resources."""
        await self.scheduler.stop()
        if isinstance(self.delivery, WebhookDelivery):
            await self.delivery.close()
        self.store.close()
