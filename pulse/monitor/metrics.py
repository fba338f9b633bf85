"""
Check Metrics

Prometheus gauges mirroring the current state of every check.
"""

from __future__ import annotations

from typing import Iterable

import structlog
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    GCCollector,
    Gauge,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from pulse.monitor.models import Check, CheckStatus

logger = structlog.get_logger(__name__)

LABEL_NAMES = ["name", "token"]

STATUS_VALUES = {
    CheckStatus.DOWN: 0,
    CheckStatus.UP: 1,
    CheckStatus.NEW: 2,
    CheckStatus.MAINTENANCE: 3,
    CheckStatus.FAILED: 4,
}

# Reported for a status value this exporter does not know
UNKNOWN_STATUS_VALUE = 2


class CheckMetrics:
    """
    Exports per-check gauges on a dedicated registry.

    Called after every committed change to a check's status, ping
    timestamp, duration or down counter, and on deletion.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        include_process_metrics: bool = True,
    ) -> None:
        """
        Initialize the gauges.

        Args:
            registry: Registry to export on (a fresh one if None)
            include_process_metrics: Also export process, platform and GC metrics
        """
        self.registry = registry or CollectorRegistry()

        if include_process_metrics:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self.status = Gauge(
            "pulse_check_status",
            "Status of a configured check. 0=DOWN, 1=UP, 2=NEW, 3=MAINTENANCE, 4=FAILED.",
            LABEL_NAMES,
            registry=self.registry,
        )
        self.last_ping_timestamp = Gauge(
            "pulse_check_last_ping_timestamp_seconds",
            "The Unix timestamp of the last successful ping.",
            LABEL_NAMES,
            registry=self.registry,
        )
        self.last_ping_duration = Gauge(
            "pulse_check_last_ping_duration_ms",
            "The duration in milliseconds of the last reported job.",
            LABEL_NAMES,
            registry=self.registry,
        )
        self.consecutive_down_count = Gauge(
            "pulse_check_consecutive_down_count",
            "Number of consecutive times the check has been marked down.",
            LABEL_NAMES,
            registry=self.registry,
        )

    @property
    def _gauges(self) -> list[Gauge]:
        return [
            self.status,
            self.last_ping_timestamp,
            self.last_ping_duration,
            self.consecutive_down_count,
        ]

    def update_status(self, check: Check) -> None:
        """Set every gauge for a check."""
        labels = (check.name, check.token)

        self.status.labels(*labels).set(STATUS_VALUES.get(check.status, UNKNOWN_STATUS_VALUE))
        self.consecutive_down_count.labels(*labels).set(check.consecutive_down_count)

        if check.last_ping_at:
            self.last_ping_timestamp.labels(*labels).set(check.last_ping_at)
        if check.last_ping_duration_ms is not None:
            self.last_ping_duration.labels(*labels).set(check.last_ping_duration_ms)
        else:
            # Last ping reported no duration; drop the previous job's value
            try:
                self.last_ping_duration.remove(*labels)
            except KeyError:
                pass

    def remove_status(self, check: Check) -> None:
        """Drop every series for a deleted check."""
        labels = (check.name, check.token)
        for gauge in self._gauges:
            try:
                gauge.remove(*labels)
            except KeyError:
                # Series was never set (e.g. no ping duration reported)
                continue

    def hydrate(self, checks: Iterable[Check]) -> int:
        """Load gauges for all stored checks at startup."""
        count = 0
        for check in checks:
            self.update_status(check)
            count += 1
        logger.info("Metrics hydrated", checks=count)
        return count

    def render(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)
