"""
Monitoring Core

Heartbeat monitoring for scheduled jobs.

Provides:
- Check definitions and state transitions
- Deadline evaluation and the periodic status engine
- Ping ingestion and administrative operations
- Prometheus metrics and summary notifications
"""

from pulse.monitor.models import (
    Check,
    CheckStatus,
    CycleReport,
    DownCheck,
    PingOutcome,
    PingResult,
    StatusSummary,
)
from pulse.monitor.errors import (
    CheckNotFoundError,
    DeliveryError,
    MonitorError,
    StorageError,
)
from pulse.monitor.duration import (
    format_duration,
    parse_duration,
)
from pulse.monitor.deadline import (
    compute_deadline,
    is_overdue,
    reference_time,
)
from pulse.monitor.cache import ListCache
from pulse.monitor.store import CheckStore
from pulse.monitor.metrics import CheckMetrics
from pulse.monitor.service import CheckService
from pulse.monitor.engine import StatusEngine
from pulse.monitor.notifier import (
    ConsoleDelivery,
    SummaryDelivery,
    SummaryNotifier,
    WebhookDelivery,
)
from pulse.monitor.scheduler import MonitorScheduler

__all__ = [
    # Models
    "Check",
    "CheckStatus",
    "CycleReport",
    "DownCheck",
    "PingOutcome",
    "PingResult",
    "StatusSummary",
    # Errors
    "CheckNotFoundError",
    "DeliveryError",
    "MonitorError",
    "StorageError",
    # Durations and deadlines
    "format_duration",
    "parse_duration",
    "compute_deadline",
    "is_overdue",
    "reference_time",
    # Store
    "CheckStore",
    "ListCache",
    # Services
    "CheckMetrics",
    "CheckService",
    "StatusEngine",
    # Notifications
    "ConsoleDelivery",
    "SummaryDelivery",
    "SummaryNotifier",
    "WebhookDelivery",
    "MonitorScheduler",
]
