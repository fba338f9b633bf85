"""
Status Engine

Periodic re-evaluation of every check against its deadline.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import structlog

from pulse.monitor.cache import ListCache
from pulse.monitor.clock import Clock, epoch_millis, system_clock
from pulse.monitor.deadline import is_overdue, reference_time
from pulse.monitor.errors import CheckNotFoundError
from pulse.monitor.metrics import CheckMetrics
from pulse.monitor.models import Check, CheckStatus, CycleReport
from pulse.monitor.store import CheckStore

logger = structlog.get_logger(__name__)


class StatusEngine:
    """
    Marks checks down when their deadline passes.

    A cycle only ever writes on a transition into 'down'. Checks already
    down are left alone (the down counter counts transitions, not cycles),
    and healthy checks are never written. Running a cycle twice in a row
    therefore changes nothing the second time.

    Cycles never raise. A failure on one check is logged and the rest of
    the batch is still evaluated; the next cycle retries it.
    """

    def __init__(
        self,
        store: CheckStore,
        metrics: CheckMetrics,
        cache: ListCache | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Check store
            metrics: Metrics collaborator notified of every transition
            cache: List cache to invalidate on every transition
            clock: Source of the current time (epoch seconds)
        """
        self.store = store
        self.metrics = metrics
        self.cache = cache
        self.clock = clock
        self._cycle_lock = asyncio.Lock()
        self._stopping = False

    async def run_cycle(self) -> CycleReport:
        """
        Evaluate every check not in maintenance.

        Returns:
            Counts of evaluated, transitioned and failed checks
        """
        async with self._cycle_lock:
            report = CycleReport()
            started = time.monotonic()

            try:
                # Maintenance checks are filtered by the query and never reach the loop
                checks = await self.store.list_all(exclude_maintenance=True)
            except Exception as e:
                logger.error("Failed to load checks for evaluation", error=str(e))
                report.duration_seconds = time.monotonic() - started
                return report

            now_ms = epoch_millis(self.clock)

            for check in checks:
                if self._stopping:
                    report.interrupted = True
                    break

                report.evaluated += 1
                if check.status == CheckStatus.DOWN or not is_overdue(check, now_ms):
                    continue

                try:
                    if await self._transition_down(check, now_ms):
                        report.transitioned += 1
                except Exception as e:
                    report.failed += 1
                    logger.error(
                        "Failed to evaluate check",
                        check_id=check.id,
                        name=check.name,
                        error=str(e),
                    )

            report.duration_seconds = time.monotonic() - started

        logger.info(
            "Status cycle finished",
            evaluated=report.evaluated,
            transitioned=report.transitioned,
            failed=report.failed,
            interrupted=report.interrupted,
        )
        return report

    async def _transition_down(self, check: Check, now_ms: int) -> bool:
        """
        Mark a check down, re-deciding against the row as it is now.

        The listing above may be stale by the time we get here: a ping, a
        maintenance toggle or a deletion can land in between. The decision
        is repeated inside the write transaction so the stored row only
        moves to 'down' if it is still overdue there.
        """

        def apply(fresh: Check) -> bool:
            if fresh.status in (CheckStatus.MAINTENANCE, CheckStatus.DOWN):
                return False
            if not is_overdue(fresh, now_ms):
                return False
            fresh.mark_down()
            return True

        try:
            updated, written = await self.store.update_by_id(check.id, apply)
        except CheckNotFoundError:
            logger.debug("Check deleted during evaluation", check_id=check.id)
            return False

        if not written:
            return False

        reference = reference_time(check)
        logger.warning(
            "Check is now DOWN",
            check_id=updated.id,
            name=updated.name,
            token=updated.token,
            last_event_at=(
                datetime.fromtimestamp(reference / 1000, tz=timezone.utc).isoformat()
                if reference else None
            ),
            consecutive_down_count=updated.consecutive_down_count,
        )

        self.metrics.update_status(updated)
        if self.cache is not None:
            self.cache.invalidate()
        return True

    async def stop(self) -> None:
        """
        Stop evaluating.

        Waits for an in-flight cycle to finish the check it is on; the rest
        of that batch is left to the next start.
        """
        self._stopping = True
        async with self._cycle_lock:
            pass
        logger.info("Status engine stopped")

    def resume(self) -> None:
        """Allow cycles to run again after stop()."""
        self._stopping = False

    @property
    def is_stopping(self) -> bool:
        return self._stopping
