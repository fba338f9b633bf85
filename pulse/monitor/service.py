"""
Check Service

Caller-facing operations: ping ingestion and administrative changes.

Every operation is one store transaction. Side effects (metrics, list cache
invalidation) run only after the transaction commits. Errors propagate to
the caller: CheckNotFoundError for unknown tokens, StorageError for failed
reads or writes.
"""

from __future__ import annotations

from typing import Any

import structlog

from pulse.monitor.cache import ListCache
from pulse.monitor.clock import Clock, epoch_seconds, system_clock
from pulse.monitor.metrics import CheckMetrics
from pulse.monitor.models import Check, PingOutcome, PingResult
from pulse.monitor.store import CheckStore

logger = structlog.get_logger(__name__)


class CheckService:
    """
    Records pings and applies administrative changes to checks.

    The caller is assumed to be authorized; authorization lives in the
    API layer.
    """

    def __init__(
        self,
        store: CheckStore,
        metrics: CheckMetrics,
        cache: ListCache | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Check store
            metrics: Metrics collaborator notified of every change
            cache: List cache to invalidate on every change
            clock: Source of the current time (epoch seconds)
        """
        self.store = store
        self.metrics = metrics
        self.cache = cache if cache is not None else ListCache()
        self.clock = clock

    def _changed(self, check: Check) -> None:
        self.metrics.update_status(check)
        self.cache.invalidate()

    # Ping ingestion

    async def record_ping(self, token: str, duration_ms: int | None = None) -> PingResult:
        """
        Record a liveness ping.

        A check in maintenance acknowledges the ping but nothing is written.
        The maintenance test and the write happen in the same transaction.

        Args:
            token: Public token of the check
            duration_ms: Optional reported job duration

        Returns:
            PingResult with the outcome and the check as stored
        """
        def apply(check: Check) -> bool:
            if check.is_in_maintenance:
                return False
            # Read under the write lock so the timestamp matches the write
            check.accept_ping(epoch_seconds(self.clock), duration_ms)
            return True

        check, written = await self.store.update_by_token(token, apply)

        if not written:
            logger.debug("Ping ignored, check in maintenance", token=token, check_id=check.id)
            return PingResult(outcome=PingOutcome.IGNORED, check=check)

        self._changed(check)
        logger.debug("Ping recorded", token=token, check_id=check.id, duration_ms=duration_ms)
        return PingResult(outcome=PingOutcome.ACCEPTED, check=check)

    # Administrative operations

    async def create(self, name: str, schedule: str, grace: str) -> Check:
        """Create a new check in status 'new'."""
        check = await self.store.create(
            name=name,
            schedule=schedule,
            grace=grace,
            created_at=epoch_seconds(self.clock),
        )
        self._changed(check)
        logger.info("Check created", check_id=check.id, name=check.name, token=check.token)
        return check

    async def delete(self, token: str) -> Check:
        """
        Delete a check.

        Deleting the same token twice raises CheckNotFoundError the second time.
        """
        check = await self.store.delete(token)
        self.metrics.remove_status(check)
        self.cache.invalidate()
        logger.info("Check deleted", check_id=check.id, name=check.name, token=token)
        return check

    async def toggle_maintenance(self, token: str) -> Check:
        """Enter or leave maintenance mode."""

        def apply(check: Check) -> bool:
            check.toggle_maintenance()
            return True

        check, _ = await self.store.update_by_token(token, apply)
        self._changed(check)
        logger.info("Maintenance toggled", check_id=check.id, name=check.name, status=check.status.value)
        return check

    async def record_failure(self, token: str, reason: str | None = None) -> Check:
        """Mark a check failed. Overrides maintenance."""
        def apply(check: Check) -> bool:
            check.mark_failed(epoch_seconds(self.clock), reason)
            return True

        check, _ = await self.store.update_by_token(token, apply)
        self._changed(check)
        logger.info("Failure recorded", check_id=check.id, name=check.name, reason=reason)
        return check

    # Reads

    async def get(self, token: str) -> Check:
        return await self.store.get_by_token(token)

    async def list_checks(self, page: int = 1, limit: int = 20) -> dict[str, Any]:
        """
        List checks by name, paginated, through the list cache.

        Returns:
            {"checks": [...], "meta": {"total", "page", "limit", "total_pages"}}
        """
        page = max(page, 1)
        limit = max(limit, 1)
        key = ListCache.build_key(page, limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        checks, total = await self.store.list_page(page=page, limit=limit)
        result = {
            "checks": checks,
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": -(-total // limit),
            },
        }
        self.cache.set(key, result)
        return result
