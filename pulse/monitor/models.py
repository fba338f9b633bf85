"""
Monitor Models

Data models for checks, ping outcomes, and status summaries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CheckStatus(str, Enum):
    """Status of a check."""

    NEW = "new"  # Created, never pinged
    UP = "up"
    DOWN = "down"  # Deadline passed without a ping
    FAILED = "failed"  # Explicit failure reported by an operator or the job
    MAINTENANCE = "maintenance"  # Evaluation and pings suspended


class PingOutcome(str, Enum):
    """What happened to an inbound ping."""

    ACCEPTED = "accepted"
    IGNORED = "ignored"  # Check is in maintenance


class Check(BaseModel):
    """
    A monitored job.

    Timestamps are integer epoch seconds. Transition methods mutate the
    instance in place; the store persists the result inside the same
    transaction that read the row.
    """

    # Identity
    id: int
    token: str
    name: str

    # Schedule
    schedule: str
    grace: str

    # State
    status: CheckStatus = CheckStatus.NEW
    last_ping_at: int | None = None
    last_ping_duration_ms: int | None = None
    consecutive_down_count: int = 0
    last_error: str | None = None
    created_at: int

    @classmethod
    def from_row(cls, row: Any) -> Check:
        """Build a check from a database row."""
        return cls(
            id=row["id"],
            token=row["token"],
            name=row["name"],
            schedule=row["schedule"],
            grace=row["grace"],
            status=CheckStatus(row["status"]),
            last_ping_at=row["last_ping_at"],
            last_ping_duration_ms=row["last_ping_duration_ms"],
            consecutive_down_count=row["consecutive_down_count"],
            last_error=row["last_error"],
            created_at=row["created_at"],
        )

    @property
    def has_ping_history(self) -> bool:
        """Whether the check has ever been pinged or failed."""
        return bool(self.last_ping_at)

    @property
    def is_in_maintenance(self) -> bool:
        return self.status == CheckStatus.MAINTENANCE

    def accept_ping(self, now: int, duration_ms: int | None = None) -> None:
        """Record a successful ping."""
        self.status = CheckStatus.UP
        self.last_ping_at = now
        self.last_ping_duration_ms = duration_ms
        self.consecutive_down_count = 0
        self.last_error = None

    def mark_down(self) -> None:
        """Record a deadline breach."""
        self.status = CheckStatus.DOWN
        self.consecutive_down_count += 1

    def mark_failed(self, now: int, reason: str | None = None) -> None:
        """Record an explicit failure. Applies from any status."""
        self.status = CheckStatus.FAILED
        self.last_ping_at = now
        self.last_error = reason
        self.consecutive_down_count = 0

    def toggle_maintenance(self) -> None:
        """Enter maintenance, or leave it without inventing a ping history."""
        if self.status == CheckStatus.MAINTENANCE:
            self.status = CheckStatus.UP if self.has_ping_history else CheckStatus.NEW
        else:
            self.status = CheckStatus.MAINTENANCE


class PingResult(BaseModel):
    """Result of recording a ping."""

    outcome: PingOutcome
    check: Check

    @property
    def accepted(self) -> bool:
        return self.outcome == PingOutcome.ACCEPTED


class DownCheck(BaseModel):
    """A check listed in a summary because it is down."""

    name: str
    token: str
    last_ping_at: int | None = None

    @property
    def last_ping_datetime(self) -> datetime | None:
        if not self.last_ping_at:
            return None
        return datetime.fromtimestamp(self.last_ping_at, tz=timezone.utc)


class StatusSummary(BaseModel):
    """Snapshot of all checks handed to a delivery channel."""

    total: int
    counts: dict[CheckStatus, int]
    down: list[DownCheck] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_checks(cls, checks: list[Check]) -> StatusSummary:
        """Partition checks by status."""
        counts = {status: 0 for status in CheckStatus}
        for check in checks:
            counts[check.status] += 1

        down = [
            DownCheck(name=c.name, token=c.token, last_ping_at=c.last_ping_at)
            for c in sorted(checks, key=lambda c: c.name)
            if c.status == CheckStatus.DOWN
        ]
        return cls(total=len(checks), counts=counts, down=down)

    @property
    def all_up(self) -> bool:
        return not self.down

    def headline(self) -> str:
        """One-line description, e.g. '5 checks: 1 DOWN, 3 UP, 1 MAINT'."""
        return (
            f"{self.total} checks: "
            f"{self.counts[CheckStatus.DOWN]} DOWN, "
            f"{self.counts[CheckStatus.UP]} UP, "
            f"{self.counts[CheckStatus.MAINTENANCE]} MAINT"
        )


class CycleReport(BaseModel):
    """Outcome of one status engine cycle."""

    evaluated: int = 0
    transitioned: int = 0
    failed: int = 0
    interrupted: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0
