"""
API Schemas

Pydantic models for API requests and responses.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from pulse.monitor import Check


class CheckCreate(BaseModel):
    """Request to create a check."""

    name: str = Field(..., min_length=1, description="Human readable label")
    schedule: str = Field(..., min_length=1, description="Expected interval between pings, e.g. 10m")
    grace: str = Field(..., min_length=1, description="Extra delay allowed before the check is down, e.g. 2m")


class FailureReport(BaseModel):
    """Request to mark a check failed."""

    reason: str | None = None


class CheckResponse(BaseModel):
    """A check as returned by the API."""

    id: int
    token: str
    name: str
    schedule: str
    grace: str
    status: str
    last_ping_at: int | None
    last_ping_duration_ms: int | None
    consecutive_down_count: int
    last_error: str | None
    created_at: int

    @classmethod
    def from_check(cls, check: Check) -> CheckResponse:
        return cls(
            id=check.id,
            token=check.token,
            name=check.name,
            schedule=check.schedule,
            grace=check.grace,
            status=check.status.value,
            last_ping_at=check.last_ping_at,
            last_ping_duration_ms=check.last_ping_duration_ms,
            consecutive_down_count=check.consecutive_down_count,
            last_error=check.last_error,
            created_at=check.created_at,
        )


class PageMeta(BaseModel):
    """Pagination details."""

    total: int
    page: int
    limit: int
    total_pages: int


class CheckListResponse(BaseModel):
    """Paginated list of checks."""

    checks: list[CheckResponse]
    meta: PageMeta


class PingResponse(BaseModel):
    """Result of a ping."""

    result: str  # accepted or ignored
    reason: str | None = None
