"""
Ping Router

The public heartbeat endpoint jobs call on every run.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pulse.api.deps import get_service
from pulse.api.schemas import PingResponse
from pulse.monitor import CheckService

router = APIRouter()


def _parse_duration_ms(raw: str | None) -> int | None:
    """Read the optional duration parameter; anything unparseable is dropped."""
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdecimal():
        return None
    return int(raw)


@router.api_route(
    "/ping/{token}",
    methods=["GET", "POST"],
    response_model=PingResponse,
    response_model_exclude_none=True,
)
async def ping(
    token: str,
    duration: str | None = Query(default=None, description="Job duration in milliseconds"),
    service: CheckService = Depends(get_service),
) -> PingResponse:
    """
    Record a ping for a check.

    Returns "accepted", or "ignored" when the check is in maintenance.
    Unknown tokens get a 404.
    """
    result = await service.record_ping(token, _parse_duration_ms(duration))
    if result.accepted:
        return PingResponse(result=result.outcome.value)
    return PingResponse(result=result.outcome.value, reason="maintenance")
