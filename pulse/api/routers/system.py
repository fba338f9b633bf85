"""System router - health checks and public configuration."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pulse.api.deps import get_monitor
from pulse.runtime import Monitor


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    scheduler_running: bool
    notifications_enabled: bool


class ConfigResponse(BaseModel):
    """Public configuration for the UI."""

    app_title: str


@router.get("/health", response_model=HealthResponse)
async def health_check(monitor: Monitor = Depends(get_monitor)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="operational",
        version=monitor.settings.version,
        timestamp=datetime.now(timezone.utc).isoformat(),
        scheduler_running=monitor.scheduler.is_running,
        notifications_enabled=monitor.scheduler.notifications_enabled,
    )


@router.get("/config", response_model=ConfigResponse)
async def public_config(monitor: Monitor = Depends(get_monitor)) -> ConfigResponse:
    """Get the configuration the UI needs."""
    return ConfigResponse(app_title=monitor.settings.app_title)
