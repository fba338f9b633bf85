"""Pulse API - FastAPI Application."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pulse.api.routers import checks_router, metrics_router, ping_router, system_router
from pulse.config import Settings
from pulse.monitor import CheckNotFoundError, StorageError
from pulse.runtime import Monitor

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    monitor: Monitor | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (read from the environment if None)
        monitor: Prebuilt components (built from settings if None)
        start_scheduler: Run the status engine and notifier in the background
    """
    settings = settings or (monitor.settings if monitor else Settings())
    monitor = monitor or Monitor(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        await monitor.start(run_scheduler=start_scheduler)
        logger.info("Pulse API started", title=settings.app_title, version=settings.version)
        yield
        # Shutdown
        await monitor.stop()
        logger.info("Pulse API stopped")

    app = FastAPI(
        title=settings.app_title,
        description="Heartbeat monitoring for scheduled jobs",
        version=settings.version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )
    app.state.monitor = monitor

    @app.exception_handler(CheckNotFoundError)
    async def check_not_found(request: Request, exc: CheckNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": "Check not found"})

    @app.exception_handler(StorageError)
    async def storage_failure(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=503,
            content={"message": "Storage temporarily unavailable, retry later"},
        )

    # Ping and metrics sit at the root so job scripts and scrapers get short URLs
    app.include_router(ping_router, tags=["Ping"])
    app.include_router(metrics_router, tags=["Metrics"])
    app.include_router(system_router, prefix=settings.api_prefix, tags=["System"])
    app.include_router(checks_router, prefix=settings.api_prefix, tags=["Checks"])

    return app
