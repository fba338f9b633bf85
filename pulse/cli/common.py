"""Helpers shared by CLI commands."""

from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator

import typer
from rich.console import Console

from pulse.config import Settings
from pulse.monitor import CheckNotFoundError, StorageError, SummaryDelivery
from pulse.runtime import Monitor

console = Console()


def get_settings(ctx: typer.Context) -> Settings:
    """Get the settings built by the root callback."""
    settings = ctx.find_object(Settings)
    return settings if settings is not None else Settings()


@asynccontextmanager
async def open_monitor(
    settings: Settings,
    delivery: SummaryDelivery | None = None,
) -> AsyncIterator[Monitor]:
    """Open the store for a one-off command, without background jobs."""
    monitor = Monitor(settings, delivery=delivery)
    await monitor.start(run_scheduler=False)
    try:
        yield monitor
    finally:
        await monitor.stop()


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn monitor errors into messages and exit codes (1 not found, 2 storage)."""
    try:
        yield
    except CheckNotFoundError as e:
        console.print(f"[red]Check not found: {e.key}[/red]")
        raise typer.Exit(1)
    except StorageError as e:
        console.print(f"[red]Storage error: {e}[/red]")
        raise typer.Exit(2)
