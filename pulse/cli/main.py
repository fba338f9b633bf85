"""
Pulse CLI Main Entry Point

The main Typer application that assembles all command groups.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pulse import __version__
from pulse.cli.common import cli_errors, get_settings, open_monitor
from pulse.config import Settings
from pulse.log import configure_logging
from pulse.monitor import ConsoleDelivery

logger = structlog.get_logger(__name__)
console = Console()

# Create the main app
app = typer.Typer(
    name="pulse",
    help="Pulse - heartbeat monitoring for scheduled jobs",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(
            Panel(
                Text.from_markup(
                    f"[bold cyan]Pulse[/bold cyan] v{__version__}\n"
                    "[dim]Heartbeat monitoring for scheduled jobs[/dim]"
                ),
                title="Version",
                border_style="cyan",
            )
        )
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    database: Annotated[
        Optional[str],
        typer.Option(
            "--database",
            "-d",
            help="SQLite database path (overrides PULSE_DATABASE_PATH).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
) -> None:
    """
    Pulse - a dead-man's switch for cron jobs and workers.

    Jobs ping their check after every run; checks that miss their
    schedule plus grace period are marked down.
    """
    settings = Settings()
    if database:
        settings = settings.model_copy(update={"database_path": database})

    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)
    ctx.obj = settings


# Import and register sub-commands
from pulse.cli.checks import app as checks_app

app.add_typer(checks_app, name="checks", help="Create, list and operate on checks")


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[Optional[str], typer.Option(help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option(help="Bind port")] = None,
) -> None:
    """Run the HTTP API together with the status engine and notifier."""
    import uvicorn

    from pulse.api.main import create_app

    settings = get_settings(ctx)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command()
def evaluate(ctx: typer.Context) -> None:
    """Run one status engine cycle now and report what changed."""
    settings = get_settings(ctx)

    async def _evaluate():
        async with open_monitor(settings) as monitor:
            return await monitor.engine.run_cycle()

    with cli_errors():
        report = asyncio.run(_evaluate())

    table = Table(title="Status Cycle", show_header=False, border_style="cyan")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Evaluated", str(report.evaluated))
    table.add_row("Marked down", str(report.transitioned))
    table.add_row("Failed", str(report.failed))
    table.add_row("Duration", f"{report.duration_seconds:.3f}s")
    console.print(table)


@app.command()
def notify(
    ctx: typer.Context,
    to_console: Annotated[
        bool,
        typer.Option("--console", help="Print the summary instead of posting to the webhook"),
    ] = False,
) -> None:
    """Build and send one status summary now."""
    settings = get_settings(ctx)

    if not to_console and not settings.webhook_url:
        console.print("[yellow]No webhook configured (PULSE_WEBHOOK_URL); use --console.[/yellow]")
        raise typer.Exit(1)

    async def _notify() -> bool:
        delivery = ConsoleDelivery(title=settings.app_title) if to_console else None
        async with open_monitor(settings, delivery=delivery) as monitor:
            return await monitor.notifier.send_summary()

    if not asyncio.run(_notify()):
        console.print("[red]Failed to send summary (see log).[/red]")
        raise typer.Exit(1)

    if not to_console:
        console.print("[green]✓ Summary sent.[/green]")


@app.command()
def info(ctx: typer.Context) -> None:
    """Show the active configuration."""
    settings = get_settings(ctx)

    table = Table(title="Pulse Information", show_header=False, border_style="cyan")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Version", __version__)
    table.add_row("Database", settings.database_path)
    table.add_row("Evaluation interval", f"{settings.evaluation_interval_seconds}s")
    table.add_row("Admin API", "enabled" if settings.admin_enabled else "disabled")
    table.add_row(
        "Summaries",
        f"{settings.webhook_schedule} ({settings.cron_timezone}, {settings.webhook_format})"
        if settings.notifications_configured else "disabled",
    )

    console.print(table)


if __name__ == "__main__":
    app()
