"""
Checks CLI Commands

Commands for creating, listing and operating on checks.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pulse.cli.common import cli_errors, get_settings, open_monitor
from pulse.monitor import (
    Check,
    CheckStatus,
    compute_deadline,
    format_duration,
    parse_duration,
)

console = Console()

app = typer.Typer(
    name="checks",
    help="Create, list and operate on checks",
    no_args_is_help=True,
)

STATUS_STYLE = {
    CheckStatus.NEW: "[cyan]○[/cyan] new",
    CheckStatus.UP: "[green]●[/green] up",
    CheckStatus.DOWN: "[red]✗[/red] down",
    CheckStatus.FAILED: "[red]![/red] failed",
    CheckStatus.MAINTENANCE: "[yellow]◐[/yellow] maintenance",
}


def _format_timestamp(epoch_seconds: int | None) -> str:
    if not epoch_seconds:
        return "never"
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _check_panel(check: Check, title: str, border_style: str = "cyan") -> Panel:
    deadline = compute_deadline(check)
    return Panel(
        f"[cyan]Name:[/cyan] {check.name}\n"
        f"[cyan]Token:[/cyan] {check.token}\n"
        f"[cyan]Status:[/cyan] {STATUS_STYLE.get(check.status, check.status.value)}\n"
        f"[cyan]Schedule:[/cyan] {check.schedule} (+{check.grace} grace)\n"
        f"[cyan]Last ping:[/cyan] {_format_timestamp(check.last_ping_at)}\n"
        f"[cyan]Deadline:[/cyan] {_format_timestamp(deadline // 1000 if deadline else None)}\n"
        f"[cyan]Down count:[/cyan] {check.consecutive_down_count}"
        + (f"\n[cyan]Last error:[/cyan] {check.last_error}" if check.last_error else ""),
        title=title,
        border_style=border_style,
    )


@app.command("list")
def list_checks(
    ctx: typer.Context,
    page: Annotated[int, typer.Option("--page", "-p", min=1, help="Page number")] = 1,
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, max=100, help="Checks per page")] = 20,
) -> None:
    """
    List checks ordered by name.

    Example:
        pulse checks list
        pulse checks list --page 2 --limit 50
    """
    settings = get_settings(ctx)

    async def _list():
        async with open_monitor(settings) as monitor:
            return await monitor.service.list_checks(page=page, limit=limit)

    with cli_errors():
        result = asyncio.run(_list())

    checks: list[Check] = result["checks"]
    meta = result["meta"]

    if not checks:
        console.print("[dim]No checks found.[/dim]")
        return

    table = Table(
        title=f"Checks (page {meta['page']}/{meta['total_pages']}, {meta['total']} total)",
        border_style="cyan",
    )
    table.add_column("Name", style="cyan")
    table.add_column("Token", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Schedule")
    table.add_column("Grace")
    table.add_column("Last ping")
    table.add_column("Down", justify="right")

    for check in checks:
        table.add_row(
            check.name[:30],
            check.token,
            STATUS_STYLE.get(check.status, check.status.value),
            check.schedule,
            check.grace,
            _format_timestamp(check.last_ping_at),
            str(check.consecutive_down_count),
        )

    console.print(table)


@app.command("show")
def show_check(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Check token")],
) -> None:
    """Show one check."""
    settings = get_settings(ctx)

    async def _show():
        async with open_monitor(settings) as monitor:
            return await monitor.service.get(token)

    with cli_errors():
        check = asyncio.run(_show())

    console.print(_check_panel(check, title="Check"))


@app.command("create")
def create_check(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Check name")],
    schedule: Annotated[str, typer.Option("--schedule", "-s", help="Expected ping interval (e.g. 10m, 1h, 1d)")],
    grace: Annotated[str, typer.Option("--grace", "-g", help="Extra delay before down (e.g. 2m)")] = "5m",
) -> None:
    """
    Create a new check.

    Examples:
        pulse checks create backups -s 1d -g 1h
        pulse checks create queue-worker -s 5m
    """
    # Malformed durations are accepted (they evaluate as zero), but warn here
    for label, value in (("schedule", schedule), ("grace", grace)):
        if parse_duration(value) == 0:
            console.print(
                f"[yellow]Warning: {label} '{value}' parses as 0; the check will go down right away.[/yellow]"
            )

    settings = get_settings(ctx)

    async def _create():
        async with open_monitor(settings) as monitor:
            return await monitor.service.create(name, schedule, grace)

    with cli_errors():
        check = asyncio.run(_create())

    window = format_duration(parse_duration(schedule) + parse_duration(grace))
    console.print(_check_panel(check, title=f"New Check (window {window})", border_style="green"))
    console.print(f"[dim]Ping URL path:[/dim] /ping/{check.token}")


@app.command("delete")
def delete_check(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Check token")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Delete a check."""
    if not force:
        confirm = typer.confirm(f"Delete check {token}?")
        if not confirm:
            raise typer.Abort()

    settings = get_settings(ctx)

    async def _delete():
        async with open_monitor(settings) as monitor:
            return await monitor.service.delete(token)

    with cli_errors():
        check = asyncio.run(_delete())

    console.print(f"[green]✓ Check '{check.name}' deleted[/green]")


@app.command("maintenance")
def toggle_maintenance(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Check token")],
) -> None:
    """Enter or leave maintenance mode."""
    settings = get_settings(ctx)

    async def _toggle():
        async with open_monitor(settings) as monitor:
            return await monitor.service.toggle_maintenance(token)

    with cli_errors():
        check = asyncio.run(_toggle())

    console.print(f"Check '{check.name}' is now {STATUS_STYLE.get(check.status, check.status.value)}")


@app.command("fail")
def record_failure(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Check token")],
    reason: Annotated[Optional[str], typer.Option("--reason", "-r", help="Failure reason")] = None,
) -> None:
    """Mark a check failed (applies even in maintenance)."""
    settings = get_settings(ctx)

    async def _fail():
        async with open_monitor(settings) as monitor:
            return await monitor.service.record_failure(token, reason)

    with cli_errors():
        check = asyncio.run(_fail())

    console.print(f"[red]Check '{check.name}' marked failed[/red]" + (f": {reason}" if reason else ""))


@app.command("ping")
def ping_check(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Check token")],
    duration: Annotated[Optional[int], typer.Option("--duration", min=0, help="Job duration in ms")] = None,
) -> None:
    """Record a ping from the command line."""
    settings = get_settings(ctx)

    async def _ping():
        async with open_monitor(settings) as monitor:
            return await monitor.service.record_ping(token, duration)

    with cli_errors():
        result = asyncio.run(_ping())

    if result.accepted:
        console.print(f"[green]✓ Ping accepted for '{result.check.name}'[/green]")
    else:
        console.print(f"[yellow]Ping ignored: '{result.check.name}' is in maintenance[/yellow]")
