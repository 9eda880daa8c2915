"""Sync commands: replay queued requests and inspect the queue."""

import typer

from focusbloom.utils.ui.console import get_console
from focusbloom.utils.ui.formatters import (
    format_info,
    format_output,
    format_success,
    format_warning,
)

from .decorators import command_wrapper
from .runtime import build_container

app = typer.Typer(help="Replay requests queued while offline")
console = get_console()


@app.command("run")
@command_wrapper
async def run_sync(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Probe connectivity and replay queued requests.

    Examples:
        focusbloom sync run
        focusbloom sync run -o json
    """
    async with build_container() as container:
        result = await container.sync.process_queued_requests()

    if result.skipped:
        format_info("A sync is already running")
    elif not result.online:
        format_warning(f"Offline, {result.remaining} request(s) still queued")
    elif result.remaining:
        format_warning(
            f"Synced {result.succeeded}, {result.remaining} request(s) still queued"
        )
    else:
        format_success(f"Synced {result.succeeded} request(s)")

    if output != "table":
        format_output(result.to_dict(), output)


@app.command("status")
@command_wrapper
async def sync_status(
    probe: bool = typer.Option(True, "--probe/--no-probe", help="Check connectivity first"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show connectivity and queue status."""
    async with build_container() as container:
        if probe:
            await container.prober.check_connection()
        format_output(container.sync.status(), output)


@app.command("queue")
@command_wrapper
async def show_queue(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """List queued requests in replay order."""
    async with build_container() as container:
        entries = container.queue.snapshot()
    if not entries:
        console.print("[yellow]Queue is empty[/yellow]")
        return
    format_output(
        [
            {
                "id": e.id,
                "kind": e.kind.value,
                "method": e.method,
                "endpoint": e.endpoint,
                "depends_on": e.depends_on,
                "timestamp": e.timestamp,
            }
            for e in entries
        ],
        output,
    )


@app.command("clear")
@command_wrapper
async def clear_queue(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop every queued request."""
    if not yes and not typer.confirm("Discard all queued requests?"):
        format_warning("Cancelled")
        raise typer.Exit(0)
    async with build_container() as container:
        count = len(container.queue)
        await container.queue.clear()
    format_success(f"Cleared {count} queued request(s)")


@app.command("cleanup")
@command_wrapper
async def cleanup_queue(
    max_age_hours: int | None = typer.Option(
        None, "--max-age-hours", help="Age threshold (defaults to sync.max_queue_age_hours)"
    ),
) -> None:
    """Purge queued requests older than the age threshold."""
    async with build_container() as container:
        hours = max_age_hours or container.config.sync.max_queue_age_hours
        removed = await container.sync.cleanup(hours)
    format_success(f"Removed {removed} request(s) older than {hours}h")
