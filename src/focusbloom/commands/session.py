"""Pomodoro session commands."""

import typer

from focusbloom.models.session import SESSION_TYPES
from focusbloom.services.session_service import SessionOutcome
from focusbloom.utils.exit_codes import ERROR_INVALID_ARGS
from focusbloom.utils.ui.console import get_console
from focusbloom.utils.ui.formatters import (
    format_output,
    format_success,
    format_warning,
)

from .decorators import AppError, command_wrapper
from .runtime import build_container

app = typer.Typer(help="Start, complete and review Pomodoro sessions")
console = get_console()


def _report(outcome: SessionOutcome, output: str) -> None:
    if outcome.synced:
        format_success(outcome.message)
    else:
        format_warning(outcome.message)
    if outcome.session is not None:
        format_output(outcome.session.model_dump(), output)


@app.command("start")
@command_wrapper
async def start_session(
    duration: int = typer.Option(25, "--duration", "-d", help="Session length in minutes"),
    session_type: str = typer.Option(
        "work", "--type", "-t", help=f"Session type: {', '.join(SESSION_TYPES)}"
    ),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Start a Pomodoro session."""
    async with build_container() as container:
        outcome = await container.sessions.start_session(duration, session_type)
    _report(outcome, output)


@app.command("complete")
@command_wrapper
async def complete_session(
    session_id: str = typer.Argument(..., help="Session ID"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Mark a session as completed."""
    async with build_container() as container:
        try:
            outcome = await container.sessions.complete_session(session_id)
        except ValueError as e:
            raise AppError(str(e), ERROR_INVALID_ARGS) from e
    _report(outcome, output)


@app.command("delete")
@command_wrapper
async def delete_session(
    session_id: str = typer.Argument(..., help="Session ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a session."""
    if not yes and not typer.confirm(f"Delete session {session_id}?"):
        format_warning("Cancelled")
        raise typer.Exit(0)
    async with build_container() as container:
        outcome = await container.sessions.delete_session(session_id)
    _report(outcome, "table")


@app.command("list")
@command_wrapper
async def list_sessions(
    remote: bool = typer.Option(False, "--remote", help="Fetch from the server"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """List sessions."""
    async with build_container() as container:
        sessions = await container.sessions.list_sessions(remote=remote)
    if not sessions:
        console.print("[yellow]No sessions found[/yellow]")
        return
    format_output([s.model_dump() for s in sessions], output)


@app.command("stats")
@command_wrapper
async def session_stats(
    remote: bool = typer.Option(False, "--remote", help="Fetch from the server"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show session statistics."""
    async with build_container() as container:
        stats = await container.sessions.stats(remote=remote)
    format_output(stats.model_dump(), output)


@app.command("upload")
@command_wrapper
async def upload_sessions() -> None:
    """Batch-upload completed sessions that never reached the server."""
    async with build_container() as container:
        outcome = await container.sessions.upload_history()
    _report(outcome, "table")
