"""Main entry point for the FocusBloom CLI."""

import typer

from focusbloom import __version__
from focusbloom.commands import config, session, sync
from focusbloom.utils.ui.console import get_console

app = typer.Typer(
    name="focusbloom",
    help="Pomodoro sessions that keep working offline",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(session.app, name="session", help="Pomodoro session commands")
app.add_typer(sync.app, name="sync", help="Offline queue and sync commands")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]FocusBloom[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
