"""
heartwatch CLI Main Entry Point

The main Typer application that assembles all commands.
"""

from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from heartwatch import __version__
from heartwatch.cli.log import configure_logging

console = Console()

# Create the main app
app = typer.Typer(
    name="heartwatch",
    help="heartwatch - heartbeat monitoring over NATS",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(
            Panel(
                Text.from_markup(
                    f"[bold cyan]heartwatch[/bold cyan] v{__version__}\n"
                    "[dim]Heartbeat monitoring over NATS[/dim]"
                ),
                title="Version",
                border_style="cyan",
            )
        )
        raise typer.Exit()


@app.callback()
def main(
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
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            "-d",
            help="Enable debug logging.",
            envvar="HEARTWATCH_DEBUG",
        ),
    ] = False,
) -> None:
    """
    heartwatch - liveness monitoring for services that publish heartbeats.

    Run `heartwatch agent` next to a service, `heartwatch monitor` once,
    and `heartwatch status` to see what is alive.
    """
    configure_logging(debug)


# Import and register commands
from heartwatch.cli.agent import run_agent
from heartwatch.cli.monitor import run_monitor
from heartwatch.cli.status import show_status

app.command("monitor", help="Watch heartbeats and raise alerts")(run_monitor)
app.command("agent", help="Publish heartbeats for a subject")(run_agent)
app.command("status", help="Show the monitor's view of every subject")(show_status)


if __name__ == "__main__":
    app()
