"""
Console Notifier

Prints alerts and resolutions to the terminal.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from heartwatch.heartbeat.durations import format_duration
from heartwatch.notify.base import NotificationEvent, Notifier


class ConsoleNotifier(Notifier):
    """Renders each event as a rich panel."""

    name = "console"

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    async def alert(self, event: NotificationEvent) -> None:
        content = self._body(event)
        content.append("Missed: ", style="dim")
        content.append(
            f"{event.miss_count} beats over {format_duration(event.miss_for)}\n",
            style="red",
        )
        self._console.print(Panel(
            content,
            title="[bold red]⚠ Heartbeat missed[/bold red]",
            border_style="red",
        ))

    async def resolved(self, event: NotificationEvent) -> None:
        self._console.print(Panel(
            self._body(event),
            title="[bold green]✓ Heartbeat resolved[/bold green]",
            border_style="green",
        ))

    def _body(self, event: NotificationEvent) -> Text:
        content = Text()
        content.append(f"{event.description}\n\n", style="white")
        content.append("Subject: ", style="dim")
        content.append(f"{event.subject}\n", style="cyan")
        if event.host:
            content.append("Host: ", style="dim")
            content.append(f"{event.host}\n", style="cyan")
        content.append("Last seen: ", style="dim")
        content.append(f"{event.last_seen.isoformat()}\n", style="cyan")
        content.append("Interval: ", style="dim")
        content.append(f"{format_duration(event.interval)}\n", style="cyan")
        return content
