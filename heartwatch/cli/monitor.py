"""
Monitor CLI Command

Runs the heartbeat monitor in the foreground.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console
from rich.panel import Panel

from heartwatch.bus import connect
from heartwatch.cli.log import configure_logging
from heartwatch.config import MonitorSettings
from heartwatch.heartbeat.durations import format_duration, parse_duration
from heartwatch.monitor.service import HeartbeatMonitor, StatusServerError
from heartwatch.notify import ConsoleNotifier, Notifier, PushoverNotifier

logger = structlog.get_logger(__name__)
console = Console()


def _duration_option(value: str | None) -> Any:
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ValueError:
        raise typer.BadParameter(f"invalid duration: {value}")


def build_settings(
    nats_url: str | None = None,
    subject_prefix: str | None = None,
    prime_stream: str | None = None,
    poll: str | None = None,
    repeat_every: str | None = None,
    status_addr: str | None = None,
    pushover_user: str | None = None,
    pushover_token: str | None = None,
) -> MonitorSettings:
    """Environment settings overridden by whichever flags were given."""
    overrides: dict[str, Any] = {}
    if nats_url is not None:
        overrides["nats_url"] = nats_url
    if subject_prefix is not None:
        overrides["subject_prefix"] = subject_prefix
    if prime_stream is not None:
        overrides["prime_stream"] = prime_stream
    if poll is not None:
        overrides["poll_interval"] = _duration_option(poll)
    if repeat_every is not None:
        overrides["repeat_every"] = _duration_option(repeat_every)
    if pushover_user is not None:
        overrides["pushover_user"] = pushover_user
    if pushover_token is not None:
        overrides["pushover_token"] = pushover_token
    if status_addr is not None:
        if not status_addr:
            overrides["status_enabled"] = False
        else:
            host, _, port = status_addr.rpartition(":")
            if not host or not port.isdigit():
                raise typer.BadParameter(f"invalid status address: {status_addr}")
            overrides["status_host"] = host
            overrides["status_port"] = int(port)

    return MonitorSettings(**overrides)


def build_notifier(settings: MonitorSettings) -> Notifier:
    """Pushover when credentials are configured, console otherwise."""
    if settings.pushover_user and settings.pushover_token:
        return PushoverNotifier(token=settings.pushover_token, user=settings.pushover_user)
    logger.warning("Pushover not configured, printing notifications to the console")
    return ConsoleNotifier()


async def _monitor(settings: MonitorSettings) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    connecting = asyncio.create_task(
        connect(
            settings.nats_url,
            initial_backoff=settings.reconnect_initial,
            max_backoff=settings.reconnect_max,
            name="heartwatch-monitor",
        )
    )
    stopped = asyncio.create_task(stop.wait())
    await asyncio.wait({connecting, stopped}, return_when=asyncio.FIRST_COMPLETED)
    if not connecting.done():
        connecting.cancel()
        await asyncio.gather(connecting, return_exceptions=True)
        return
    stopped.cancel()

    nc = connecting.result()
    monitor = HeartbeatMonitor(nc, build_notifier(settings), settings)
    try:
        await monitor.run(stop)
    finally:
        await nc.drain()


def run_monitor(
    nats_url: Annotated[str | None, typer.Option("--nats-url", help="NATS server URL")] = None,
    subject_prefix: Annotated[
        str | None, typer.Option("--subject-prefix", help="Subject prefix to monitor")
    ] = None,
    prime_stream: Annotated[
        str | None,
        typer.Option("--prime-stream", help="Optional JetStream stream to prime the cache from"),
    ] = None,
    poll: Annotated[
        str | None, typer.Option("--poll", help="How often to check for missed beats (e.g. 1s)")
    ] = None,
    repeat_every: Annotated[
        str | None,
        typer.Option("--repeat-every", help="How often to repeat alerts while beats are missing"),
    ] = None,
    status_addr: Annotated[
        str | None,
        typer.Option("--status-addr", help="Listen address for HTTP status (empty to disable)"),
    ] = None,
    pushover_user: Annotated[
        str | None, typer.Option("--pushover-user", help="Pushover user key")
    ] = None,
    pushover_token: Annotated[
        str | None, typer.Option("--pushover-token", help="Pushover app token")
    ] = None,
) -> None:
    """
    Watch heartbeats and raise alerts when they stop.

    Runs in the foreground; use Ctrl+C to stop.

    Example:
        heartwatch monitor --subject-prefix heartbeat. --repeat-every 6h
    """
    settings = build_settings(
        nats_url=nats_url,
        subject_prefix=subject_prefix,
        prime_stream=prime_stream,
        poll=poll,
        repeat_every=repeat_every,
        status_addr=status_addr,
        pushover_user=pushover_user,
        pushover_token=pushover_token,
    )
    if settings.debug:
        configure_logging(debug=True)

    status = (
        f"{settings.status_host}:{settings.status_port}" if settings.status_enabled else "disabled"
    )
    console.print(Panel(
        f"[green]Heartbeat monitor starting[/green]\n\n"
        f"[cyan]NATS:[/cyan] {settings.nats_url}\n"
        f"[cyan]Subject:[/cyan] {settings.subscribe_subject}\n"
        f"[cyan]Poll:[/cyan] {format_duration(settings.poll_interval)}\n"
        f"[cyan]Repeat alerts:[/cyan] {format_duration(settings.repeat_every)}\n"
        f"[cyan]Status:[/cyan] {status}\n"
        f"[dim]Press Ctrl+C to stop[/dim]",
        title="heartwatch",
        border_style="green",
    ))

    try:
        asyncio.run(_monitor(settings))
    except StatusServerError as e:
        console.print(f"[red]✗ Monitor failed: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutting down...[/yellow]")

    console.print("[yellow]Heartbeat monitor stopped[/yellow]")
