"""
Agent CLI Command

Publishes heartbeats for one subject until interrupted.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Annotated, Any

import structlog
import typer
from rich.console import Console

from heartwatch.bus import connect
from heartwatch.cli.log import configure_logging
from heartwatch.config import AgentSettings
from heartwatch.heartbeat.durations import format_duration, parse_duration
from heartwatch.heartbeat.message import InvalidHeartbeatError
from heartwatch.heartbeat.publisher import HeartbeatPublisher

logger = structlog.get_logger(__name__)
console = Console()


async def _agent(settings: AgentSettings) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    nc = await connect(settings.nats_url, name="heartwatch-agent")
    publisher = HeartbeatPublisher(nc)
    interval = settings.interval.total_seconds()

    try:
        while not stop.is_set():
            message = publisher.build(
                settings.subject,
                settings.interval,
                grace_period=settings.grace,
                skippable=settings.skippable,
                description=settings.description,
            )
            try:
                await publisher.publish(message)
            except Exception as e:
                logger.error("Publish heartbeat failed", subject=settings.subject, error=str(e))

            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
    finally:
        await nc.drain()


def run_agent(
    subject: Annotated[
        str | None, typer.Option("--subject", "-s", help="Full heartbeat subject (required)")
    ] = None,
    interval: Annotated[
        str | None, typer.Option("--interval", "-i", help="Heartbeat interval (e.g. 15s)")
    ] = None,
    grace: Annotated[
        str | None,
        typer.Option("--grace", "-g", help="Optional max duration to miss beats before alerting"),
    ] = None,
    skippable: Annotated[
        int | None,
        typer.Option("--skippable", help="Legacy: number of beats that may be missed"),
    ] = None,
    description: Annotated[
        str | None, typer.Option("--description", help="Human-friendly description for alerts")
    ] = None,
    nats_url: Annotated[str | None, typer.Option("--nats-url", help="NATS server URL")] = None,
) -> None:
    """
    Publish heartbeats for a subject.

    Example:
        heartwatch agent -s heartbeat.backup -i 1h -g 2h --description "Nightly backup"
    """
    overrides: dict[str, Any] = {}
    try:
        if interval is not None:
            overrides["interval"] = parse_duration(interval)
        if grace is not None:
            overrides["grace"] = parse_duration(grace)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    if subject is not None:
        overrides["subject"] = subject
    if skippable is not None:
        overrides["skippable"] = skippable
    if description is not None:
        overrides["description"] = description
    if nats_url is not None:
        overrides["nats_url"] = nats_url

    settings = AgentSettings(**overrides)
    if settings.debug:
        configure_logging(debug=True)
    if not settings.subject:
        console.print("[red]subject is required[/red]")
        raise typer.Exit(1)
    if settings.interval.total_seconds() <= 0:
        console.print(f"[red]interval must be >0, got {format_duration(settings.interval)}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[cyan]Publishing heartbeats for[/cyan] {settings.subject} "
        f"[dim]every {format_duration(settings.interval)}[/dim]"
    )

    try:
        asyncio.run(_agent(settings))
    except InvalidHeartbeatError as e:
        console.print(f"[red]Invalid heartbeat: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutting down...[/yellow]")
