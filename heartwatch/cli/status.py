"""
Status CLI Command

Fetches the monitor's status endpoint and renders it as a table.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from heartwatch.config import StatusClientSettings
from heartwatch.heartbeat.durations import parse_duration
from heartwatch.monitor.models import StatusResponse, SubjectStatus

console = Console()

STATUS_STYLES = {
    "ALERT!": "bold red",
    "LATE": "yellow",
    "OK": "green",
}


class StatusFetchError(Exception):
    """Raised when the status endpoint cannot be read."""

    pass


def fetch_status(url: str, timeout: float, client: httpx.Client | None = None) -> StatusResponse:
    """
    Fetch and decode the monitor status.

    Raises:
        StatusFetchError: on transport errors, non-200 responses or bad JSON
    """
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.get(url)
    except httpx.HTTPError as e:
        raise StatusFetchError(f"request status: {e}") from e
    finally:
        if client is None:
            http.close()

    if response.status_code != 200:
        body = response.text[:512].strip()
        raise StatusFetchError(f"unexpected status {response.status_code}: {body}")

    try:
        return StatusResponse.model_validate_json(response.content)
    except ValidationError as e:
        raise StatusFetchError(f"decode response: {e}") from e


def summarize_subject(subject: SubjectStatus) -> tuple[str, str]:
    """Status label and detail text for one subject."""
    if subject.alert_active:
        details = f"missed {subject.miss_for or f'past {subject.allowed_window}'}"
        if subject.miss_count:
            details += f" ({subject.miss_count} beats)"
        return "ALERT!", details

    if subject.missing:
        details = f"late by {subject.miss_for or subject.allowed_window}"
        if subject.miss_count:
            details += f" ({subject.miss_count} beats)"
        return "LATE", details

    return "OK", f"interval {subject.interval}, window {subject.allowed_window}"


def _format_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def render_status(status: StatusResponse, out: Console | None = None) -> None:
    """Print the status as a table followed by an alert summary."""
    out = out or console
    out.print(f"Observed at: {_format_time(status.observed_at)}")

    if not status.subjects:
        out.print("No heartbeats observed yet.")
        return

    table = Table(border_style="cyan")
    table.add_column("STATUS")
    table.add_column("SUBJECT", style="cyan")
    table.add_column("DESCRIPTION")
    table.add_column("HOST", style="dim")
    table.add_column("LAST SEEN")
    table.add_column("DETAILS")

    for subject in status.subjects:
        label, details = summarize_subject(subject)
        style = STATUS_STYLES.get(label, "white")
        table.add_row(
            f"[{style}]{label}[/{style}]",
            subject.subject,
            subject.description,
            subject.host or "-",
            _format_time(subject.last_seen),
            details,
        )

    out.print(table)
    out.print(f"\n{status.alerting} alert(s) firing across {len(status.subjects)} subject(s)")


def show_status(
    url: Annotated[str | None, typer.Option("--url", "-u", help="Status endpoint URL")] = None,
    timeout: Annotated[
        str | None, typer.Option("--timeout", "-t", help="HTTP request timeout (e.g. 3s)")
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the raw JSON response")
    ] = False,
) -> None:
    """
    Show the monitor's view of every subject.

    Example:
        heartwatch status --url http://127.0.0.1:8080/
    """
    settings = StatusClientSettings()
    status_url = url or settings.url
    try:
        request_timeout = parse_duration(timeout) if timeout else settings.timeout
    except ValueError as e:
        raise typer.BadParameter(str(e))

    try:
        status = fetch_status(status_url, request_timeout.total_seconds())
    except StatusFetchError as e:
        console.print(f"[red]✗ Fetch status: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print_json(status.model_dump_json(exclude_none=True))
        return

    render_status(status)
