"""
Pushover Notifier

Sends alerts and resolutions through the Pushover messages API.
"""

from __future__ import annotations

from datetime import timezone

import httpx
import structlog

from heartwatch.heartbeat.durations import format_duration
from heartwatch.notify.base import NotificationError, NotificationEvent, Notifier

logger = structlog.get_logger(__name__)

PUSHOVER_ENDPOINT = "https://api.pushover.net/1/messages.json"


class PushoverNotifier(Notifier):
    """Push notifications via https://pushover.net."""

    name = "pushover"

    def __init__(
        self,
        token: str,
        user: str,
        endpoint: str = PUSHOVER_ENDPOINT,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Initialize the notifier.

        Args:
            token: Pushover application token
            user: Pushover user or group key
            endpoint: Messages API URL
            client: HTTP client to use; one is created lazily when omitted
            timeout: Request timeout in seconds for the lazily created client
        """
        self._token = token
        self._user = user
        self._endpoint = endpoint
        self._timeout = timeout
        self._http_client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def alert(self, event: NotificationEvent) -> None:
        await self._send(
            "Heartbeat missed",
            f"{event.description}: missed {event.miss_count} beats over "
            f"{format_duration(event.miss_for)} (interval {format_duration(event.interval)})",
        )

    async def resolved(self, event: NotificationEvent) -> None:
        last_seen = event.last_seen.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        await self._send(
            "Heartbeat resolved",
            f"{event.description}: recovered at {last_seen}",
        )

    async def _send(self, title: str, message: str) -> None:
        if not self._token or not self._user:
            raise NotificationError("pushover token and user are required")

        client = await self._get_client()
        data = {
            "token": self._token,
            "user": self._user,
            "title": title,
            "message": message,
        }

        try:
            response = await client.post(self._endpoint, data=data)
        except httpx.HTTPError as e:
            raise NotificationError(f"pushover request failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationError(f"pushover returned status {response.status_code}")

        logger.debug("Pushover notification sent", title=title)
