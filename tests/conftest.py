"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from heartwatch.heartbeat.message import HeartbeatMessage
from heartwatch.monitor.dispatcher import NotificationDispatcher
from heartwatch.monitor.ingest import IngestHandler
from heartwatch.monitor.store import StateStore
from heartwatch.notify.base import NotificationError, NotificationEvent, Notifier

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier(Notifier):
    """Notifier that remembers every event it was given."""

    name = "recording"

    def __init__(self, fail: bool = False) -> None:
        self.alerts: list[NotificationEvent] = []
        self.resolutions: list[NotificationEvent] = []
        self.fail = fail
        self.closed = False

    async def alert(self, event: NotificationEvent) -> None:
        self.alerts.append(event)
        if self.fail:
            raise NotificationError("alert transport down")

    async def resolved(self, event: NotificationEvent) -> None:
        self.resolutions.append(event)
        if self.fail:
            raise NotificationError("resolved transport down")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return NOW


@pytest.fixture
def make_message() -> Callable[..., HeartbeatMessage]:
    """Factory for heartbeat messages generated relative to NOW."""

    def _make(
        subject: str = "heartbeat.svc",
        ago: timedelta = timedelta(0),
        interval: timedelta = timedelta(seconds=1),
        **kwargs: Any,
    ) -> HeartbeatMessage:
        return HeartbeatMessage(
            subject=subject,
            generated_at=NOW - ago,
            interval=interval,
            **kwargs,
        )

    return _make


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Fresh recording notifier."""
    return RecordingNotifier()


@pytest.fixture
def store() -> StateStore:
    """Empty state store."""
    return StateStore()


@pytest.fixture
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    """Dispatcher delivering to the recording notifier."""
    return NotificationDispatcher(notifier, max_concurrency=4)


@pytest.fixture
def ingest(store: StateStore, dispatcher: NotificationDispatcher) -> IngestHandler:
    """Ingest handler over the shared store and dispatcher."""
    return IngestHandler(store, dispatcher)


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    """Recording notifier whose every delivery raises."""
    return RecordingNotifier(fail=True)
