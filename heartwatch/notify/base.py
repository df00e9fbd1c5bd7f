"""
Notifier Base

Contract every notification sink implements, and the event it receives.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from pydantic import BaseModel


class NotificationError(Exception):
    """Raised when a notification could not be delivered."""

    pass


class NotificationEvent(BaseModel):
    """An alert or resolution handed to a notifier."""

    subject: str
    description: str
    host: str = ""
    last_seen: datetime
    interval: timedelta
    miss_for: timedelta = timedelta(0)
    miss_count: int = 0


class Notifier(ABC):
    """
    Abstract notification sink.

    `alert` and `resolved` are independent; either may fail with
    NotificationError without affecting the other.
    """

    name: str = "base"

    @abstractmethod
    async def alert(self, event: NotificationEvent) -> None:
        """Notify that a subject has missed its heartbeat window."""
        ...

    @abstractmethod
    async def resolved(self, event: NotificationEvent) -> None:
        """Notify that a subject is heartbeating again."""
        ...

    async def close(self) -> None:
        """Release any resources held by the notifier."""
        pass


class NopNotifier(Notifier):
    """Notifier that drops every event."""

    name = "nop"

    async def alert(self, event: NotificationEvent) -> None:
        pass

    async def resolved(self, event: NotificationEvent) -> None:
        pass
