"""
Monitor Models

Per-subject liveness state, notification events and the status view.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from heartwatch.heartbeat.message import HeartbeatMessage
from heartwatch.notify.base import NotificationEvent


class SubjectState(BaseModel):
    """
    Liveness record for one subject.

    Created on the first heartbeat for a subject and updated in place by
    every later one. `alert_active` is true while the subject is MISSING;
    `last_alert` is only meaningful while it is.
    """

    subject: str
    description: str
    host: str = ""
    last_seen: datetime
    interval: timedelta
    grace: timedelta | None = None

    alert_active: bool = False
    miss_count: int = 0
    last_alert: datetime | None = None

    @classmethod
    def from_message(cls, message: HeartbeatMessage) -> SubjectState:
        """Create the state for a subject seen for the first time."""
        return cls(
            subject=message.subject,
            description=message.display_name,
            host=message.host,
            last_seen=message.generated_at,
            interval=message.interval,
            grace=message.grace_period,
        )

    def apply(self, message: HeartbeatMessage) -> None:
        """Overwrite the heartbeat-derived fields from a newer message."""
        self.last_seen = message.generated_at
        self.interval = message.interval
        self.grace = message.grace_period
        self.host = message.host
        self.description = message.display_name

    def allowed_window(self) -> timedelta:
        """Longest tolerated silence: the grace period if set, else the interval."""
        if self.grace is not None and self.grace > timedelta(0):
            return self.grace
        return self.interval

    def elapsed(self, now: datetime) -> timedelta:
        """Time since the last heartbeat was generated."""
        return now - self.last_seen

    def misses(self, elapsed: timedelta) -> int:
        """Whole intervals contained in `elapsed`."""
        if self.interval <= timedelta(0):
            return 0
        return elapsed // self.interval

    def mark_missing(self, now: datetime, miss_count: int) -> None:
        """Enter MISSING."""
        self.alert_active = True
        self.miss_count = miss_count
        self.last_alert = now

    def mark_ok(self) -> None:
        """Return to OK."""
        self.alert_active = False
        self.miss_count = 0
        self.last_alert = None

    def to_event(self, miss_for: timedelta = timedelta(0)) -> NotificationEvent:
        """Build a notification event from the current state."""
        return NotificationEvent(
            subject=self.subject,
            description=self.description,
            host=self.host,
            last_seen=self.last_seen,
            interval=self.interval,
            miss_for=miss_for,
            miss_count=self.miss_count,
        )


class SubjectStatus(BaseModel):
    """Point-in-time status of one subject, as served by the status endpoint."""

    subject: str
    description: str
    host: str | None = None
    last_seen: datetime
    interval: str
    grace: str | None = None
    allowed_window: str
    missing: bool
    miss_for: str | None = None
    miss_count: int | None = None
    alert_active: bool


class StatusResponse(BaseModel):
    """Status of every known subject, sorted by subject name."""

    observed_at: datetime
    subjects: list[SubjectStatus] = Field(default_factory=list)

    @property
    def alerting(self) -> int:
        """Number of subjects with an active alert."""
        return sum(1 for s in self.subjects if s.alert_active)
