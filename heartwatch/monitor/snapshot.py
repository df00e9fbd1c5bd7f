"""
Status Snapshot

Point-in-time view of every subject for the status endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone

from heartwatch.heartbeat.durations import format_duration
from heartwatch.monitor.models import StatusResponse, SubjectState, SubjectStatus
from heartwatch.monitor.store import StateStore


class StatusSnapshotter:
    """
    Builds StatusResponse objects from a consistent copy of the store.

    Missing-ness is recomputed against the observation time rather than taken
    from the last scan. Never changes state or sends notifications.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    async def snapshot(self, now: datetime | None = None) -> StatusResponse:
        observed_at = now or datetime.now(timezone.utc)
        states = await self._store.snapshot()
        return StatusResponse(
            observed_at=observed_at,
            subjects=[subject_status(s, observed_at) for s in states],
        )


def subject_status(state: SubjectState, now: datetime) -> SubjectStatus:
    """Status of one subject as of `now`."""
    allowed = state.allowed_window()
    elapsed = state.elapsed(now)
    missing = elapsed > allowed

    status = SubjectStatus(
        subject=state.subject,
        description=state.description,
        host=state.host or None,
        last_seen=state.last_seen,
        interval=format_duration(state.interval),
        allowed_window=format_duration(allowed),
        missing=missing,
        alert_active=state.alert_active,
    )
    if state.grace is not None and state.grace.total_seconds() > 0:
        status.grace = format_duration(state.grace)
    if missing:
        status.miss_for = format_duration(elapsed)
        status.miss_count = state.misses(elapsed)
    return status
