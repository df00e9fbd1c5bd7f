"""
Miss Detector

Periodic scan that drives each subject between OK and MISSING.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import structlog

from heartwatch.monitor.dispatcher import NotificationDispatcher
from heartwatch.monitor.models import SubjectState
from heartwatch.monitor.store import StateStore
from heartwatch.notify.base import NotificationEvent

DEFAULT_REPEAT_EVERY = timedelta(hours=12)


@dataclass
class ScanResult:
    """Events produced by one scan."""

    alerts: list[NotificationEvent] = field(default_factory=list)
    resolutions: list[NotificationEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.alerts and not self.resolutions


class MissDetector:
    """
    Compares time since last contact against each subject's allowed window.

    For every subject on every scan:
    - within the window: a MISSING subject returns to OK and is resolved
    - outside the window: an OK subject becomes MISSING and is alerted; a
      MISSING subject is re-alerted once `repeat_every` has passed since its
      previous alert

    State changes happen under the store lock; notifications are handed to
    the dispatcher after it is released.
    """

    def __init__(
        self,
        store: StateStore,
        dispatcher: NotificationDispatcher,
        repeat_every: timedelta = DEFAULT_REPEAT_EVERY,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._repeat_every = repeat_every if repeat_every > timedelta(0) else DEFAULT_REPEAT_EVERY
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def repeat_every(self) -> timedelta:
        return self._repeat_every

    async def scan(self, now: datetime | None = None) -> ScanResult:
        """
        Run one scan and dispatch the resulting notifications.

        Args:
            now: Scan time; defaults to the current UTC time
        """
        now = now or datetime.now(timezone.utc)
        result = ScanResult()

        def check(state: SubjectState) -> None:
            elapsed = state.elapsed(now)
            allowed = state.allowed_window()

            if elapsed <= allowed:
                if state.alert_active:
                    result.resolutions.append(state.to_event(miss_for=elapsed))
                    state.mark_ok()
                    self._logger.debug(
                        "Heartbeat recovered",
                        subject=state.subject,
                        elapsed=str(elapsed),
                        allowed=str(allowed),
                    )
                return

            miss_count = state.misses(elapsed)
            if not state.alert_active:
                state.mark_missing(now, miss_count)
                result.alerts.append(state.to_event(miss_for=elapsed))
                self._logger.debug(
                    "Heartbeat missed threshold",
                    subject=state.subject,
                    elapsed=str(elapsed),
                    allowed=str(allowed),
                    miss_count=miss_count,
                )
                return

            state.miss_count = miss_count
            if state.last_alert is None or now - state.last_alert >= self._repeat_every:
                state.last_alert = now
                result.alerts.append(state.to_event(miss_for=elapsed))
                self._logger.debug(
                    "Heartbeat still missing, repeating alert",
                    subject=state.subject,
                    elapsed=str(elapsed),
                    miss_count=miss_count,
                    repeat_every=str(self._repeat_every),
                )

        await self._store.for_each(check)

        for event in result.alerts:
            self._logger.warning(
                "Heartbeat missing",
                subject=event.subject,
                miss_count=event.miss_count,
                miss_for=str(event.miss_for),
            )
            self._dispatcher.alert(event)
        for event in result.resolutions:
            self._logger.info("Heartbeat resolved", subject=event.subject)
            self._dispatcher.resolved(event)

        return result
