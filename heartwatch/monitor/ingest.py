"""
Heartbeat Ingest

Applies inbound heartbeats to the state store.
"""

from __future__ import annotations

import structlog

from heartwatch.heartbeat.message import HeartbeatMessage, InvalidHeartbeatError
from heartwatch.monitor.dispatcher import NotificationDispatcher
from heartwatch.monitor.models import SubjectState
from heartwatch.monitor.store import StateStore
from heartwatch.notify.base import NotificationEvent


class IngestHandler:
    """
    Consumes heartbeats from live traffic and cache priming.

    The first heartbeat for a subject creates its state silently. A
    heartbeat for a subject that is alerting clears the alert and schedules
    a Resolved notification.
    """

    def __init__(
        self,
        store: StateStore,
        dispatcher: NotificationDispatcher,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._logger = logger or structlog.get_logger(__name__)

    async def handle_payload(self, data: bytes, topic: str = "") -> bool:
        """
        Decode a raw bus payload and ingest it.

        Malformed payloads are logged and dropped.

        Returns:
            True if the heartbeat was applied
        """
        try:
            message = HeartbeatMessage.from_json(data)
        except InvalidHeartbeatError as e:
            self._logger.error("Failed to decode heartbeat", topic=topic, error=str(e))
            return False

        await self.handle(message)
        return True

    async def handle(self, message: HeartbeatMessage) -> None:
        """Create or update the subject's state from a decoded heartbeat."""
        created = True

        def update(state: SubjectState) -> NotificationEvent | None:
            nonlocal created
            created = False
            state.apply(message)
            if not state.alert_active:
                return None
            state.mark_ok()
            return state.to_event()

        resolved = await self._store.upsert(
            message.subject,
            create=lambda: SubjectState.from_message(message),
            update=update,
        )

        if created:
            self._logger.debug(
                "New heartbeat subject added",
                subject=message.subject,
                interval=str(message.interval),
                grace=str(message.grace_period) if message.grace_period else None,
            )
            return

        self._logger.debug("Heartbeat updated", subject=message.subject)

        if resolved is not None:
            self._logger.info("Heartbeat resolved", subject=resolved.subject)
            self._dispatcher.resolved(resolved)
