"""
Heartbeat Publisher

Sends heartbeat messages to the bus under a subject prefix.
"""

from __future__ import annotations

import socket
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from heartwatch.heartbeat.message import HeartbeatMessage, InvalidHeartbeatError

logger = structlog.get_logger(__name__)


class HeartbeatPublisher:
    """
    Publishes heartbeats for a single process.

    Usage:
        publisher = HeartbeatPublisher(nc, prefix="heartbeat")
        await publisher.publish(HeartbeatMessage(...))
    """

    def __init__(self, nc: Any, prefix: str = "") -> None:
        """
        Initialize the publisher.

        Args:
            nc: Connected NATS client
            prefix: Subject prefix prepended to every heartbeat subject
        """
        self._nc = nc
        self._prefix = prefix.rstrip(".")

    def full_subject(self, subject: str) -> str:
        """Bus subject a heartbeat for `subject` is published on."""
        if not self._prefix:
            return subject
        return f"{self._prefix}.{subject}"

    def build(
        self,
        subject: str,
        interval: timedelta,
        grace_period: timedelta | None = None,
        skippable: int | None = None,
        description: str = "",
    ) -> HeartbeatMessage:
        """
        Build a heartbeat stamped with the current time.

        Zero grace period and skippable values are left out of the message.

        Raises:
            InvalidHeartbeatError: if the fields do not validate
        """
        try:
            return HeartbeatMessage(
                subject=subject,
                generated_at=datetime.now(timezone.utc),
                interval=interval,
                grace_period=grace_period if grace_period else None,
                skippable=skippable if skippable else None,
                description=description,
            )
        except ValidationError as e:
            raise InvalidHeartbeatError(str(e)) from e

    async def publish(self, message: HeartbeatMessage) -> HeartbeatMessage:
        """
        Publish a heartbeat.

        Fills in `host` with the local hostname when it is missing.

        Returns:
            The message as it was sent
        """
        if not message.host:
            host = _hostname()
            if host:
                message = message.model_copy(update={"host": host})

        await self._nc.publish(self.full_subject(message.subject), message.to_json())
        logger.debug(
            "Heartbeat published",
            subject=message.subject,
            interval=str(message.interval),
            grace=str(message.grace_period) if message.grace_period else None,
        )
        return message


def _hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""
