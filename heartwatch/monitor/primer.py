"""
Cache Primer

Seeds subject state from the last heartbeat per subject kept in a JetStream
stream, before live subscription begins.
"""

from __future__ import annotations

import asyncio
from typing import Any

import nats.errors
import structlog
from nats.js.api import AckPolicy, ConsumerConfig, DeliverPolicy

from heartwatch.monitor.ingest import IngestHandler

DEFAULT_IDLE_TIMEOUT = 2.0
DEFAULT_MAX_DURATION = 10.0


class PrimingError(Exception):
    """Raised when the priming stream could not be read."""

    pass


class CachePrimer:
    """
    One-shot replay of persisted heartbeats into the ingest handler.

    Priming stops after `idle_timeout` without a message, or after
    `max_duration` in total, whichever comes first. Each primed message goes
    through the same path as live traffic. Since every subject starts in OK,
    priming only seeds `last_seen` and never produces notifications.
    """

    def __init__(
        self,
        js: Any,
        stream: str,
        subject: str,
        ingest: IngestHandler,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        max_duration: float = DEFAULT_MAX_DURATION,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """
        Initialize the primer.

        Args:
            js: JetStream context of a connected NATS client
            stream: Name of the stream holding heartbeats
            subject: Subject filter, e.g. "heartbeat.>"
            ingest: Handler every primed message is fed to
            idle_timeout: Seconds without a message after which priming ends
            max_duration: Seconds after which priming ends even if messages
                are still arriving
        """
        self._js = js
        self._stream = stream
        self._subject = subject
        self._ingest = ingest
        self._idle_timeout = idle_timeout
        self._max_duration = max_duration
        self._logger = logger or structlog.get_logger(__name__)

    def _consumer_config(self) -> ConsumerConfig:
        return ConsumerConfig(
            deliver_policy=DeliverPolicy.LAST_PER_SUBJECT,
            ack_policy=AckPolicy.EXPLICIT,
            max_deliver=1,
        )

    async def prime(self) -> int:
        """
        Replay the latest heartbeat of every subject in the stream.

        Returns:
            Number of messages ingested

        Raises:
            PrimingError: if the stream cannot be bound or read
        """
        self._logger.info("Priming cache from stream", stream=self._stream, subject=self._subject)

        try:
            sub = await self._js.subscribe(
                self._subject,
                stream=self._stream,
                manual_ack=True,
                config=self._consumer_config(),
            )
        except Exception as e:
            raise PrimingError(f"bind to stream {self._stream}: {e}") from e

        count = 0
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._max_duration
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    self._logger.warning(
                        "Priming deadline reached, continuing with live traffic",
                        stream=self._stream,
                        max_duration=self._max_duration,
                    )
                    break
                try:
                    msg = await sub.next_msg(timeout=min(self._idle_timeout, remaining))
                except nats.errors.TimeoutError:
                    break
                except Exception as e:
                    raise PrimingError(f"read from stream {self._stream}: {e}") from e

                if await self._ingest.handle_payload(msg.data, msg.subject):
                    count += 1
                try:
                    await msg.ack()
                except Exception as e:
                    self._logger.warning("Failed to ack primed message", subject=msg.subject, error=str(e))
        finally:
            try:
                await sub.unsubscribe()
            except Exception as e:
                self._logger.debug("Priming unsubscribe failed", error=str(e))

        self._logger.info("Cache primed", stream=self._stream, subjects=count)
        return count
