"""
Bus Connection

Connects to NATS, retrying with exponential backoff until it succeeds or
the caller is cancelled.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import nats
import nats.errors
import structlog

logger = structlog.get_logger(__name__)


def backoff_delays(initial: timedelta, maximum: timedelta, factor: float = 2.0):
    """Yield exponentially growing delays in seconds, capped at `maximum`."""
    delay = max(initial.total_seconds(), 0.001)
    cap = max(maximum.total_seconds(), delay)
    while True:
        yield delay
        delay = min(delay * factor, cap)


async def connect(
    url: str,
    initial_backoff: timedelta = timedelta(milliseconds=500),
    max_backoff: timedelta = timedelta(seconds=30),
    name: str = "heartwatch",
    **options: Any,
) -> Any:
    """
    Connect to NATS.

    Initial connection failures are retried forever with exponential backoff
    capped at `max_backoff`; cancel the calling task to give up. Once
    connected, the client reconnects on its own with unlimited attempts and
    every disconnect/reconnect is logged.

    Returns:
        Connected nats client
    """

    async def disconnected_cb() -> None:
        logger.warning("NATS disconnected", url=url)

    async def reconnected_cb() -> None:
        logger.info("NATS reconnected", url=url)

    async def error_cb(e: Exception) -> None:
        logger.error("NATS error", url=url, error=str(e))

    options.setdefault("allow_reconnect", True)
    options.setdefault("max_reconnect_attempts", -1)
    options.setdefault("reconnect_time_wait", min(2.0, max_backoff.total_seconds()))

    delays = backoff_delays(initial_backoff, max_backoff)
    attempt = 0
    while True:
        attempt += 1
        try:
            nc = await nats.connect(
                servers=[url],
                name=name,
                disconnected_cb=disconnected_cb,
                reconnected_cb=reconnected_cb,
                error_cb=error_cb,
                **options,
            )
        except (nats.errors.Error, OSError, asyncio.TimeoutError) as e:
            delay = next(delays)
            logger.warning(
                "NATS connect failed, retrying",
                url=url,
                attempt=attempt,
                retry_in=round(delay, 3),
                error=str(e),
            )
            await asyncio.sleep(delay)
            continue

        logger.info("Connected to NATS", url=url, attempt=attempt)
        return nc
