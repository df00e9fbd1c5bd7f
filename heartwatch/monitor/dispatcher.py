"""
Notification Dispatcher

Delivers alert and resolved events to a notifier without blocking the
ingest or scan paths.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from heartwatch.notify.base import NotificationEvent, Notifier


class NotificationDispatcher:
    """
    Fire-and-forget delivery with bounded concurrency.

    At most `max_concurrency` notifier calls are in flight; further events
    wait for a free slot in their own task, so callers never wait. Delivery
    failures are logged and dropped.
    """

    def __init__(
        self,
        notifier: Notifier,
        max_concurrency: int = 8,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._notifier = notifier
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._pending: set[asyncio.Task[None]] = set()
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def pending(self) -> int:
        """Events not yet delivered."""
        return len(self._pending)

    def alert(self, event: NotificationEvent) -> None:
        """Schedule an alert notification."""
        self._submit("alert", self._notifier.alert, event)

    def resolved(self, event: NotificationEvent) -> None:
        """Schedule a resolved notification."""
        self._submit("resolved", self._notifier.resolved, event)

    def _submit(
        self,
        kind: str,
        send: Callable[[NotificationEvent], Awaitable[None]],
        event: NotificationEvent,
    ) -> None:
        task = asyncio.create_task(self._deliver(kind, send, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(
        self,
        kind: str,
        send: Callable[[NotificationEvent], Awaitable[None]],
        event: NotificationEvent,
    ) -> None:
        async with self._semaphore:
            try:
                await send(event)
            except Exception as e:
                self._logger.error(
                    f"{kind.capitalize()} notify failed",
                    subject=event.subject,
                    error=str(e),
                )
                return
        self._logger.debug("Notification delivered", kind=kind, subject=event.subject)

    async def drain(self, timeout: float | None = None) -> bool:
        """
        Wait for in-flight notifications.

        Returns:
            True if everything was delivered (or failed) within `timeout`
        """
        if not self._pending:
            return True
        _, not_done = await asyncio.wait(set(self._pending), timeout=timeout)
        return not not_done

    async def close(self, timeout: float = 5.0) -> None:
        """Drain pending notifications, cancel stragglers, close the notifier."""
        if not await self.drain(timeout):
            self._logger.warning("Cancelling undelivered notifications", count=len(self._pending))
            stragglers = list(self._pending)
            for task in stragglers:
                task.cancel()
            await asyncio.gather(*stragglers, return_exceptions=True)
        await self._notifier.close()
