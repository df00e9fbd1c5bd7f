"""
Heartbeat Monitor Service

Wires the state store, ingest, priming, miss detection, notification and
status server under one lifetime.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import structlog
import uvicorn

from heartwatch.api.main import create_app
from heartwatch.config import MonitorSettings
from heartwatch.monitor.detector import MissDetector
from heartwatch.monitor.dispatcher import NotificationDispatcher
from heartwatch.monitor.ingest import IngestHandler
from heartwatch.monitor.primer import CachePrimer, PrimingError
from heartwatch.monitor.scheduler import ScanScheduler
from heartwatch.monitor.snapshot import StatusSnapshotter
from heartwatch.monitor.store import StateStore
from heartwatch.notify.base import NopNotifier, Notifier


class StatusServerError(Exception):
    """Raised when the status server fails to start or to shut down in time."""

    pass


class HeartbeatMonitor:
    """
    Watches heartbeats on the bus and raises/clears alerts.

    Usage:
        monitor = HeartbeatMonitor(nc, notifier, settings)
        await monitor.run(stop_event)
    """

    def __init__(
        self,
        nc: Any,
        notifier: Notifier | None = None,
        settings: MonitorSettings | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            nc: Connected NATS client
            notifier: Notification sink; events are dropped when None
            settings: Monitor settings; defaults are read from the environment
            logger: Logger threaded through every component
        """
        self._nc = nc
        self._settings = settings or MonitorSettings()
        self._logger = logger or structlog.get_logger(__name__)

        self.store = StateStore()
        self.dispatcher = NotificationDispatcher(
            notifier or NopNotifier(),
            max_concurrency=self._settings.notify_concurrency,
            logger=self._logger,
        )
        self.ingest = IngestHandler(self.store, self.dispatcher, logger=self._logger)
        self.detector = MissDetector(
            self.store,
            self.dispatcher,
            repeat_every=self._settings.repeat_every,
            logger=self._logger,
        )
        self.snapshotter = StatusSnapshotter(self.store)
        self.scheduler = ScanScheduler(
            self.detector.scan,
            poll_every=self._settings.poll_interval,
            logger=self._logger,
        )

        self._subscription: Any = None
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task[None] | None = None

    @property
    def settings(self) -> MonitorSettings:
        return self._settings

    @property
    def subscribe_subject(self) -> str:
        return self._settings.subscribe_subject

    async def prime(self) -> int:
        """Prime from the configured stream; failures are logged and ignored."""
        if not self._settings.prime_stream:
            return 0

        primer = CachePrimer(
            self._nc.jetstream(),
            stream=self._settings.prime_stream,
            subject=self.subscribe_subject,
            ingest=self.ingest,
            idle_timeout=self._settings.prime_timeout.total_seconds(),
            max_duration=self._settings.prime_max_duration.total_seconds(),
            logger=self._logger,
        )
        try:
            return await primer.prime()
        except PrimingError as e:
            self._logger.warning("Prime cache failed", error=str(e))
            return 0

    async def _on_message(self, msg: Any) -> None:
        await self.ingest.handle_payload(msg.data, msg.subject)

    async def start(self) -> None:
        """Prime, subscribe, start scanning and serving status."""
        await self.prime()

        self._subscription = await self._nc.subscribe(self.subscribe_subject, cb=self._on_message)
        self._logger.info(
            "Monitor subscribed",
            subject=self.subscribe_subject,
            prime_stream=self._settings.prime_stream or None,
        )

        await self.scheduler.start()

        if self._settings.status_enabled:
            await self._start_status_server()

    async def _start_status_server(self) -> None:
        config = uvicorn.Config(
            create_app(self.store),
            host=self._settings.status_host,
            port=self._settings.status_port,
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._serve_status(self._server))
        self._logger.info(
            "Status server starting",
            addr=f"{self._settings.status_host}:{self._settings.status_port}",
        )

    async def _serve_status(self, server: uvicorn.Server) -> None:
        # uvicorn exits the process on bind failure; turn that into an error
        try:
            await server.serve()
        except SystemExit as e:
            raise StatusServerError(f"status server exited with code {e.code}") from e
        if not server.started and not server.should_exit:
            raise StatusServerError("status server failed to start")

    async def stop(self) -> None:
        """
        Stop scanning, unsubscribe and shut the status server down.

        Raises:
            StatusServerError: if the status server does not close within
                the configured shutdown timeout
        """
        self._logger.info("Monitor stopping")
        await self.scheduler.stop()

        if self._subscription is not None:
            try:
                await self._subscription.unsubscribe()
            except Exception as e:
                self._logger.warning("Unsubscribe failed", error=str(e))
            self._subscription = None

        shutdown_error: StatusServerError | None = None
        if self._server is not None and self._server_task is not None:
            shutdown_error = await self._stop_status_server(self._settings.status_shutdown_timeout)

        await self.dispatcher.close()

        if shutdown_error is not None:
            raise shutdown_error

    async def _stop_status_server(self, timeout: timedelta) -> StatusServerError | None:
        self._server.should_exit = True
        task = self._server_task
        self._server = None
        self._server_task = None

        if task.done():
            return None

        done, _ = await asyncio.wait({task}, timeout=timeout.total_seconds())
        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            self._logger.warning("Status server shutdown failed", timeout=str(timeout))
            return StatusServerError(f"status server did not shut down within {timeout}")
        return None

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """
        Run until `stop` is set or the calling task is cancelled.

        Raises:
            StatusServerError: if the status server fails while running or
                fails to shut down
        """
        stop = stop or asyncio.Event()
        await self.start()

        stopped = asyncio.create_task(stop.wait())
        server_task = self._server_task
        waiters: set[asyncio.Task[Any]] = {stopped}
        if server_task is not None:
            waiters.add(server_task)

        server_error: BaseException | None = None
        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            if server_task is not None and server_task in done:
                server_error = server_task.exception()
                if server_error is None:
                    server_error = StatusServerError("status server stopped unexpectedly")
                self._server = None
                self._server_task = None
        finally:
            stopped.cancel()
            await asyncio.gather(stopped, return_exceptions=True)
            await self.stop()

        if server_error is not None:
            self._logger.error("Status server failed", error=str(server_error))
            raise StatusServerError(f"status server: {server_error}") from server_error
