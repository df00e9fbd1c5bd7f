"""heartwatch status API - FastAPI Application."""

from fastapi import FastAPI

from heartwatch import __version__
from heartwatch.api.routers import status_router
from heartwatch.monitor.snapshot import StatusSnapshotter
from heartwatch.monitor.store import StateStore


def create_app(store: StateStore) -> FastAPI:
    """Create the status application over a monitor's state store."""
    app = FastAPI(
        title="heartwatch",
        description="Heartbeat monitor status",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )

    app.state.store = store
    app.state.snapshotter = StatusSnapshotter(store)

    app.include_router(status_router, tags=["Status"])

    return app
