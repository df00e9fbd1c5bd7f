"""Status router - subject status and health check."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from heartwatch.monitor.models import StatusResponse
from heartwatch.monitor.snapshot import StatusSnapshotter


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    subjects: int


def _snapshotter(request: Request) -> StatusSnapshotter:
    return request.app.state.snapshotter


@router.get("/", response_model=StatusResponse, response_model_exclude_none=True)
async def status(request: Request) -> StatusResponse:
    """Status of every observed subject."""
    return await _snapshotter(request).snapshot()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", subjects=len(request.app.state.store))
