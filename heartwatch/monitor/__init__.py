"""
Heartbeat Monitor

State tracking and miss detection for heartbeat subjects.

Provides:
- Per-subject state store
- Ingest of live and primed heartbeats
- Miss detection with repeat-alert debouncing
- Bounded asynchronous notification dispatch
- Point-in-time status snapshots

The wired-up service lives in `heartwatch.monitor.service`.
"""

from heartwatch.monitor.models import (
    StatusResponse,
    SubjectState,
    SubjectStatus,
)
from heartwatch.monitor.store import StateStore
from heartwatch.monitor.dispatcher import NotificationDispatcher
from heartwatch.monitor.ingest import IngestHandler
from heartwatch.monitor.detector import (
    DEFAULT_REPEAT_EVERY,
    MissDetector,
    ScanResult,
)
from heartwatch.monitor.scheduler import ScanScheduler
from heartwatch.monitor.primer import (
    CachePrimer,
    PrimingError,
)
from heartwatch.monitor.snapshot import (
    StatusSnapshotter,
    subject_status,
)

__all__ = [
    # Models
    "StatusResponse",
    "SubjectState",
    "SubjectStatus",
    # Store
    "StateStore",
    # Dispatch
    "NotificationDispatcher",
    # Ingest
    "IngestHandler",
    # Detection
    "DEFAULT_REPEAT_EVERY",
    "MissDetector",
    "ScanResult",
    "ScanScheduler",
    # Priming
    "CachePrimer",
    "PrimingError",
    # Status
    "StatusSnapshotter",
    "subject_status",
]
