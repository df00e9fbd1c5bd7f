"""
Heartbeat Protocol

Wire format and publishing side of heartwatch.

Provides:
- HeartbeatMessage schema with validation
- Publisher used by agents
- Duration parsing and formatting helpers
"""

from heartwatch.heartbeat.durations import (
    format_duration,
    parse_duration,
    to_nanoseconds,
)
from heartwatch.heartbeat.message import (
    HeartbeatMessage,
    InvalidHeartbeatError,
)
from heartwatch.heartbeat.publisher import HeartbeatPublisher

__all__ = [
    # Messages
    "HeartbeatMessage",
    "InvalidHeartbeatError",
    # Publisher
    "HeartbeatPublisher",
    # Durations
    "format_duration",
    "parse_duration",
    "to_nanoseconds",
]
