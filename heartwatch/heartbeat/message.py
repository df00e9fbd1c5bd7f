"""
Heartbeat Message

Wire schema for heartbeat payloads exchanged over the bus.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ValidationError, field_serializer, field_validator

from heartwatch.heartbeat.durations import parse_duration, to_nanoseconds

_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})?$"
)


class InvalidHeartbeatError(ValueError):
    """Raised when a heartbeat payload cannot be decoded or fails validation."""

    pass


class HeartbeatMessage(BaseModel):
    """
    A single heartbeat.

    Durations are carried as integer nanoseconds on the wire. `skippable` is a
    legacy field: it is still accepted and validated but has no effect on how
    long a subject may stay silent (see `grace_period`).
    """

    subject: str
    generated_at: datetime
    interval: timedelta
    skippable: int | None = None
    grace_period: timedelta | None = None
    description: str = ""
    host: str = ""

    @field_validator("subject")
    @classmethod
    def _subject_required(cls, value: str) -> str:
        if not value:
            raise ValueError("subject is required")
        return value

    @field_validator("generated_at", mode="before")
    @classmethod
    def _generated_at_rfc3339(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str) or not _RFC3339.match(value):
            raise ValueError(f"generated_at must be an RFC 3339 timestamp, got {value!r}")
        return value

    @field_validator("generated_at")
    @classmethod
    def _generated_at_required(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        if value.year <= 1:
            raise ValueError("generated_at is required")
        return value.astimezone(timezone.utc)

    @field_validator("interval", "grace_period", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if value is None:
            return None
        return parse_duration(value)

    @field_validator("interval")
    @classmethod
    def _interval_positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError(f"interval must be >0, got {value}")
        return value

    @field_validator("grace_period")
    @classmethod
    def _grace_not_negative(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value < timedelta(0):
            raise ValueError("grace period cannot be negative")
        return value

    @field_validator("skippable")
    @classmethod
    def _skippable_not_negative(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError("skippable cannot be negative")
        return value

    @field_serializer("interval")
    def _serialize_interval(self, value: timedelta) -> int:
        return to_nanoseconds(value)

    @field_serializer("grace_period")
    def _serialize_grace(self, value: timedelta | None) -> int | None:
        return to_nanoseconds(value) if value is not None else None

    @property
    def display_name(self) -> str:
        """Description, falling back to the subject."""
        return self.description or self.subject

    def to_json(self) -> bytes:
        """Encode the message for transport."""
        data = self.model_dump(mode="json", exclude_none=True)
        if not self.description:
            data.pop("description", None)
        if not self.host:
            data.pop("host", None)
        return json.dumps(data).encode()

    @classmethod
    def from_json(cls, data: bytes | str) -> HeartbeatMessage:
        """
        Decode and validate a heartbeat payload.

        Raises:
            InvalidHeartbeatError: on malformed JSON or invalid fields
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            reasons = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidHeartbeatError(reasons) from e
