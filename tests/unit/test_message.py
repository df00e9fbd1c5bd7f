"""
Tests for the heartbeat wire message.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from heartwatch.heartbeat.message import HeartbeatMessage, InvalidHeartbeatError


def _payload(**overrides) -> bytes:
    data = {
        "subject": "heartbeat.backup",
        "generated_at": "2026-03-01T12:00:00Z",
        "interval": 15_000_000_000,
    }
    data.update(overrides)
    return json.dumps({k: v for k, v in data.items() if v is not None}).encode()


class TestDecode:
    """Tests for HeartbeatMessage.from_json."""

    def test_minimal_payload(self) -> None:
        """Test decoding the required fields only."""
        msg = HeartbeatMessage.from_json(_payload())

        assert msg.subject == "heartbeat.backup"
        assert msg.generated_at == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
        assert msg.interval == timedelta(seconds=15)
        assert msg.grace_period is None
        assert msg.skippable is None
        assert msg.description == ""
        assert msg.host == ""

    def test_optional_fields(self) -> None:
        """Test decoding grace, skippable, description and host."""
        msg = HeartbeatMessage.from_json(_payload(
            grace_period=60_000_000_000,
            skippable=2,
            description="Nightly backup",
            host="db-1",
        ))

        assert msg.grace_period == timedelta(minutes=1)
        assert msg.skippable == 2
        assert msg.description == "Nightly backup"
        assert msg.host == "db-1"

    def test_duration_strings_accepted(self) -> None:
        """Test human-written durations decode too."""
        msg = HeartbeatMessage.from_json(_payload(interval="30s", grace_period="2m"))
        assert msg.interval == timedelta(seconds=30)
        assert msg.grace_period == timedelta(minutes=2)

    def test_naive_timestamp_is_utc(self) -> None:
        """Test timestamps without an offset are taken as UTC."""
        msg = HeartbeatMessage.from_json(_payload(generated_at="2026-03-01T12:00:00"))
        assert msg.generated_at.tzinfo is not None
        assert msg.generated_at == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)

    def test_display_name_falls_back_to_subject(self) -> None:
        """Test description defaults to the subject."""
        assert HeartbeatMessage.from_json(_payload()).display_name == "heartbeat.backup"
        assert HeartbeatMessage.from_json(_payload(description="Backup")).display_name == "Backup"

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"[]",
            _payload(subject=""),
            _payload(subject=None),
            _payload(generated_at=None),
            _payload(generated_at="0001-01-01T00:00:00Z"),
            _payload(generated_at=0),
            _payload(generated_at=1_772_366_400),
            _payload(generated_at="1772366400"),
            _payload(generated_at="2026-03-01"),
            _payload(interval=None),
            _payload(interval=0),
            _payload(interval=-1_000_000_000),
            _payload(grace_period=-1_000_000_000),
            _payload(skippable=-1),
        ],
    )
    def test_invalid_payloads(self, payload: bytes) -> None:
        """Test malformed or invalid payloads are rejected."""
        with pytest.raises(InvalidHeartbeatError):
            HeartbeatMessage.from_json(payload)

    def test_error_mentions_field(self) -> None:
        """Test the error names the offending field."""
        with pytest.raises(InvalidHeartbeatError, match="interval"):
            HeartbeatMessage.from_json(_payload(interval=0))

    def test_epoch_timestamp_rejected(self) -> None:
        """Test numeric timestamps are refused instead of read as Unix time."""
        with pytest.raises(InvalidHeartbeatError, match="RFC 3339"):
            HeartbeatMessage.from_json(_payload(generated_at=0))

    def test_offset_timestamp_normalized(self) -> None:
        """Test timestamps with an offset are converted to UTC."""
        msg = HeartbeatMessage.from_json(_payload(generated_at="2026-03-01T14:00:00+02:00"))
        assert msg.generated_at == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)


class TestEncode:
    """Tests for HeartbeatMessage.to_json."""

    def test_durations_encoded_as_nanoseconds(self) -> None:
        """Test durations go out as integer nanoseconds."""
        msg = HeartbeatMessage(
            subject="heartbeat.svc",
            generated_at=datetime(2026, 3, 1, 12, tzinfo=timezone.utc),
            interval=timedelta(seconds=15),
            grace_period=timedelta(minutes=1),
        )
        data = json.loads(msg.to_json())

        assert data["interval"] == 15_000_000_000
        assert data["grace_period"] == 60_000_000_000
        assert data["subject"] == "heartbeat.svc"

    def test_empty_optionals_omitted(self) -> None:
        """Test unset optional fields are left out."""
        msg = HeartbeatMessage(
            subject="heartbeat.svc",
            generated_at=datetime(2026, 3, 1, 12, tzinfo=timezone.utc),
            interval=timedelta(seconds=15),
        )
        data = json.loads(msg.to_json())

        assert set(data) == {"subject", "generated_at", "interval"}

    def test_decode_own_output(self) -> None:
        """Test a published message is accepted by the monitor."""
        msg = HeartbeatMessage(
            subject="heartbeat.svc",
            generated_at=datetime(2026, 3, 1, 12, tzinfo=timezone.utc),
            interval=timedelta(seconds=15),
            host="web-1",
        )
        assert HeartbeatMessage.from_json(msg.to_json()).model_dump() == msg.model_dump()
