"""
Tests for the heartbeat publisher.
"""

import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from heartwatch.heartbeat.message import InvalidHeartbeatError
from heartwatch.heartbeat.publisher import HeartbeatPublisher


@pytest.fixture
def nc() -> MagicMock:
    """Mock NATS client."""
    client = MagicMock()
    client.publish = AsyncMock()
    return client


class TestHeartbeatPublisher:
    """Tests for HeartbeatPublisher."""

    def test_full_subject_with_prefix(self, nc: MagicMock) -> None:
        """Test the prefix is joined with a single dot."""
        assert HeartbeatPublisher(nc, "heartbeat.").full_subject("svc") == "heartbeat.svc"
        assert HeartbeatPublisher(nc, "heartbeat").full_subject("svc") == "heartbeat.svc"

    def test_full_subject_without_prefix(self, nc: MagicMock) -> None:
        """Test subjects are used as-is without a prefix."""
        assert HeartbeatPublisher(nc).full_subject("heartbeat.svc") == "heartbeat.svc"

    def test_build_drops_zero_optionals(self, nc: MagicMock) -> None:
        """Test zero grace and skippable are not sent."""
        msg = HeartbeatPublisher(nc).build("svc", timedelta(seconds=5), timedelta(0), 0)
        assert msg.grace_period is None
        assert msg.skippable is None

    def test_build_rejects_invalid(self, nc: MagicMock) -> None:
        """Test invalid fields raise InvalidHeartbeatError."""
        with pytest.raises(InvalidHeartbeatError):
            HeartbeatPublisher(nc).build("svc", timedelta(0))

    @pytest.mark.asyncio
    async def test_publish_defaults_host(self, nc: MagicMock) -> None:
        """Test the local hostname is filled in."""
        publisher = HeartbeatPublisher(nc, "heartbeat")
        msg = publisher.build("svc", timedelta(seconds=5))

        with patch("heartwatch.heartbeat.publisher.socket.gethostname", return_value="box-1"):
            sent = await publisher.publish(msg)

        assert sent.host == "box-1"
        nc.publish.assert_awaited_once()
        topic, payload = nc.publish.await_args.args
        assert topic == "heartbeat.svc"
        data = json.loads(payload)
        assert data["host"] == "box-1"
        assert data["interval"] == 5_000_000_000

    @pytest.mark.asyncio
    async def test_publish_keeps_explicit_host(self, nc: MagicMock) -> None:
        """Test an explicit host is not overwritten."""
        publisher = HeartbeatPublisher(nc)
        msg = publisher.build("svc", timedelta(seconds=5)).model_copy(update={"host": "given"})

        sent = await publisher.publish(msg)

        assert sent.host == "given"
