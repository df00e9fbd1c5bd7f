"""
Tests for settings loading.
"""

from datetime import timedelta

import pytest

from heartwatch.config import AgentSettings, MonitorSettings, StatusClientSettings


class TestMonitorSettings:
    """Tests for MonitorSettings."""

    def test_defaults(self) -> None:
        """Test default values."""
        settings = MonitorSettings()

        assert settings.subject_prefix == "heartbeat."
        assert settings.prime_stream == ""
        assert settings.prime_timeout == timedelta(seconds=2)
        assert settings.prime_max_duration == timedelta(seconds=10)
        assert settings.poll_interval == timedelta(seconds=1)
        assert settings.repeat_every == timedelta(hours=12)
        assert settings.status_enabled is True
        assert settings.status_port == 8080
        assert settings.notify_concurrency == 8

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test HEARTWATCH_ environment variables are read."""
        monkeypatch.setenv("HEARTWATCH_NATS_URL", "nats://bus:4222")
        monkeypatch.setenv("HEARTWATCH_REPEAT_EVERY", "1h30m")
        monkeypatch.setenv("HEARTWATCH_POLL_INTERVAL", "250ms")
        monkeypatch.setenv("HEARTWATCH_PRIME_STREAM", "HEARTBEATS")
        monkeypatch.setenv("HEARTWATCH_STATUS_ENABLED", "false")

        settings = MonitorSettings()

        assert settings.nats_url == "nats://bus:4222"
        assert settings.repeat_every == timedelta(hours=1, minutes=30)
        assert settings.poll_interval == timedelta(milliseconds=250)
        assert settings.prime_stream == "HEARTBEATS"
        assert settings.status_enabled is False

    def test_non_positive_intervals_fall_back(self) -> None:
        """Test zero poll and repeat intervals use the defaults."""
        settings = MonitorSettings(poll_interval="0s", repeat_every=timedelta(0))

        assert settings.poll_interval == timedelta(seconds=1)
        assert settings.repeat_every == timedelta(hours=12)

    @pytest.mark.parametrize(
        ("prefix", "expected"),
        [
            ("heartbeat.", "heartbeat.>"),
            ("heartbeat", "heartbeat.>"),
            ("org.heartbeat.", "org.heartbeat.>"),
            ("", ">"),
        ],
    )
    def test_subscribe_subject(self, prefix: str, expected: str) -> None:
        """Test the wildcard subscription subject."""
        assert MonitorSettings(subject_prefix=prefix).subscribe_subject == expected


class TestAgentSettings:
    """Tests for AgentSettings."""

    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test HEARTWATCH_AGENT_ variables are read."""
        monkeypatch.setenv("HEARTWATCH_AGENT_SUBJECT", "backup")
        monkeypatch.setenv("HEARTWATCH_AGENT_INTERVAL", "1m")
        monkeypatch.setenv("HEARTWATCH_AGENT_GRACE", "5m")

        settings = AgentSettings()

        assert settings.subject == "backup"
        assert settings.interval == timedelta(minutes=1)
        assert settings.grace == timedelta(minutes=5)


class TestStatusClientSettings:
    """Tests for StatusClientSettings."""

    def test_defaults(self) -> None:
        """Test default endpoint and timeout."""
        settings = StatusClientSettings()
        assert settings.url == "http://127.0.0.1:8080/"
        assert settings.timeout == timedelta(seconds=3)
