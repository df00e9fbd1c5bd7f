"""heartwatch configuration."""

from datetime import timedelta
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings

from heartwatch.heartbeat.durations import parse_duration


class MonitorSettings(BaseSettings):
    """Settings for the heartbeat monitor."""

    # Bus
    nats_url: str = "nats://127.0.0.1:4222"
    subject_prefix: str = "heartbeat."
    reconnect_initial: timedelta = timedelta(milliseconds=500)
    reconnect_max: timedelta = timedelta(seconds=30)

    # Priming
    prime_stream: str = ""
    prime_timeout: timedelta = timedelta(seconds=2)
    prime_max_duration: timedelta = timedelta(seconds=10)

    # Detection
    poll_interval: timedelta = timedelta(seconds=1)
    repeat_every: timedelta = timedelta(hours=12)

    # Status server
    status_enabled: bool = True
    status_host: str = "127.0.0.1"
    status_port: int = 8080
    status_shutdown_timeout: timedelta = timedelta(seconds=5)

    # Notifications
    notify_concurrency: int = 8
    pushover_user: str = ""
    pushover_token: str = ""

    debug: bool = False

    class Config:
        env_prefix = "HEARTWATCH_"

    @field_validator(
        "reconnect_initial",
        "reconnect_max",
        "prime_timeout",
        "prime_max_duration",
        "poll_interval",
        "repeat_every",
        "status_shutdown_timeout",
        mode="before",
    )
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("poll_interval")
    @classmethod
    def _default_poll(cls, value: timedelta) -> timedelta:
        return value if value > timedelta(0) else timedelta(seconds=1)

    @field_validator("repeat_every")
    @classmethod
    def _default_repeat(cls, value: timedelta) -> timedelta:
        return value if value > timedelta(0) else timedelta(hours=12)

    @property
    def subscribe_subject(self) -> str:
        """Wildcard subject covering every heartbeat under the prefix."""
        prefix = self.subject_prefix.rstrip(".")
        if not prefix:
            return ">"
        return f"{prefix}.>"


class AgentSettings(BaseSettings):
    """Settings for the heartbeat agent."""

    nats_url: str = "nats://127.0.0.1:4222"
    subject: str = ""
    interval: timedelta = timedelta(seconds=15)
    grace: timedelta = timedelta(0)
    skippable: int = 0
    description: str = ""
    debug: bool = False

    class Config:
        env_prefix = "HEARTWATCH_AGENT_"

    @field_validator("interval", "grace", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value


class StatusClientSettings(BaseSettings):
    """Settings for the status command."""

    url: str = "http://127.0.0.1:8080/"
    timeout: timedelta = timedelta(seconds=3)

    class Config:
        env_prefix = "HEARTWATCH_STATUS_"

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value
