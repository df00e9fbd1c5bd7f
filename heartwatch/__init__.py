"""heartwatch - liveness monitoring for heartbeat-publishing services over NATS."""

__version__ = "0.1.0"
