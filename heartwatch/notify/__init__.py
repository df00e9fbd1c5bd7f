"""
Notifiers

Sinks that alert and resolved events are delivered to.
"""

from heartwatch.notify.base import (
    NopNotifier,
    NotificationError,
    NotificationEvent,
    Notifier,
)
from heartwatch.notify.console import ConsoleNotifier
from heartwatch.notify.pushover import PushoverNotifier

__all__ = [
    "Notifier",
    "NotificationError",
    "NotificationEvent",
    "NopNotifier",
    "ConsoleNotifier",
    "PushoverNotifier",
]
