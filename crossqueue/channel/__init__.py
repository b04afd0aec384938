"""
Notification channel module.
Contains the name-registered endpoint contract and its in-process implementation.
"""

from crossqueue.channel.base import NotificationChannel
from crossqueue.channel.memory import (
    Endpoint,
    InMemoryNotificationChannel,
    get_notification_channel,
)

__all__ = [
    "NotificationChannel",
    "InMemoryNotificationChannel",
    "Endpoint",
    "get_notification_channel",
]
