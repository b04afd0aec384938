"""
Notification channel contract.

A channel maps names to live endpoints. Delivery is fire-and-forget: it only
reaches a listener that is registered at the moment of delivery, and the
sender gets no confirmation.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class NotificationChannel(Protocol):
    """Name server for live message endpoints."""

    def register(self, name: str, endpoint: Any) -> None:
        ...

    def lookup(self, name: str) -> Any | None:
        ...

    def unregister(self, name: str, endpoint: Any | None = None) -> None:
        ...

    def deliver(self, endpoint: Any, payload: Any) -> None:
        ...
