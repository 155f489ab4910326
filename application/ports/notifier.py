"""
Notifier port for out-of-band failure alerts.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


class NotificationError(Exception):
    """Raised by notifier adapters when a message could not be delivered."""

    def __init__(self, message: str, *, channel: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.channel = channel
        self.cause = cause


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget message channel.

    send() raises NotificationError on delivery failure; callers in the
    approval flow must never let it propagate.
    """

    channel: str

    async def send(self, message: str) -> None: ...
