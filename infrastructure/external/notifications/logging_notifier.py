"""Notifier that writes failure alerts to the structured log."""
from __future__ import annotations

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingNotifier:
    channel = "log"

    async def send(self, message: str) -> None:
        logger.warning("payment_failure_notification", message=message)
