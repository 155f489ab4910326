from __future__ import annotations

from application.ports.notifier import Notifier
from core.config import settings
from .logging_notifier import LoggingNotifier
from .webhook_notifier import WebhookNotifier


def get_notifier() -> Notifier:
    """Webhook notifier when a URL is configured, structured-log notifier otherwise."""
    cfg = settings.notification
    if cfg.webhook_url:
        return WebhookNotifier(cfg.webhook_url, timeout=cfg.timeout_seconds)
    return LoggingNotifier()


__all__ = ["LoggingNotifier", "WebhookNotifier", "get_notifier"]
