"""
HTTP webhook notifier.

Posts failure alerts as JSON to a configured URL. Every transport or HTTP
status error is raised as NotificationError so the caller can isolate it.
"""
from __future__ import annotations

from typing import Optional

import httpx

from application.ports.notifier import NotificationError
from core.logging_config import get_logger


logger = get_logger(__name__)


class WebhookNotifier:
    channel = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 3.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self._timeout = httpx.Timeout(timeout)
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(self, message: str) -> None:
        try:
            resp = await self._get_client().post(self.url, json={"text": message})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationError(
                f"webhook delivery failed: {exc}", channel=self.channel, cause=exc
            ) from exc
        logger.debug("webhook_notification_sent", url=self.url, status_code=resp.status_code)

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None
