"""
DiscordChannel — posts to a Discord channel webhook.

Requires config:
    [discord]
    enabled     = true
    webhook_url = "https://discord.com/api/webhooks/..."

The webhook "content" field holds at most 2000 characters. Discord
rate limits webhooks (roughly 10 requests / 10 s); a 429 is reported
with its Retry-After value and not retried.
"""

from __future__ import annotations

import logging

import httpx

from beacon.core.config import DiscordConfig
from beacon.core.errors import DeliveryError
from beacon.core.events import NotificationPayload
from beacon.notifications.base import NotificationChannel
from beacon.notifications.truncate import TruncationMode, truncate

logger = logging.getLogger(__name__)

CONTENT_LIMIT = 2000


class DiscordChannel(NotificationChannel):
    """Sends notifications to Discord via webhook."""

    def __init__(
        self,
        config: DiscordConfig,
        *,
        truncate_from: TruncationMode = "end",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(truncate_from=truncate_from, client=client)
        self._enabled = config.enabled
        self._webhook_url = config.webhook_url.strip()

    @property
    def name(self) -> str:
        return "Discord"

    @property
    def is_active(self) -> bool:
        return bool(self._enabled and self._webhook_url)

    def format(self, payload: NotificationPayload) -> str:
        return truncate(f"**{payload.title}**\n{payload.body}", CONTENT_LIMIT, self.truncate_from)

    async def deliver(self, payload: NotificationPayload) -> None:
        resp = await self._post(self._webhook_url, json={"content": self.format(payload)})
        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            raise DeliveryError(
                f"Discord rate limited. Retry-After: {retry_after}s",
                channel=self.name,
                status_code=429,
                retry_after=retry_after,
            )
        self._raise_for_status(resp)
        logger.debug("Discord notification sent")
