"""
SlackChannel — posts to a Slack incoming webhook.

Requires config:
    [slack]
    enabled     = true
    webhook_url = "https://hooks.slack.com/services/..."

Formatting is Slack mrkdwn: *bold* title, body on the next line.
"""

from __future__ import annotations

import logging

import httpx

from beacon.core.config import SlackConfig
from beacon.core.events import NotificationPayload
from beacon.notifications.base import NotificationChannel
from beacon.notifications.truncate import TruncationMode, truncate

logger = logging.getLogger(__name__)

TEXT_LIMIT = 40000


class SlackChannel(NotificationChannel):
    """Sends notifications to a Slack channel via webhook."""

    def __init__(
        self,
        config: SlackConfig,
        *,
        truncate_from: TruncationMode = "end",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(truncate_from=truncate_from, client=client)
        self._enabled = config.enabled
        self._webhook_url = config.webhook_url.strip()

    @property
    def name(self) -> str:
        return "Slack"

    @property
    def is_active(self) -> bool:
        return bool(self._enabled and self._webhook_url)

    def format(self, payload: NotificationPayload) -> str:
        return truncate(f"*{payload.title}*\n{payload.body}", TEXT_LIMIT, self.truncate_from)

    async def deliver(self, payload: NotificationPayload) -> None:
        resp = await self._post(self._webhook_url, json={"text": self.format(payload)})
        self._raise_for_status(resp)
        logger.debug("Slack notification sent")
