"""
PushoverChannel — push notifications through https://pushover.net.

Requires config:
    [pushover]
    enabled  = true
    token    = "APP_TOKEN"      # 30 characters, from your Pushover application
    user_key = "USER_KEY"       # 30 characters, from your Pushover dashboard
    priority = 0                # -2 (silent) .. 2 (emergency)

The messages endpoint takes a form-encoded body, not JSON.
Limits: message 1024 characters, title 250.
"""

from __future__ import annotations

import logging

import httpx

from beacon.core.config import PushoverConfig
from beacon.core.events import NotificationPayload
from beacon.notifications.base import NotificationChannel
from beacon.notifications.truncate import TruncationMode, truncate

logger = logging.getLogger(__name__)

_PUSHOVER_API = "https://api.pushover.net/1/messages.json"

TITLE_LIMIT = 250
MESSAGE_LIMIT = 1024


class PushoverChannel(NotificationChannel):
    """Sends notifications as Pushover messages."""

    def __init__(
        self,
        config: PushoverConfig,
        *,
        truncate_from: TruncationMode = "end",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(truncate_from=truncate_from, client=client)
        self._enabled = config.enabled
        self._token = config.token.strip()
        self._user_key = config.user_key.strip()
        self._priority = config.priority

    @property
    def name(self) -> str:
        return "Pushover"

    @property
    def is_active(self) -> bool:
        return bool(self._enabled and self._token and self._user_key)

    def form(self, payload: NotificationPayload) -> dict[str, str]:
        return {
            "token": self._token,
            "user": self._user_key,
            "message": truncate(payload.body, MESSAGE_LIMIT, self.truncate_from),
            "title": truncate(payload.title, TITLE_LIMIT, self.truncate_from),
            "priority": str(self._priority),
        }

    async def deliver(self, payload: NotificationPayload) -> None:
        resp = await self._post(_PUSHOVER_API, data=self.form(payload))
        self._raise_for_status(resp)
        logger.debug("Pushover notification sent")
