"""
TelegramChannel — delivers notifications via a Telegram bot.

Requires config:
    [telegram]
    enabled   = true
    bot_token = "BOT_TOKEN"
    chat_id   = "YOUR_CHAT_ID"

To get your chat_id:
    1. Create a bot via @BotFather, copy the token.
    2. Send your bot any message.
    3. Visit https://api.telegram.org/bot<TOKEN>/getUpdates
       and read the "chat.id" field.

Messages use parse_mode=HTML; the API caps a message at 4096 characters,
so the title and body are bounded separately to stay under it.
"""

from __future__ import annotations

import html
import logging

import httpx

from beacon.core.config import TelegramConfig
from beacon.core.events import NotificationPayload
from beacon.notifications.base import NotificationChannel
from beacon.notifications.truncate import INDICATOR, TruncationMode

logger = logging.getLogger(__name__)

_TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"

TITLE_LIMIT = 250
BODY_LIMIT = 3840


class TelegramChannel(NotificationChannel):
    """
    Sends notifications as Telegram messages.

    is_active = True only when enabled and token + chat_id are configured.
    """

    def __init__(
        self,
        config: TelegramConfig,
        *,
        truncate_from: TruncationMode = "end",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(truncate_from=truncate_from, client=client)
        self._enabled = config.enabled
        self._token = config.bot_token.strip()
        self._chat_id = config.chat_id.strip()

    @property
    def name(self) -> str:
        return "Telegram"

    @property
    def is_active(self) -> bool:
        return bool(self._enabled and self._token and self._chat_id)

    def format(self, payload: NotificationPayload) -> str:
        title = escape_within(payload.title, TITLE_LIMIT, self.truncate_from)
        body = escape_within(payload.body, BODY_LIMIT, self.truncate_from)
        return f"<b>{title}</b>\n{body}"

    async def deliver(self, payload: NotificationPayload) -> None:
        url = _TELEGRAM_API.format(token=self._token)
        resp = await self._post(
            url,
            json={
                "chat_id": self._chat_id,
                "text": self.format(payload),
                "parse_mode": "HTML",
            },
        )
        self._raise_for_status(resp)
        logger.debug(f"Telegram notification sent to {self._chat_id}")


def escape_within(text: str, limit: int, direction: TruncationMode = "end") -> str:
    """
    HTML-escape text and bound the escaped result to limit characters.

    The cut is made on raw characters, so an entity such as &amp; is
    either kept whole or dropped. Telegram rejects a message containing
    a bare "&" under parse_mode=HTML.
    """
    escaped = html.escape(text, quote=False)
    if len(escaped) <= limit:
        return escaped
    if limit <= len(INDICATOR):
        return INDICATOR

    budget = limit - len(INDICATOR)
    kept: list[str] = []
    used = 0
    for char in (text if direction == "end" else reversed(text)):
        piece = html.escape(char, quote=False)
        if used + len(piece) > budget:
            break
        kept.append(piece)
        used += len(piece)

    if direction == "start":
        return INDICATOR + "".join(reversed(kept))
    return "".join(kept) + INDICATOR
