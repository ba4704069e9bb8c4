"""
Notification primitives — the NotificationChannel ABC.

Every delivery target (Pushover, Telegram, Slack, Discord) implements
NotificationChannel. The Dispatcher decides when they fire; a channel
only knows how to turn one payload into one provider request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from beacon.core.errors import DeliveryError
from beacon.core.events import NotificationPayload
from beacon.notifications.truncate import TruncationMode

# Transport-level ceiling; the dispatcher's own deadline is shorter.
HTTP_TIMEOUT = 10.0


class NotificationChannel(ABC):
    """
    Abstract delivery target.

    Implement this to add a new provider. The dispatcher only fans out
    to channels whose is_active is True. deliver() returns normally
    when the provider accepted the message and raises DeliveryError
    otherwise; it is cancelled if it outlives the delivery deadline.
    """

    def __init__(
        self,
        *,
        truncate_from: TruncationMode = "end",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._truncate_from = truncate_from
        self._client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name used in failure messages, e.g. 'Telegram'."""
        ...

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Whether the provider is enabled and has the credentials it needs."""
        ...

    @property
    def truncate_from(self) -> TruncationMode:
        return self._truncate_from

    @abstractmethod
    async def deliver(self, payload: NotificationPayload) -> None:
        """Send one payload. Raise DeliveryError on any non-success outcome."""
        ...

    # ── HTTP helper shared by all providers ───────────────────────────────────

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        """
        POST to the provider and return the response.

        Transport failures become DeliveryError; status handling is left
        to the caller because each provider reports errors differently.
        """
        try:
            if self._client is not None:
                return await self._client.post(url, **kwargs)
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
                return await client.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise DeliveryError(
                f"{self.name} request failed: {str(e) or type(e).__name__}", channel=self.name
            ) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        raise DeliveryError(
            f"{self.name} API error: {response.status_code} {response.text}",
            channel=self.name,
            status_code=response.status_code,
        )
