"""
Dispatcher — decides when a notification goes out, then fans it out.

Delivery rules:

    1. delay == 0 → every submission is delivered immediately.
    2. Immediate categories (error, permission-request) skip the delay.
       A repeat of the same category within 500 ms is dropped; the host
       fires some events through two hooks at once.
    3. Everything else is held for `delay` seconds. A newer submission
       for the same category replaces the held one and restarts its
       timer, so a burst yields one delivery carrying the last payload.

A delivery goes to every active channel concurrently. Each channel call
gets its own 5 s deadline; a failure or timeout is written to the
failure log and never reaches the other channels or the caller.

Call flush() or close() before the process exits. Held notifications
are otherwise lost with the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable

from beacon.core.errors import BeaconError, DeliveryError, PayloadError
from beacon.core.events import EventCategory, NotificationPayload
from beacon.notifications.base import NotificationChannel
from beacon.notifications.channels import build_channels

if TYPE_CHECKING:
    import httpx

    from beacon.core.config import BeaconConfig
    from beacon.core.log import FailureLog

logger = logging.getLogger(__name__)

DELIVERY_TIMEOUT = 5.0          # seconds allowed per channel call
IMMEDIATE_DEDUP_WINDOW = 0.5    # seconds


@dataclass
class _PendingEntry:
    """A held notification and the timer task that will deliver it."""

    task: asyncio.Task
    payload: NotificationPayload


class Dispatcher:
    """
    Per-category delay, coalescing and concurrent fan-out.

    Usage:
        dispatcher = Dispatcher.from_config(config, FailureLog(config.log))
        await dispatcher.submit(payload)
        ...
        await dispatcher.close()   # on shutdown

    State is owned by the instance and only touched from the event loop
    thread, so every read-modify-write below runs without interleaving.
    """

    def __init__(
        self,
        channels: Iterable[NotificationChannel],
        delay: float = 0,
        failure_log: "FailureLog | None" = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        channels = list(channels)
        self._channels: tuple[NotificationChannel, ...] = tuple(
            c for c in channels if c.is_active
        )
        self._delay = _clamp_delay(delay)
        self._failure_log = failure_log
        self._clock = clock
        self._pending: dict[EventCategory, _PendingEntry] = {}
        self._last_immediate: dict[EventCategory, float] = {}
        self._firing: set[asyncio.Task] = set()  # timer tasks already delivering

        for channel in channels:
            if not channel.is_active:
                logger.warning(f"{channel.name} is enabled but missing credentials, skipping")
        logger.debug(
            f"Dispatcher ready: channels={self.channel_names} delay={self._delay}s"
        )

    @classmethod
    def from_config(
        cls,
        config: "BeaconConfig",
        failure_log: "FailureLog | None" = None,
        client: "httpx.AsyncClient | None" = None,
    ) -> Dispatcher:
        return cls(build_channels(config, client=client), config.delay, failure_log)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def channel_names(self) -> list[str]:
        return [c.name for c in self._channels]

    @property
    def pending_categories(self) -> frozenset[EventCategory]:
        return frozenset(self._pending)

    # ━━━ Public API ━━━

    async def submit(self, payload: NotificationPayload) -> None:
        """
        Accept one notification.

        Returns once delivery has settled for immediate sends, or as soon
        as the timer is armed for delayed ones. Never raises for delivery
        problems; raises PayloadError for a payload without a valid category.
        """
        category = getattr(payload, "category", None)
        if not isinstance(category, EventCategory):
            raise PayloadError(
                f"Notification payload has no valid category: {category!r}",
                details={"payload": repr(payload)},
            )

        if self._delay == 0:
            await self._fan_out(payload)
            return

        if category.is_immediate:
            now = self._clock()
            last = self._last_immediate.get(category)
            if last is not None and now - last < IMMEDIATE_DEDUP_WINDOW:
                logger.debug(f"Dropping duplicate {category.value} within dedup window")
                return
            self._last_immediate[category] = now
            await self._fan_out(payload)
            return

        self._schedule(payload)

    async def flush(self) -> None:
        """
        Deliver every held notification now and wait for the deliveries.

        The pending map is emptied and all timers cancelled before any
        delivery starts, so a second flush (or a late timer) cannot send
        the same notification again.
        """
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            entry.task.cancel()

        if not entries:
            return

        logger.debug(f"Flushing {len(entries)} pending notification(s)")
        await asyncio.gather(
            *(self._fan_out(entry.payload) for entry in entries),
            return_exceptions=True,
        )

    async def close(self) -> None:
        """Flush, then wait for deliveries that timers had already started."""
        await self.flush()
        if self._firing:
            await asyncio.gather(*list(self._firing), return_exceptions=True)

    # ━━━ Timers ━━━

    def _schedule(self, payload: NotificationPayload) -> None:
        """Replace any held notification for this category and re-arm its timer."""
        category = payload.category
        existing = self._pending.pop(category, None)
        if existing is not None:
            existing.task.cancel()
            logger.debug(f"Coalesced {category.value}: timer restarted with newer payload")

        task = asyncio.create_task(
            self._deliver_after_delay(category, payload),
            name=f"beacon:{category.value}",
        )
        self._pending[category] = _PendingEntry(task=task, payload=payload)

    async def _deliver_after_delay(
        self, category: EventCategory, payload: NotificationPayload
    ) -> None:
        try:
            await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            return  # replaced or flushed

        task = asyncio.current_task()
        entry = self._pending.get(category)
        if entry is None or entry.task is not task:
            return
        del self._pending[category]

        self._firing.add(task)
        try:
            await self._fan_out(payload)
        except Exception as e:
            self._record(f"Scheduled {category.value} delivery failed: {e}")
        finally:
            self._firing.discard(task)

    # ━━━ Fan-out ━━━

    async def _fan_out(self, payload: NotificationPayload) -> None:
        """Deliver to every channel concurrently; record each failure. Never raises."""
        channels = self._channels
        if not channels:
            return

        results = await asyncio.gather(
            *(deliver_with_deadline(channel, payload) for channel in channels),
            return_exceptions=True,
        )

        for channel, result in zip(channels, results):
            if isinstance(result, BaseException):
                self._record(f"{channel.name} failed: {_describe(result)}")
            else:
                logger.debug(f"{payload.category.value} delivered via {channel.name}")

    def _record(self, message: str) -> None:
        if self._failure_log is None:
            logger.error(message)
            return
        try:
            self._failure_log.error(message)
        except Exception as e:
            logger.warning(f"Failure log raised while recording {message!r}: {e}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


async def deliver_with_deadline(
    channel: NotificationChannel, payload: NotificationPayload
) -> None:
    """Run one channel delivery, cancelling it after DELIVERY_TIMEOUT."""
    timeout = DELIVERY_TIMEOUT
    try:
        await asyncio.wait_for(channel.deliver(payload), timeout=timeout)
    except asyncio.TimeoutError:
        raise DeliveryError(
            f"timed out after {timeout:g}s", channel=channel.name
        ) from None


def _clamp_delay(delay: float) -> float:
    """Non-finite or negative delays mean "deliver immediately"."""
    seconds = float(delay)
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def _describe(error: BaseException) -> str:
    if isinstance(error, BeaconError):
        return error.message
    if isinstance(error, asyncio.CancelledError):
        return "cancelled"
    return str(error) or type(error).__name__
