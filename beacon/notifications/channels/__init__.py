"""Provider channels that ship with Beacon."""

from __future__ import annotations

import httpx

from beacon.core.config import BeaconConfig
from beacon.notifications.base import NotificationChannel
from beacon.notifications.channels.discord import DiscordChannel
from beacon.notifications.channels.pushover import PushoverChannel
from beacon.notifications.channels.slack import SlackChannel
from beacon.notifications.channels.telegram import TelegramChannel

_CHANNEL_TYPES: dict[str, type[NotificationChannel]] = {
    "pushover": PushoverChannel,
    "telegram": TelegramChannel,
    "slack": SlackChannel,
    "discord": DiscordChannel,
}


def build_channels(
    config: BeaconConfig,
    client: httpx.AsyncClient | None = None,
) -> list[NotificationChannel]:
    """One channel per enabled provider, each with its resolved truncation mode."""
    channels: list[NotificationChannel] = []
    for name in config.enabled_providers:
        channel_type = _CHANNEL_TYPES[name]
        channels.append(
            channel_type(
                config.provider(name),
                truncate_from=config.resolved_truncate_from(name),
                client=client,
            )
        )
    return channels


__all__ = [
    "build_channels",
    "PushoverChannel",
    "TelegramChannel",
    "SlackChannel",
    "DiscordChannel",
]
