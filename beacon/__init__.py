"""
Beacon — relays coding-session lifecycle events to push, bot and webhook providers.

Public API:
    from beacon import Dispatcher, NotificationPayload, EventCategory, truncate
"""

__version__ = "0.1.0"

# Core
from beacon.core.config import BeaconConfig
from beacon.core.errors import BeaconError, ConfigError, DeliveryError, PayloadError
from beacon.core.events import EventCategory, NotificationPayload
from beacon.core.log import FailureLog

# Notifications
from beacon.notifications.base import NotificationChannel
from beacon.notifications.dispatcher import Dispatcher
from beacon.notifications.truncate import truncate

# Host
from beacon.host.hooks import ExitFlush, NotifierHooks, create_hooks

__all__ = [
    # Core
    "BeaconConfig",
    "BeaconError",
    "ConfigError",
    "DeliveryError",
    "PayloadError",
    "EventCategory",
    "NotificationPayload",
    "FailureLog",
    # Notifications
    "NotificationChannel",
    "Dispatcher",
    "truncate",
    # Host
    "ExitFlush",
    "NotifierHooks",
    "create_hooks",
]
