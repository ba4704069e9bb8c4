"""
Beacon exception hierarchy.

Every error in the system inherits from BeaconError.
Each subsystem has its own error class for targeted catching.

Usage:
    try:
        await channel.deliver(payload)
    except DeliveryError as e:
        # Provider rejected the message or could not be reached
    except BeaconError as e:
        # Handle any Beacon error
"""


class BeaconError(Exception):
    """Base exception for all Beacon errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(BeaconError):
    """Configuration is invalid, missing, or malformed."""

    pass


class PayloadError(BeaconError):
    """A notification payload is structurally invalid (e.g. unknown category)."""

    pass


class DeliveryError(BeaconError):
    """A provider did not accept a notification — non-2xx, transport error, etc."""

    def __init__(
        self,
        message: str,
        channel: str = "",
        status_code: int | None = None,
        retry_after: str | None = None,
        details: dict | None = None,
    ):
        self.channel = channel
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message, details)
