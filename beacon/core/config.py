"""
Beacon Configuration — loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables (BEACON_*)
3. Project config (./beacon.toml)
4. User config (~/.beacon/config.toml)
5. Defaults (hardcoded — every provider disabled)

Environment variable mapping:
    BEACON_DELAY → delay
    BEACON_TRUNCATE_FROM → truncate_from
    BEACON_TELEGRAM_BOT_TOKEN → telegram.bot_token
    BEACON_SLACK_WEBHOOK_URL → slack.webhook_url
    ... (see _ENV_MAPPING)
"""

from __future__ import annotations

import math
import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from beacon.core.errors import ConfigError
from beacon.core.events import EventCategory
from beacon.notifications.truncate import TruncationMode

DEFAULT_DELAY = 120  # seconds

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Provider Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ProviderConfig(BaseModel):
    """Fields shared by every outbound provider."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    enabled: bool = False
    truncate_from: TruncationMode | None = None


class PushoverConfig(ProviderConfig):
    """Pushover push notifications (https://pushover.net/api)."""

    token: str = ""
    user_key: str = ""
    priority: int = Field(default=0, ge=-2, le=2)


class TelegramConfig(ProviderConfig):
    """Telegram bot notifications."""

    bot_token: str = ""
    chat_id: str = ""


class SlackConfig(ProviderConfig):
    """Slack incoming webhook."""

    webhook_url: str = ""


class DiscordConfig(ProviderConfig):
    """Discord channel webhook."""

    webhook_url: str = ""


class LogConfig(BaseModel):
    """Persistent failure log."""

    enabled: bool = False
    level: Literal["error", "warn"] = "warn"


class EventsConfig(BaseModel):
    """Which event categories produce notifications at all."""

    task_complete: bool = True
    subtask_complete: bool = True
    error: bool = True
    permission_request: bool = True
    clarification_request: bool = True

    def is_enabled(self, category: EventCategory) -> bool:
        return bool(getattr(self, category.config_key, True))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

PROVIDER_NAMES = ("pushover", "telegram", "slack", "discord")


class BeaconConfig(BaseModel):
    """Root configuration for Beacon."""

    pushover: PushoverConfig = Field(default_factory=PushoverConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    truncate_from: TruncationMode = "end"
    delay: int = DEFAULT_DELAY  # seconds; 0 = deliver everything immediately

    @field_validator("delay", mode="before")
    @classmethod
    def _normalize_delay(cls, value: Any) -> int:
        try:
            return normalize_delay(value)
        except ConfigError as e:
            raise ValueError(e.message) from e

    def provider(self, name: str) -> ProviderConfig:
        if name not in PROVIDER_NAMES:
            raise ConfigError(f"Unknown provider: {name}")
        return getattr(self, name)

    def resolved_truncate_from(self, name: str) -> TruncationMode:
        """Provider-level override, falling back to the global default."""
        return self.provider(name).truncate_from or self.truncate_from

    @property
    def enabled_providers(self) -> list[str]:
        return [name for name in PROVIDER_NAMES if self.provider(name).enabled]

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
        user_path: Path | None = None,
    ) -> BeaconConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > user toml > defaults
        """
        merged: dict[str, Any] = {}

        # Layer 1: User config (~/.beacon/config.toml)
        user_config_path = user_path or get_user_config_path()
        if user_config_path.exists():
            _deep_merge(merged, _load_toml(user_config_path))

        # Layer 2: Project config (./beacon.toml)
        project_config_path = project_path or Path.cwd() / "beacon.toml"
        if project_config_path.exists():
            _deep_merge(merged, _load_toml(project_config_path))

        # Layer 3: Environment variables
        _deep_merge(merged, _load_from_env())

        # Layer 4: Explicit overrides
        if overrides:
            _deep_merge(merged, overrides)

        _substitute_env_vars(merged)

        try:
            return BeaconConfig(**merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def get_beacon_home() -> Path:
    """Get the Beacon home directory (~/.beacon)."""
    return Path.home() / ".beacon"


def get_user_config_path() -> Path:
    return get_beacon_home() / "config.toml"


def normalize_delay(value: Any) -> int:
    """
    Coerce a configured delay to whole, non-negative seconds.

    NaN, infinities and negatives become 0 (deliver immediately);
    fractions are floored. Non-numeric values are rejected.
    """
    if value is None:
        return DEFAULT_DELAY
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ConfigError(f"delay must be a number of seconds, got {value!r}")
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"delay must be a number of seconds, got {value!r}")
    if not math.isfinite(seconds) or seconds < 0:
        return 0
    return math.floor(seconds)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


_ENV_MAPPING: dict[str, tuple[str, ...]] = {
    "BEACON_DELAY": ("delay",),
    "BEACON_TRUNCATE_FROM": ("truncate_from",),
    "BEACON_PUSHOVER_ENABLED": ("pushover", "enabled"),
    "BEACON_PUSHOVER_TOKEN": ("pushover", "token"),
    "BEACON_PUSHOVER_USER_KEY": ("pushover", "user_key"),
    "BEACON_PUSHOVER_PRIORITY": ("pushover", "priority"),
    "BEACON_PUSHOVER_TRUNCATE_FROM": ("pushover", "truncate_from"),
    "BEACON_TELEGRAM_ENABLED": ("telegram", "enabled"),
    "BEACON_TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
    "BEACON_TELEGRAM_CHAT_ID": ("telegram", "chat_id"),
    "BEACON_TELEGRAM_TRUNCATE_FROM": ("telegram", "truncate_from"),
    "BEACON_SLACK_ENABLED": ("slack", "enabled"),
    "BEACON_SLACK_WEBHOOK_URL": ("slack", "webhook_url"),
    "BEACON_SLACK_TRUNCATE_FROM": ("slack", "truncate_from"),
    "BEACON_DISCORD_ENABLED": ("discord", "enabled"),
    "BEACON_DISCORD_WEBHOOK_URL": ("discord", "webhook_url"),
    "BEACON_DISCORD_TRUNCATE_FROM": ("discord", "truncate_from"),
    "BEACON_LOG_ENABLED": ("log", "enabled"),
    "BEACON_LOG_LEVEL": ("log", "level"),
}

# Values that are free-form text and must never be type-converted
_RAW_ENV_KEYS = {"token", "user_key", "bot_token", "chat_id", "webhook_url"}


def _load_from_env() -> dict[str, Any]:
    """Load configuration from BEACON_* environment variables."""
    result: dict[str, Any] = {}

    for env_var, path in _ENV_MAPPING.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        *sections, key = path
        target = result
        for section in sections:
            target = target.setdefault(section, {})
        target[key] = value if key in _RAW_ENV_KEYS else _convert_value(value)

    return result


def _convert_value(value: str) -> Any:
    """Convert string value to appropriate type."""
    # Boolean
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False
    # Integer
    try:
        return int(value)
    except ValueError:
        pass
    # Float
    try:
        return float(value)
    except ValueError:
        pass
    # String
    return value


def _deep_merge(base: dict, override: dict) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


_ENV_REF = re.compile(r"\$\{([^}]+)\}")


def _substitute_env_vars(data: dict) -> None:
    """Recursively substitute ${ENV_VAR} patterns in string values."""
    for key, value in data.items():
        if isinstance(value, dict):
            _substitute_env_vars(value)
        elif isinstance(value, str):
            data[key] = _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), value)
