"""
Beacon logging — console setup plus the persistent failure log.

Two separate concerns live here:

* setup_logging() configures the "beacon" logger tree for interactive
  use (CLI). Library code only ever calls logging.getLogger(__name__).
* FailureLog is the durable record of delivery failures. It writes to
  ~/.beacon/logs/beacon.log, rotates the file once it is older than
  seven days and keeps the four most recent rotations. Recording a
  failure never raises.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from beacon.core.config import LogConfig, get_beacon_home

logger = logging.getLogger(__name__)

ROTATE_AFTER_DAYS = 7
KEEP_ROTATED = 4


def get_log_file_path() -> Path:
    """Path of the persistent failure log."""
    return get_beacon_home() / "logs" / "beacon.log"


def setup_logging(
    log_dir: Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """
    Setup Beacon logging.

    Args:
        log_dir: Directory for a daily debug log (None = console only)
        console_level: Minimum level for console output
        file_level: Minimum level for file output

    Returns:
        The configured logger
    """
    root = logging.getLogger("beacon")
    root.setLevel(logging.DEBUG)
    root.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"debug_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(file_handler)
        root.debug(f"Logging initialized. File: {log_file}")

    return root


class FailureLog:
    """
    Records delivery failures to a rotating file.

    Usage:
        failures = FailureLog(config.log)
        failures.error("Telegram failed: 401 Unauthorized")

    Disabled config → every call is a no-op. level="error" drops warnings.
    """

    def __init__(self, config: LogConfig | None = None, log_path: Path | None = None) -> None:
        config = config or LogConfig()
        self._level = config.level
        self._log_path = log_path or get_log_file_path()
        self._handler: TimedRotatingFileHandler | None = None
        # Private logger: not registered with the logging manager, so it
        # never propagates to (or picks up handlers from) the "beacon" tree.
        self._logger = logging.Logger("beacon.failures", logging.DEBUG)

        if config.enabled:
            self._open()

    @property
    def enabled(self) -> bool:
        return self._handler is not None

    @property
    def path(self) -> Path:
        return self._log_path

    def _open(self) -> None:
        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            handler = TimedRotatingFileHandler(
                self._log_path,
                when="D",
                interval=ROTATE_AFTER_DAYS,
                backupCount=KEEP_ROTATED,
                encoding="utf-8",
                delay=True,
            )
        except OSError as e:
            print(f"[beacon] Failed to open failure log: {e}", file=sys.stderr)
            return
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(levelname)s] [beacon] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        self._logger.addHandler(handler)
        self._handler = handler

    def error(self, message: str) -> None:
        self._record(logging.ERROR, message)

    def warn(self, message: str) -> None:
        if self._level == "error":
            return
        self._record(logging.WARNING, message)

    def _record(self, level: int, message: str) -> None:
        logger.log(level, message)
        if self._handler is None:
            return
        try:
            self._logger.log(level, message)
        except Exception as e:
            print(f"[beacon] Failure log write failed: {e}", file=sys.stderr)

    def close(self) -> None:
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
