"""Tests for the persistent failure log."""

import logging
import os
import re
import time

from beacon.core.config import LogConfig
from beacon.core.log import FailureLog, get_log_file_path, setup_logging

LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\] \[(ERROR|WARNING)\] \[beacon\] (.*)$")


def read_lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_disabled_log_writes_nothing(tmp_path):
    path = tmp_path / "logs" / "beacon.log"
    log = FailureLog(LogConfig(enabled=False), log_path=path)

    log.error("Slack failed: boom")

    assert log.enabled is False
    assert not path.exists()


def test_error_written_with_format(tmp_path):
    path = tmp_path / "logs" / "beacon.log"
    log = FailureLog(LogConfig(enabled=True), log_path=path)

    log.error("Slack failed: boom")
    log.close()

    [line] = read_lines(path)
    match = LINE.match(line)
    assert match is not None
    assert match.group(1) == "ERROR"
    assert match.group(2) == "Slack failed: boom"


def test_warn_level_keeps_warnings(tmp_path):
    path = tmp_path / "beacon.log"
    log = FailureLog(LogConfig(enabled=True, level="warn"), log_path=path)

    log.warn("No notification providers enabled")
    log.error("Discord failed: 429")
    log.close()

    assert len(read_lines(path)) == 2


def test_error_level_drops_warnings(tmp_path):
    path = tmp_path / "beacon.log"
    log = FailureLog(LogConfig(enabled=True, level="error"), log_path=path)

    log.warn("ignored")
    log.error("kept")
    log.close()

    lines = read_lines(path)
    assert len(lines) == 1
    assert lines[0].endswith("kept")


def test_failures_do_not_reach_beacon_handlers(tmp_path, caplog):
    """The file handler is private; records still go through the module logger."""
    log = FailureLog(LogConfig(enabled=True), log_path=tmp_path / "beacon.log")

    with caplog.at_level(logging.ERROR, logger="beacon"):
        log.error("Telegram failed: 401")
    log.close()

    assert [r.getMessage() for r in caplog.records] == ["Telegram failed: 401"]
    assert caplog.records[0].name == "beacon.core.log"


def test_old_file_rotated(tmp_path):
    path = tmp_path / "beacon.log"
    path.write_text("[old] [ERROR] [beacon] stale\n", encoding="utf-8")
    eight_days_ago = time.time() - 8 * 86400
    os.utime(path, (eight_days_ago, eight_days_ago))

    log = FailureLog(LogConfig(enabled=True), log_path=path)
    log.error("fresh")
    log.close()

    rotated = [p for p in tmp_path.iterdir() if p.name.startswith("beacon.log.")]
    assert len(rotated) == 1
    assert "stale" in rotated[0].read_text(encoding="utf-8")
    lines = read_lines(path)
    assert len(lines) == 1
    assert lines[0].endswith("fresh")


def test_recent_file_appended(tmp_path):
    path = tmp_path / "beacon.log"
    path.write_text("[old] [ERROR] [beacon] earlier\n", encoding="utf-8")

    log = FailureLog(LogConfig(enabled=True), log_path=path)
    log.error("later")
    log.close()

    assert len(read_lines(path)) == 2
    assert [p.name for p in tmp_path.iterdir()] == ["beacon.log"]


def test_unwritable_location_never_raises(tmp_path, capsys):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    log = FailureLog(LogConfig(enabled=True), log_path=blocker / "beacon.log")

    log.error("still fine")

    assert log.enabled is False
    assert "Failed to open failure log" in capsys.readouterr().err


def test_default_path_under_home(monkeypatch, tmp_path):
    from pathlib import Path

    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    assert get_log_file_path() == tmp_path / ".beacon" / "logs" / "beacon.log"


def test_setup_logging_console_only():
    root = setup_logging(console_level=logging.ERROR)
    try:
        assert root.name == "beacon"
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.ERROR
    finally:
        root.handlers = []


def test_setup_logging_with_file(tmp_path):
    root = setup_logging(log_dir=tmp_path / "debug")
    try:
        root.info("hello")
        files = list((tmp_path / "debug").glob("debug_*.log"))
        assert len(files) == 1
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = []
