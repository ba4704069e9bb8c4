"""Tests for CLI commands."""

import json

import pytest
from pathlib import Path
from typer.testing import CliRunner

from beacon.cli.main import app
from beacon.core.errors import DeliveryError
from beacon.notifications.channels import SlackChannel

SLACK_TOML = '[slack]\nenabled = true\nwebhook_url = "https://hooks.slack.com/services/x"\n'


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Empty home and project directory; no BEACON_* variables leak in."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.chdir(project)
    for name in ("BEACON_SLACK_ENABLED", "BEACON_DELAY", "BEACON_LOG_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    return project


def test_version(runner):
    """beacon version shows version."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_config_defaults(runner, workspace):
    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0
    assert "Providers" in result.stdout
    assert "pushover" in result.stdout
    assert "120s" in result.stdout
    assert "Muted events: none" in result.stdout


def test_config_reads_project_file(runner, workspace):
    (workspace / "beacon.toml").write_text(
        "delay = 0\n\n[events]\nsubtask_complete = false\n" + SLACK_TOML
    )

    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0
    assert "off (immediate)" in result.stdout
    assert "subtask-complete" in result.stdout


def test_config_invalid_file(runner, workspace):
    (workspace / "beacon.toml").write_text("[slack\n")

    result = runner.invoke(app, ["config"])

    assert result.exit_code == 1
    assert "Failed to load config" in result.stdout


def test_hook_rejects_invalid_json(runner, workspace):
    result = runner.invoke(app, ["hook", "event"], input="{not json")

    assert result.exit_code == 1
    assert "not valid JSON" in result.stdout


def test_hook_rejects_non_object(runner, workspace):
    result = runner.invoke(app, ["hook", "event"], input="[1, 2]")

    assert result.exit_code == 1
    assert "JSON object" in result.stdout


def test_hook_without_providers_succeeds(runner, workspace):
    record = {"type": "session.idle", "properties": {"sessionID": "ses_1"}}

    result = runner.invoke(app, ["hook", "event"], input=json.dumps(record))

    assert result.exit_code == 0


def test_hook_delivers_before_exit(runner, workspace, monkeypatch):
    (workspace / "beacon.toml").write_text(SLACK_TOML)  # default delay of 120s
    delivered = []

    async def fake_deliver(self, payload):
        delivered.append(payload)

    monkeypatch.setattr(SlackChannel, "deliver", fake_deliver)
    record = {
        "type": "session.idle",
        "properties": {"sessionID": "ses_1"},
        "session": {"id": "ses_1", "parentID": "ses_0"},
    }

    result = runner.invoke(app, ["hook", "event"], input=json.dumps(record))

    assert result.exit_code == 0
    assert len(delivered) == 1
    assert delivered[0].title == "[subtask-complete] project"


def test_hook_question_tool(runner, workspace, monkeypatch):
    (workspace / "beacon.toml").write_text(SLACK_TOML)
    delivered = []

    async def fake_deliver(self, payload):
        delivered.append(payload)

    monkeypatch.setattr(SlackChannel, "deliver", fake_deliver)

    result = runner.invoke(
        app, ["hook", "tool.execute.before"], input=json.dumps({"tool": "question"})
    )

    assert result.exit_code == 0
    assert delivered[0].title == "[clarification-request] project"


def test_test_without_providers(runner, workspace):
    result = runner.invoke(app, ["test"])

    assert result.exit_code == 1
    assert "No providers are enabled" in result.stdout


def test_test_reports_each_provider(runner, workspace, monkeypatch):
    (workspace / "beacon.toml").write_text(SLACK_TOML)

    async def ok(self, payload):
        return None

    monkeypatch.setattr(SlackChannel, "deliver", ok)
    result = runner.invoke(app, ["test"])

    assert result.exit_code == 0
    assert "✓ Slack" in result.stdout


def test_test_failure_exits_nonzero(runner, workspace, monkeypatch):
    (workspace / "beacon.toml").write_text(SLACK_TOML)

    async def broken(self, payload):
        raise DeliveryError("Slack API error: 403 invalid_token", channel="Slack")

    monkeypatch.setattr(SlackChannel, "deliver", broken)
    result = runner.invoke(app, ["test"])

    assert result.exit_code == 1
    assert "✗ Slack" in result.stdout
    assert "invalid_token" in result.stdout


def test_logs_without_file(runner, workspace):
    result = runner.invoke(app, ["logs"])

    assert result.exit_code == 0
    assert "No failure log" in result.stdout


def test_logs_tail(runner, workspace):
    log_dir = Path.home() / ".beacon" / "logs"
    log_dir.mkdir(parents=True)
    (log_dir / "beacon.log").write_text(
        "".join(f"[2026-01-01T00:00:0{i}] [ERROR] [beacon] failure {i}\n" for i in range(5))
    )

    result = runner.invoke(app, ["logs", "-n", "2"])

    assert result.exit_code == 0
    assert "failure 3" in result.stdout
    assert "failure 4" in result.stdout
    assert "failure 2" not in result.stdout


def test_hook_help_points_to_in_process_hooks(runner):
    result = runner.invoke(app, ["hook", "--help"])

    assert result.exit_code == 0
    assert "create_hooks" in result.stdout
