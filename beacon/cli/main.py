"""
Beacon CLI entry point.

Commands:
    beacon hook    — Handle one host hook record from stdin, then drain
                     (one dispatcher per run; in-process hosts use create_hooks)
    beacon test    — Send a test notification through every provider
    beacon config  — Show config locations and resolved providers
    beacon logs    — Show the failure log
    beacon version — Show version
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from beacon.core.config import PROVIDER_NAMES, BeaconConfig, get_user_config_path
from beacon.core.errors import ConfigError
from beacon.core.events import EventCategory, NotificationPayload

app = typer.Typer(
    name="beacon",
    help="Beacon — relays coding-session events to your phone and chat apps.",
    add_completion=False,
)

console = Console()


class HookKind(str, Enum):
    EVENT = "event"
    PERMISSION_ASK = "permission.ask"
    TOOL_EXECUTE_BEFORE = "tool.execute.before"


def _project_config_path(project: Path | None) -> Path:
    return (project or Path.cwd()) / "beacon.toml"


def _configure_logging(verbose: bool) -> None:
    from beacon.core.log import setup_logging

    setup_logging(console_level=logging.DEBUG if verbose else logging.WARNING)


@app.command()
def hook(
    kind: HookKind = typer.Argument(..., help="Which host hook produced the record"),
    project: Path = typer.Option(None, "--project", "-p", help="Project directory (default: cwd)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Read one hook record (JSON) from stdin and notify.

    Each run has its own dispatcher, drained before the process exits, so
    nothing is coalesced or deduplicated across runs: a delayed category is
    sent when the command ends, and a permission request that arrives through
    both hooks is sent twice. Hosts that stay running should call
    beacon.create_hooks() in-process instead.
    """
    _configure_logging(verbose)
    raw = sys.stdin.read()
    try:
        record = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as e:
        console.print(f"[red]Hook input is not valid JSON: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    if not isinstance(record, dict):
        console.print("[red]Hook input must be a JSON object[/red]")
        raise typer.Exit(1)

    asyncio.run(_run_hook(kind, record, project or Path.cwd()))


async def _run_hook(kind: HookKind, record: dict, project_dir: Path) -> None:
    from beacon.host.hooks import create_hooks
    from beacon.host.session import InlineSessionClient

    session_client = InlineSessionClient(record.get("session"), record.get("messages"))
    try:
        hooks, exit_flush = create_hooks(project_dir, session_client)
    except ConfigError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    try:
        if kind is HookKind.EVENT:
            await hooks.on_event(record)
        elif kind is HookKind.PERMISSION_ASK:
            await hooks.on_permission_ask(record)
        else:
            await hooks.on_tool_execute_before(record)
    finally:
        await exit_flush()


@app.command()
def test(
    project: Path = typer.Option(None, "--project", "-p", help="Project directory (default: cwd)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Send a test notification through every enabled provider."""
    _configure_logging(verbose)
    asyncio.run(_run_test(project))


async def _run_test(project: Path | None) -> None:
    from beacon.notifications.channels import build_channels
    from beacon.notifications.dispatcher import deliver_with_deadline

    try:
        config = BeaconConfig.load(project_path=_project_config_path(project))
    except ConfigError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    channels = [c for c in build_channels(config) if c.is_active]
    if not channels:
        console.print(
            "[yellow]No providers are enabled with credentials.[/yellow]\n"
            f"[dim]Edit {get_user_config_path()} or ./beacon.toml[/dim]"
        )
        raise typer.Exit(1)

    payload = NotificationPayload(
        category=EventCategory.TASK_COMPLETE,
        title="[test] beacon",
        body="Test notification from beacon. If you can read this, delivery works.",
    )
    results = await asyncio.gather(
        *(deliver_with_deadline(c, payload) for c in channels),
        return_exceptions=True,
    )

    failed = 0
    for channel, result in zip(channels, results):
        if isinstance(result, BaseException):
            failed += 1
            detail = escape(str(getattr(result, "message", result)))
            console.print(f"[red]✗ {channel.name}[/red] [dim]{detail}[/dim]")
        else:
            console.print(f"[green]✓ {channel.name}[/green]")

    if failed:
        raise typer.Exit(1)


@app.command()
def config(
    project: Path = typer.Option(None, "--project", "-p", help="Project directory (default: cwd)"),
) -> None:
    """Show current configuration."""
    user_path = get_user_config_path()
    project_path = _project_config_path(project)

    console.print(Panel("[bold]Beacon Configuration[/bold]", border_style="cyan"))
    for label, path in (("User config", user_path), ("Project config", project_path)):
        state = "" if path.exists() else " [dim](not found)[/dim]"
        console.print(f"[bold]{label}:[/bold] {path}{state}")
    console.print()

    try:
        cfg = BeaconConfig.load(project_path=project_path, user_path=user_path)
    except ConfigError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    table = Table(title="Providers")
    table.add_column("Provider")
    table.add_column("Enabled")
    table.add_column("Truncate from")
    for name in PROVIDER_NAMES:
        enabled = cfg.provider(name).enabled
        table.add_row(
            name,
            "[green]yes[/green]" if enabled else "[dim]no[/dim]",
            cfg.resolved_truncate_from(name),
        )
    console.print(table)

    delay = f"{cfg.delay}s" if cfg.delay else "off (immediate)"
    console.print(f"[bold]Delay:[/bold] {delay}")
    disabled = [c.value for c in EventCategory if not cfg.events.is_enabled(c)]
    console.print(f"[bold]Muted events:[/bold] {', '.join(disabled) or 'none'}")
    console.print(f"[bold]Failure log:[/bold] {'on' if cfg.log.enabled else 'off'} ({cfg.log.level})")


@app.command()
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show"),
) -> None:
    """Show recent failure log entries."""
    from beacon.core.log import get_log_file_path

    log_file = get_log_file_path()
    if not log_file.exists():
        console.print(f"[dim]No failure log at {log_file}[/dim]")
        raise typer.Exit(0)

    with open(log_file, "r", encoding="utf-8") as f:
        all_lines = f.readlines()

    for line in all_lines[-lines:]:
        console.print(line.rstrip(), markup=False, highlight=False)


@app.command()
def version() -> None:
    """Show Beacon version."""
    from beacon import __version__
    console.print(f"Beacon v{__version__}")


if __name__ == "__main__":
    app()
