"""
NotifierHooks — turns host lifecycle callbacks into notifications.

Host callback                         → category
    event "session.idle"              → task-complete (subtask-complete for child sessions)
    event "session.error"             → error
    event "permission.updated"        → permission-request
    permission.ask                    → permission-request
    tool.execute.before, tool=question → clarification-request

The host delivers a permission request through both the event stream
and permission.ask; the Dispatcher's dedup window collapses the pair.

Hooks never raise into the host. Anything that goes wrong is logged.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from beacon.core.config import BeaconConfig
from beacon.core.events import EventCategory, NotificationPayload
from beacon.core.log import FailureLog
from beacon.host.session import NullSessionClient, SessionClient, describe_session
from beacon.notifications.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

DEFAULT_BODY = "Task completed"
DEFAULT_PROJECT = "agent"


class NotifierHooks:
    """
    Host-facing entry points.

    Usage:
        hooks, exit_flush = create_hooks(project_dir)
        await hooks.on_event({"type": "session.idle", "properties": {"sessionID": "s1"}})
        ...
        await exit_flush()
    """

    def __init__(
        self,
        config: BeaconConfig,
        dispatcher: Dispatcher,
        project_dir: Path | str | None = None,
        session_client: SessionClient | None = None,
        failure_log: FailureLog | None = None,
    ) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._project = (Path(project_dir).resolve().name or None) if project_dir else None
        self._sessions = session_client or NullSessionClient()
        self._failure_log = failure_log

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    # ━━━ Host callbacks ━━━

    async def on_event(self, event: dict[str, Any]) -> None:
        try:
            await self._handle_event(event)
        except Exception as e:
            self._report(f"Event hook error: {e}")

    async def on_permission_ask(self, data: dict[str, Any] | None) -> None:
        try:
            await self._notify(EventCategory.PERMISSION_REQUEST, _session_id(data))
        except Exception as e:
            self._report(f"Permission hook error: {e}")

    async def on_tool_execute_before(self, data: dict[str, Any] | None) -> None:
        try:
            if (data or {}).get("tool") != "question":
                return
            await self._notify(EventCategory.CLARIFICATION_REQUEST, _session_id(data))
        except Exception as e:
            self._report(f"Tool hook error: {e}")

    # ━━━ Payloads ━━━

    async def build_payload(
        self,
        category: EventCategory,
        session_id: str | None,
        extra_message: str | None = None,
    ) -> NotificationPayload:
        """
        Build a payload, enriched with whatever the session can tell us.

        A task-complete for a child session is reported as subtask-complete.
        """
        now_ms = int(time.time() * 1000)
        info = await describe_session(self._sessions, session_id, now_ms=now_ms)

        if category is EventCategory.TASK_COMPLETE and info.is_subagent:
            category = EventCategory.SUBTASK_COMPLETE

        body = extra_message or info.assistant_text or DEFAULT_BODY
        if info.elapsed_seconds is not None:
            minutes, seconds = divmod(info.elapsed_seconds, 60)
            body += f" (elapsed: {minutes}m {seconds}s)"

        return NotificationPayload(
            category=category,
            title=f"[{category.value}] {self._project or DEFAULT_PROJECT}",
            body=body,
            project_label=self._project,
            created_at_ms=now_ms,
            session_id=session_id,
            elapsed_seconds=info.elapsed_seconds,
        )

    # ━━━ Internals ━━━

    async def _handle_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type")
        properties = event.get("properties") or {}
        session_id = properties.get("sessionID") or None

        if event_type == "session.idle":
            await self._notify(EventCategory.TASK_COMPLETE, session_id)
        elif event_type == "session.error":
            await self._notify(EventCategory.ERROR, session_id, _error_message(properties))
        elif event_type == "permission.updated":
            await self._notify(EventCategory.PERMISSION_REQUEST, session_id)
        else:
            logger.debug(f"Ignoring host event {event_type!r}")

    async def _notify(
        self,
        category: EventCategory,
        session_id: str | None,
        extra_message: str | None = None,
    ) -> None:
        events = self._config.events
        if not events.is_enabled(category):
            return
        payload = await self.build_payload(category, session_id, extra_message)
        # Child-session detection can change the category; check it again.
        if payload.category is not category and not events.is_enabled(payload.category):
            return
        await self._dispatcher.submit(payload)

    def _report(self, message: str) -> None:
        logger.error(message)
        if self._failure_log is not None:
            self._failure_log.error(message)


class ExitFlush:
    """
    Drains the dispatcher once, no matter how many exit paths call it.

    Usage:
        exit_flush = ExitFlush(dispatcher)
        try:
            ...
        finally:
            await exit_flush()
    """

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher
        self._flushed = False

    @property
    def flushed(self) -> bool:
        return self._flushed

    async def __call__(self) -> None:
        if self._flushed:
            return
        self._flushed = True
        await self._dispatcher.close()


def create_hooks(
    project_dir: Path | str | None = None,
    session_client: SessionClient | None = None,
    overrides: dict[str, Any] | None = None,
    user_path: Path | None = None,
) -> tuple[NotifierHooks, ExitFlush]:
    """
    Wire config, failure log and dispatcher for one host process.

    The project config is read from <project_dir>/beacon.toml.
    """
    project_path = Path(project_dir) / "beacon.toml" if project_dir else None
    config = BeaconConfig.load(
        overrides=overrides, project_path=project_path, user_path=user_path
    )
    failure_log = FailureLog(config.log)

    if not config.enabled_providers:
        failure_log.warn("No notification providers enabled. Enable one in beacon.toml")

    dispatcher = Dispatcher.from_config(config, failure_log)
    hooks = NotifierHooks(config, dispatcher, project_dir, session_client, failure_log)
    return hooks, ExitFlush(dispatcher)


def _session_id(data: dict[str, Any] | None) -> str | None:
    return (data or {}).get("sessionID") or None


def _error_message(properties: dict[str, Any]) -> str:
    error = properties.get("error") or {}
    if not isinstance(error, dict):
        return str(error)
    data = error.get("data")
    message = data.get("message") if isinstance(data, dict) else None
    return message or error.get("name") or "Unknown error"
