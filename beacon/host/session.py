"""
Session enrichment — what the host can tell us about a session.

The host exposes sessions and their message history. From those we
derive three optional facts for a notification:

    is_subagent      the session has a parent (it was spawned by another)
    elapsed_seconds  time since the first user message
    assistant_text   the last text part of the last assistant message

Message records use the host's shape:
    {"info": {"role": "user", "time": {"created": 1700000000000}},
     "parts": [{"type": "text", "text": "..."}]}
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SessionClient(Protocol):
    """Port onto the host's session API."""

    async def get_session(self, session_id: str) -> dict[str, Any] | None:
        """Return the session record, or None if unknown."""

    async def get_messages(self, session_id: str) -> list[dict[str, Any]]:
        """Return the session's messages, oldest first."""


class NullSessionClient:
    """Used when the host offers no session API. Nothing is enriched."""

    async def get_session(self, session_id: str) -> dict[str, Any] | None:
        return None

    async def get_messages(self, session_id: str) -> list[dict[str, Any]]:
        return []


class InlineSessionClient:
    """Serves a session and its messages that arrived with the hook record."""

    def __init__(
        self,
        session: dict[str, Any] | None = None,
        messages: list[dict[str, Any]] | None = None,
    ) -> None:
        self._session = session
        self._messages = messages or []

    async def get_session(self, session_id: str) -> dict[str, Any] | None:
        return self._session

    async def get_messages(self, session_id: str) -> list[dict[str, Any]]:
        return list(self._messages)


@dataclass
class SessionInfo:
    is_subagent: bool = False
    elapsed_seconds: int | None = None
    assistant_text: str | None = None


async def describe_session(
    client: SessionClient,
    session_id: str | None,
    now_ms: int | None = None,
) -> SessionInfo:
    """
    Collect what is known about a session.

    Host API failures are not worth a notification of their own; they
    degrade to an empty SessionInfo.
    """
    info = SessionInfo()
    if not session_id:
        return info
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)

    try:
        session = await client.get_session(session_id)
        if session and session.get("parentID"):
            info.is_subagent = True

        messages = await client.get_messages(session_id) or []
        info.elapsed_seconds = _elapsed_seconds(messages, now_ms)
        info.assistant_text = _last_assistant_text(messages)
    except Exception as e:
        logger.debug(f"Session enrichment failed for {session_id}: {e}")
    return info


def _role(message: dict[str, Any]) -> str | None:
    return (message.get("info") or {}).get("role")


def _elapsed_seconds(messages: list[dict[str, Any]], now_ms: int) -> int | None:
    first_user = next((m for m in messages if _role(m) == "user"), None)
    if first_user is None:
        return None
    created = ((first_user.get("info") or {}).get("time") or {}).get("created")
    if not isinstance(created, (int, float)) or isinstance(created, bool):
        return None
    return max(0, int((now_ms - created) // 1000))


def _last_assistant_text(messages: list[dict[str, Any]]) -> str | None:
    last = next((m for m in reversed(messages) if _role(m) == "assistant"), None)
    if last is None:
        return None
    texts = [p for p in last.get("parts") or [] if p.get("type") == "text"]
    if not texts:
        return None
    text = (texts[-1].get("text") or "").strip()
    return text or None
