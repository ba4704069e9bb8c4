"""
Beacon event model — categories and the notification payload.

A payload is built once per logical occurrence by the host hooks and
handed to the Dispatcher. The Dispatcher keys its timers on the
category, never on payload identity.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


class EventCategory(str, Enum):
    """Closed set of occurrence kinds a notification can represent."""

    TASK_COMPLETE = "task-complete"
    SUBTASK_COMPLETE = "subtask-complete"
    ERROR = "error"
    PERMISSION_REQUEST = "permission-request"
    CLARIFICATION_REQUEST = "clarification-request"

    @property
    def is_immediate(self) -> bool:
        return self in IMMEDIATE_CATEGORIES

    @property
    def config_key(self) -> str:
        """Field name used for this category in the [events] config section."""
        return self.name.lower()


# Interrupts the user must see now; never coalesced.
IMMEDIATE_CATEGORIES: frozenset[EventCategory] = frozenset(
    {EventCategory.ERROR, EventCategory.PERMISSION_REQUEST}
)

DELAYABLE_CATEGORIES: frozenset[EventCategory] = frozenset(
    set(EventCategory) - IMMEDIATE_CATEGORIES
)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    """
    A single human-readable notification, immutable once built.

    Fields:
        category:        What happened.
        title:           Short headline, e.g. "[error] my-project".
        body:            Message text.
        project_label:   Project directory name, if known.
        created_at_ms:   Unix timestamp in milliseconds.
        session_id:      Host session identifier, if any.
        elapsed_seconds: Session duration, if known.
    """

    category: EventCategory
    title: str
    body: str
    project_label: str | None = None
    created_at_ms: int = field(default_factory=_now_ms)
    session_id: str | None = None
    elapsed_seconds: int | None = None
