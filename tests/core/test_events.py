"""Tests for the event model."""

import dataclasses

import pytest

from beacon.core.events import (
    DELAYABLE_CATEGORIES,
    IMMEDIATE_CATEGORIES,
    EventCategory,
    NotificationPayload,
)


def test_category_values():
    assert [c.value for c in EventCategory] == [
        "task-complete",
        "subtask-complete",
        "error",
        "permission-request",
        "clarification-request",
    ]


def test_immediate_and_delayable_partition():
    assert IMMEDIATE_CATEGORIES == {EventCategory.ERROR, EventCategory.PERMISSION_REQUEST}
    assert IMMEDIATE_CATEGORIES.isdisjoint(DELAYABLE_CATEGORIES)
    assert IMMEDIATE_CATEGORIES | DELAYABLE_CATEGORIES == set(EventCategory)
    assert EventCategory.ERROR.is_immediate is True
    assert EventCategory.CLARIFICATION_REQUEST.is_immediate is False


def test_config_key():
    assert EventCategory.PERMISSION_REQUEST.config_key == "permission_request"


def test_payload_defaults():
    payload = NotificationPayload(category=EventCategory.ERROR, title="[error] demo", body="boom")

    assert payload.project_label is None
    assert payload.session_id is None
    assert payload.elapsed_seconds is None
    assert payload.created_at_ms > 1_600_000_000_000


def test_payload_is_immutable():
    payload = NotificationPayload(category=EventCategory.ERROR, title="t", body="b")

    with pytest.raises(dataclasses.FrozenInstanceError):
        payload.body = "changed"  # type: ignore[misc]
