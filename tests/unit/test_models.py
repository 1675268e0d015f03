"""Tests for shared Pydantic data models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.models import (
    ActionResponse,
    NotifyScreenshotCommand,
    SendAttachmentCommand,
    SendResponse,
    SessionEvent,
    StatusResponse,
    now_iso,
)
from src.webhook.models import ForwardedEvent


class TestSessionEvent:
    def test_forwarded_events(self) -> None:
        assert {e.value for e in SessionEvent} == {
            "message",
            "syncMessage",
            "syncDisplayName",
            "syncAvatar",
            "messageDeleted",
            "messageRead",
            "messageTypingIndicator",
            "screenshotTaken",
            "mediaSaved",
            "messageRequestApproved",
            "call",
            "reactionAdded",
            "reactionRemoved",
        }

    def test_members_compare_as_strings(self) -> None:
        assert SessionEvent.REACTION_ADDED == "reactionAdded"


class TestTimestamps:
    def test_now_iso_is_utc_with_milliseconds(self) -> None:
        value = now_iso()
        assert value.endswith("Z")
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        assert parsed.tzinfo == UTC
        assert len(value.split(".")[1]) == 4  # "123Z"


class TestCommands:
    def test_attachment_reads_camel_case_alias(self) -> None:
        command = SendAttachmentCommand.model_validate(
            {"to": "05aa", "filename": "a.txt", "mimeType": "text/plain", "data": "aGk="},
        )
        assert command.mime_type == "text/plain"

    def test_screenshot_timestamp_optional(self) -> None:
        assert NotifyScreenshotCommand.model_validate({"to": "05aa"}).timestamp is None

    def test_wrong_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NotifyScreenshotCommand.model_validate({"to": 5})


class TestResponses:
    def test_send_response_uses_camel_case(self) -> None:
        body = SendResponse(
            message_hash="h1", sync_message_hash="h2", timestamp=1700000000000,
        ).model_dump(by_alias=True)
        assert body == {
            "success": True,
            "messageHash": "h1",
            "syncMessageHash": "h2",
            "timestamp": 1700000000000,
        }

    def test_status_response_shape(self) -> None:
        body = StatusResponse(session_id="05aa", uptime=1.5).model_dump(by_alias=True)
        assert body["ok"] is True
        assert body["sessionId"] == "05aa"
        assert body["uptime"] == 1.5
        assert body["timestamp"].endswith("Z")

    def test_action_response(self) -> None:
        assert ActionResponse(message="Reaction added").model_dump() == {
            "success": True,
            "message": "Reaction added",
        }


class TestForwardedEvent:
    def test_serializes_opaque_payload(self) -> None:
        event = ForwardedEvent(event="call", payload={"from": "05aa", "ids": [1, 2]})
        data = event.model_dump(mode="json")
        assert data["event"] == "call"
        assert data["payload"] == {"from": "05aa", "ids": [1, 2]}
        assert data["timestamp"].endswith("Z")
