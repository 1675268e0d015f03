"""Shared Pydantic data models for the Session webhook bridge."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class SessionEvent(str, Enum):
    """Client events forwarded to the external webhook."""

    MESSAGE = "message"
    SYNC_MESSAGE = "syncMessage"
    SYNC_DISPLAY_NAME = "syncDisplayName"
    SYNC_AVATAR = "syncAvatar"
    MESSAGE_DELETED = "messageDeleted"
    MESSAGE_READ = "messageRead"
    MESSAGE_TYPING_INDICATOR = "messageTypingIndicator"
    SCREENSHOT_TAKEN = "screenshotTaken"
    MEDIA_SAVED = "mediaSaved"
    MESSAGE_REQUEST_APPROVED = "messageRequestApproved"
    CALL = "call"
    REACTION_ADDED = "reactionAdded"
    REACTION_REMOVED = "reactionRemoved"


def now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. 2026-01-01T00:00:00.000Z."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# --- Command Models ---


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SendMessageCommand(_Command):
    to: str
    text: str


class SendAttachmentCommand(_Command):
    to: str
    filename: str
    mime_type: str = Field(alias="mimeType")
    data: str  # base64


class DeleteMessageCommand(_Command):
    to: str
    timestamp: int
    hash: str


class SetDisplayNameCommand(_Command):
    display_name: str = Field(alias="displayName")


class SetAvatarCommand(_Command):
    avatar: str  # base64


class NotifyScreenshotCommand(_Command):
    to: str
    timestamp: int | None = None


class NotifyMediaSavedCommand(_Command):
    to: str
    timestamp: int


class ReactionCommand(_Command):
    to: str
    timestamp: int
    emoji: str
    author: str


# --- Response Models ---


class StatusResponse(BaseModel):
    ok: bool = True
    session_id: str = Field(serialization_alias="sessionId")
    uptime: float
    timestamp: str = Field(default_factory=now_iso)


class SendResponse(BaseModel):
    success: bool = True
    message_hash: str = Field(serialization_alias="messageHash")
    sync_message_hash: str | None = Field(default=None, serialization_alias="syncMessageHash")
    timestamp: int


class ActionResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str
    message: str
