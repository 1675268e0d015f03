"""Command routes: one health check and nine authenticated Session operations.

Every command follows the same steps: read the JSON body, reject it with
400 when a required field is absent, call the Session client, and map a
client failure to a 500 envelope without retrying.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from src.api.errors import error_response
from src.models import (
    ActionResponse,
    DeleteMessageCommand,
    NotifyMediaSavedCommand,
    NotifyScreenshotCommand,
    ReactionCommand,
    SendAttachmentCommand,
    SendMessageCommand,
    SendResponse,
    SetAvatarCommand,
    SetDisplayNameCommand,
    StatusResponse,
)
from src.session.bridge import BridgeContext
from src.session.client import Attachment, SendResult

logger = logging.getLogger(__name__)

# Paths that bypass authentication
PUBLIC_PATHS = frozenset({"/status"})

CommandT = TypeVar("CommandT", bound=BaseModel)

router = APIRouter()


def get_bridge(request: Request) -> BridgeContext:
    """Resolve the initialized client, or answer 503 while there is none."""
    bridge: BridgeContext | None = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(status_code=503, detail="Session client is not initialized")
    return bridge


async def read_json_body(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object, enforcing the size limit."""
    max_bytes: int = request.app.state.max_body_bytes
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Request body exceeds {max_bytes} bytes")

    # chunked bodies carry no content-length, so the limit is enforced while reading
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise HTTPException(status_code=413, detail=f"Request body exceeds {max_bytes} bytes")
        chunks.append(chunk)
    raw = b"".join(chunks)
    if not raw.strip():
        return {}

    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def require(
    body: dict[str, Any],
    model: type[CommandT],
    fields: tuple[str, ...],
    message: str,
) -> CommandT:
    """Check that ``fields`` are present and truthy, then build ``model``."""
    if any(not body.get(name) for name in fields):
        raise HTTPException(status_code=400, detail=message)
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(part) for part in err["loc"])
        raise HTTPException(status_code=400, detail=f'Invalid "{field}" field: {err["msg"]}') from exc


def decode_base64(value: str, field: str) -> bytes:
    """Decode standard or URL-safe base64, padded or not."""
    normalized = "".join(value.split()).replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f'"{field}" must be base64 encoded') from exc


def client_failure(request: Request, action: str, fallback: str, exc: Exception) -> JSONResponse:
    """500 envelope for a failed client call."""
    logger.error(
        "Error %s on %s %s: %s",
        action, request.method, request.url.path, str(exc) or type(exc).__name__,
    )
    return error_response(500, str(exc) or fallback)


def _sent(result: SendResult) -> JSONResponse:
    body = SendResponse(
        message_hash=result.message_hash,
        sync_message_hash=result.sync_message_hash,
        timestamp=result.timestamp,
    )
    return JSONResponse(body.model_dump(by_alias=True))


def _done(message: str) -> JSONResponse:
    return JSONResponse(ActionResponse(message=message).model_dump())


@router.get("/status")
async def status(request: Request) -> JSONResponse:
    bridge: BridgeContext | None = getattr(request.app.state, "bridge", None)
    body = StatusResponse(
        session_id=bridge.session_id if bridge else "not initialized",
        uptime=time.monotonic() - request.app.state.started_at,
    )
    return JSONResponse(body.model_dump(by_alias=True))


@router.post("/sendMessage")
async def send_message(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(
        body, SendMessageCommand, ("to", "text"),
        'Both "to" and "text" fields are required',
    )
    try:
        result = await bridge.client.send_message(command.to, text=command.text)
    except Exception as exc:
        return client_failure(request, "sending message", "Failed to send message", exc)
    return _sent(result)


@router.post("/sendAttachment")
async def send_attachment(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(
        body, SendAttachmentCommand, ("to", "filename", "mimeType", "data"),
        "All fields (to, filename, mimeType, data) are required",
    )
    attachment = Attachment(
        filename=command.filename,
        mime_type=command.mime_type,
        data=decode_base64(command.data, "data"),
    )
    try:
        result = await bridge.client.send_message(command.to, attachments=[attachment])
    except Exception as exc:
        return client_failure(request, "sending attachment", "Failed to send attachment", exc)
    return _sent(result)


@router.post("/deleteMessage")
async def delete_message(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(
        body, DeleteMessageCommand, ("to", "timestamp", "hash"),
        '"to", "timestamp", and "hash" fields are required',
    )
    try:
        await bridge.client.delete_message(command.to, command.timestamp, command.hash)
    except Exception as exc:
        return client_failure(request, "deleting message", "Failed to delete message", exc)
    return _done("Message deleted successfully")


@router.post("/setDisplayName")
async def set_display_name(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(
        body, SetDisplayNameCommand, ("displayName",),
        '"displayName" field is required',
    )
    try:
        await bridge.client.set_display_name(command.display_name)
    except Exception as exc:
        return client_failure(request, "setting display name", "Failed to set display name", exc)
    return _done("Display name updated successfully")


@router.post("/setAvatar")
async def set_avatar(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(body, SetAvatarCommand, ("avatar",), '"avatar" field is required')
    avatar = decode_base64(command.avatar, "avatar")
    try:
        await bridge.client.set_avatar(avatar)
    except Exception as exc:
        return client_failure(request, "setting avatar", "Failed to set avatar", exc)
    return _done("Avatar updated successfully")


@router.post("/notifyScreenshot")
async def notify_screenshot(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(body, NotifyScreenshotCommand, ("to",), '"to" field is required')
    try:
        await bridge.client.notify_screenshot_taken(conversation=command.to)
    except Exception as exc:
        return client_failure(
            request, "sending screenshot notification", "Failed to send screenshot notification", exc,
        )
    return _done("Screenshot notification sent")


@router.post("/notifyMediaSaved")
async def notify_media_saved(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(
        body, NotifyMediaSavedCommand, ("to", "timestamp"),
        '"to" and "timestamp" fields are required',
    )
    try:
        await bridge.client.notify_media_saved(
            conversation=command.to, saved_message_timestamp=command.timestamp,
        )
    except Exception as exc:
        return client_failure(
            request, "sending media saved notification", "Failed to send media saved notification", exc,
        )
    return _done("Media saved notification sent")


_REACTION_FIELDS = ("to", "timestamp", "emoji", "author")
_REACTION_MESSAGE = '"to", "timestamp", "emoji", and "author" fields are required'


@router.post("/addReaction")
async def add_reaction(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(body, ReactionCommand, _REACTION_FIELDS, _REACTION_MESSAGE)
    try:
        await bridge.client.add_reaction(
            message_timestamp=command.timestamp,
            emoji=command.emoji,
            message_author=command.author,
        )
    except Exception as exc:
        return client_failure(request, "adding reaction", "Failed to add reaction", exc)
    return _done("Reaction added")


@router.post("/removeReaction")
async def remove_reaction(request: Request, bridge: BridgeContext = Depends(get_bridge)) -> JSONResponse:
    body = await read_json_body(request)
    command = require(body, ReactionCommand, _REACTION_FIELDS, _REACTION_MESSAGE)
    try:
        await bridge.client.remove_reaction(
            message_timestamp=command.timestamp,
            emoji=command.emoji,
            message_author=command.author,
        )
    except Exception as exc:
        return client_failure(request, "removing reaction", "Failed to remove reaction", exc)
    return _done("Reaction removed")
