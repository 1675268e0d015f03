"""Shared test fixtures for the Session webhook bridge."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from src.config import BridgeConfig
from src.session.bridge import BridgeContext
from src.session.client import Attachment, SendResult, SessionClient
from src.session.storage import KeyValueStorage
from src.webhook.forwarder import WebhookForwarder

TOKEN = "test-secret-token-12345"
WEBHOOK_URL = "http://hooks.test/session"
SESSION_ID = "05" + "ab" * 32
MNEMONIC = "puffin vane abbey lipstick"


def auth_headers(token: str = TOKEN) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def make_send_result(**kwargs: Any) -> SendResult:
    """Factory for SendResult with sensible defaults."""
    defaults: dict[str, Any] = {
        "message_hash": "h1",
        "sync_message_hash": "h2",
        "timestamp": 1700000000000,
    }
    defaults.update(kwargs)
    return SendResult(**defaults)


def make_config(tmp_path: Path, **kwargs: Any) -> BridgeConfig:
    """Factory for BridgeConfig with sensible defaults."""
    defaults: dict[str, Any] = {
        "bearer_token": TOKEN,
        "webhook_url": WEBHOOK_URL,
        "mnemonic": MNEMONIC,
        "display_name": "Test Bot",
        "storage_file": str(tmp_path / "session-storage.db"),
        "client_provider": "tests.conftest:FakeProvider",
        "poll_interval": 0.01,
    }
    defaults.update(kwargs)
    return BridgeConfig(**defaults)


class FakeSessionClient:
    """In-memory Session client that records calls and emits events on demand."""

    def __init__(self, storage: KeyValueStorage | None = None) -> None:
        self.storage = storage
        self.mnemonic: str | None = None
        self.display_name: str | None = None
        self.handlers: dict[str, list[Callable[[Any], Any]]] = {}
        self.polls = 0
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def set_mnemonic(self, mnemonic: str, display_name: str | None = None) -> None:
        self.mnemonic = mnemonic
        self.display_name = display_name
        if self.storage is not None:
            self.storage.set("mnemonic", mnemonic)

    def get_session_id(self) -> str:
        return SESSION_ID

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in self.handlers.get(event, []):
            handler(payload)

    async def poll(self) -> None:
        self.polls += 1

    async def send_message(
        self,
        to: str,
        text: str | None = None,
        attachments: list[Attachment] | None = None,
    ) -> SendResult:
        self.calls.append(("send_message", (to,), {"text": text, "attachments": attachments}))
        return make_send_result()

    async def delete_message(self, to: str, timestamp: int, hash: str) -> None:
        self.calls.append(("delete_message", (to, timestamp, hash), {}))

    async def set_display_name(self, display_name: str) -> None:
        self.calls.append(("set_display_name", (display_name,), {}))

    async def set_avatar(self, avatar: bytes) -> None:
        self.calls.append(("set_avatar", (avatar,), {}))

    async def notify_screenshot_taken(self, conversation: str) -> None:
        self.calls.append(("notify_screenshot_taken", (conversation,), {}))

    async def notify_media_saved(self, conversation: str, saved_message_timestamp: int) -> None:
        self.calls.append(("notify_media_saved", (conversation, saved_message_timestamp), {}))

    async def add_reaction(self, message_timestamp: int, emoji: str, message_author: str) -> None:
        self.calls.append(("add_reaction", (message_timestamp, emoji, message_author), {}))

    async def remove_reaction(self, message_timestamp: int, emoji: str, message_author: str) -> None:
        self.calls.append(("remove_reaction", (message_timestamp, emoji, message_author), {}))


class FakeProvider:
    """Client provider handing out one FakeSessionClient."""

    def __init__(self) -> None:
        self.ready_called = False
        self.client: FakeSessionClient | None = None

    async def ready(self) -> None:
        self.ready_called = True

    def create(self, storage: KeyValueStorage) -> FakeSessionClient:
        if not self.ready_called:
            raise RuntimeError("create() called before ready()")
        self.client = FakeSessionClient(storage)
        return self.client


fake_provider = FakeProvider()


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock(spec=SessionClient)
    client.get_session_id.return_value = SESSION_ID
    client.send_message.return_value = make_send_result()
    return client


@pytest.fixture
def bridge(mock_client: MagicMock) -> BridgeContext:
    return BridgeContext(client=mock_client, session_id=SESSION_ID)


@pytest.fixture
def webhook_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def webhook_status() -> dict[str, int]:
    """Mutable status code answered by the fake webhook endpoint."""
    return {"code": 200}


@pytest.fixture
def forwarder(
    webhook_requests: list[httpx.Request], webhook_status: dict[str, int],
) -> WebhookForwarder:
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(request)
        return httpx.Response(webhook_status["code"])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookForwarder(WEBHOOK_URL, client=client)
