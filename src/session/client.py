"""Transport-agnostic Session client protocol and DTOs.

The bridge never speaks the Session protocol itself. A client provider,
named by a ``module.path:attribute`` import string, supplies a readiness
gate and a factory for clients bound to a key-value store.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.session.storage import KeyValueStorage

EventHandler = Callable[[Any], Any]


class SessionClientError(Exception):
    """Base exception for Session client failures."""


class ClientProviderError(SessionClientError):
    """The configured client provider cannot be loaded or is incomplete."""


@dataclass(frozen=True)
class Attachment:
    """A file sent as part of a message."""

    filename: str
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class SendResult:
    """Hashes and timestamp returned by the client for a sent message."""

    message_hash: str
    sync_message_hash: str | None
    timestamp: int


@runtime_checkable
class SessionClient(Protocol):
    """Operations the bridge needs from a Session client."""

    def set_mnemonic(self, mnemonic: str, display_name: str | None = None) -> None:
        """Derive the identity from a recovery phrase."""

    def get_session_id(self) -> str:
        """Public Session ID of the configured identity."""

    def on(self, event: str, handler: EventHandler) -> None:
        """Register ``handler`` to be called with each payload of ``event``."""

    async def poll(self) -> None:
        """Fetch pending inbound traffic and emit the resulting events."""

    async def send_message(
        self,
        to: str,
        text: str | None = None,
        attachments: list[Attachment] | None = None,
    ) -> SendResult: ...

    async def delete_message(self, to: str, timestamp: int, hash: str) -> None: ...

    async def set_display_name(self, display_name: str) -> None: ...

    async def set_avatar(self, avatar: bytes) -> None: ...

    async def notify_screenshot_taken(self, conversation: str) -> None: ...

    async def notify_media_saved(
        self, conversation: str, saved_message_timestamp: int,
    ) -> None: ...

    async def add_reaction(
        self, message_timestamp: int, emoji: str, message_author: str,
    ) -> None: ...

    async def remove_reaction(
        self, message_timestamp: int, emoji: str, message_author: str,
    ) -> None: ...


@runtime_checkable
class SessionClientProvider(Protocol):
    """Entry point of a Session client implementation."""

    async def ready(self) -> None:
        """Resolve once the implementation's runtime is initialized."""

    def create(self, storage: KeyValueStorage) -> SessionClient:
        """Build a client whose identity lives in ``storage``."""


def load_client_provider(target: str) -> SessionClientProvider:
    """Import a provider from ``module.path:attribute``.

    A class or zero-argument factory found at the path is called once to
    obtain the provider instance.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ClientProviderError(
            f"Invalid client provider '{target}': expected 'module.path:attribute'",
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ClientProviderError(f"Cannot import client provider module '{module_name}': {exc}") from exc

    provider: Any = module
    for part in attr.split("."):
        try:
            provider = getattr(provider, part)
        except AttributeError as exc:
            raise ClientProviderError(
                f"Client provider module '{module_name}' has no attribute '{attr}'",
            ) from exc

    if isinstance(provider, type) or not isinstance(provider, SessionClientProvider):
        if not callable(provider):
            raise ClientProviderError(f"Client provider '{target}' is not a provider")
        provider = provider()

    if not isinstance(provider, SessionClientProvider):
        raise ClientProviderError(
            f"Client provider '{target}' must define ready() and create(storage)",
        )
    return provider
