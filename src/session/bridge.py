"""Startup wiring between the Session client and the webhook forwarder.

The order of :func:`start_bridge` matters: the HTTP listener must not
accept commands before the returned :class:`BridgeContext` exists.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.models import SessionEvent
from src.session.client import SessionClientProvider, load_client_provider
from src.session.poller import Poller
from src.session.storage import SQLiteKeyValueStorage

if TYPE_CHECKING:
    from src.config import BridgeConfig
    from src.session.client import SessionClient
    from src.webhook.forwarder import WebhookForwarder

logger = logging.getLogger(__name__)


@dataclass
class BridgeContext:
    """The initialized client and what handlers need to know about it."""

    client: SessionClient
    session_id: str
    poller: Poller | None = None
    storage: SQLiteKeyValueStorage | None = None

    async def close(self) -> None:
        if self.poller is not None:
            await self.poller.stop()
        if self.storage is not None:
            self.storage.close()


def subscribe_events(client: SessionClient, forwarder: WebhookForwarder) -> list[str]:
    """Wire every forwarded event of ``client`` to ``forwarder``."""
    names = []
    for event in SessionEvent:
        client.on(event.value, forwarder.subscriber(event.value))
        names.append(event.value)
    return names


async def start_bridge(
    config: BridgeConfig,
    forwarder: WebhookForwarder,
    provider: SessionClientProvider | None = None,
) -> BridgeContext:
    """Bring up the Session client and start forwarding its events."""
    if provider is None:
        provider = load_client_provider(config.client_provider)

    await provider.ready()

    storage = SQLiteKeyValueStorage(config.storage_file)
    poller: Poller | None = None
    try:
        client = provider.create(storage)
        client.set_mnemonic(config.mnemonic, config.display_name)
        session_id = client.get_session_id()
        logger.info("Session initialized with ID: %s", session_id)

        poller = Poller(client, config.poll_interval)
        poller.start()
        logger.info("Poller added to fetch messages every %ss", config.poll_interval)

        forwarder.bind_loop(asyncio.get_running_loop())
        events = subscribe_events(client, forwarder)
        logger.info("Event listeners registered for: %s", ", ".join(events))
    except BaseException:
        if poller is not None:
            await poller.stop()
        storage.close()
        raise

    return BridgeContext(
        client=client,
        session_id=session_id,
        poller=poller,
        storage=storage,
    )
