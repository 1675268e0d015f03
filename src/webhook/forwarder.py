"""Webhook forwarder.

Turns every event emitted by the Session client into one outbound HTTP
POST against the configured webhook URL.

Delivery is fire-and-forget and at most once: a non-2xx answer or a
transport failure is logged and the event is dropped. There is no retry,
no backoff and no idempotency key.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

import httpx
from pydantic_core import PydanticSerializationError

from src.webhook.models import ForwardedEvent

logger = logging.getLogger(__name__)

USER_AGENT = "Session-Webhook-Server/1.0"


class WebhookForwarder:
    """Posts client events to an external webhook URL."""

    def __init__(
        self,
        webhook_url: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending: set[Any] = set()
        # dispatch may run on client worker threads while drain() runs on the loop
        self._pending_lock = threading.Lock()

    @property
    def webhook_url(self) -> str:
        return self._webhook_url

    @property
    def pending(self) -> int:
        """Number of forwards still in flight."""
        with self._pending_lock:
            return len(self._pending)

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Loop used for events emitted from threads without a running loop."""
        self._loop = loop

    async def forward(self, event: str, payload: Any) -> bool:
        """POST one event. Returns True on a 2xx answer, never raises."""
        body = ForwardedEvent(event=event, payload=payload)
        try:
            content = body.model_dump_json()
        except PydanticSerializationError as exc:
            logger.error("Error forwarding event '%s' to webhook: %s", event, exc)
            return False

        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        try:
            resp = await self._client.post(self._webhook_url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(
                "Error forwarding event '%s' to webhook: %s",
                event, str(exc) or type(exc).__name__,
            )
            return False

        if not resp.is_success:
            logger.error(
                "Webhook forward failed with status %d: %s",
                resp.status_code, resp.reason_phrase,
            )
            return False

        logger.info("Event '%s' forwarded to webhook successfully", event)
        return True

    def dispatch(self, event: str, payload: Any) -> None:
        """Schedule a forward without waiting for it.

        Safe to call from the client's event callbacks: it returns at once
        and nothing raised by the POST reaches the caller.
        """
        logger.debug("Received event '%s' with payload: %r", event, payload)
        coro = self._guarded_forward(event, payload)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._track(loop.create_task(coro))
            return

        if self._loop is None or self._loop.is_closed():
            coro.close()
            logger.error("Dropping event '%s': no event loop available", event)
            return
        self._track(asyncio.run_coroutine_threadsafe(coro, self._loop))

    def subscriber(self, event: str) -> Callable[..., None]:
        """Build a one-argument callback that dispatches ``event``."""

        def _on_event(payload: Any = None) -> None:
            self.dispatch(event, payload)

        return _on_event

    async def drain(self) -> None:
        """Wait for every forward dispatched so far, from any thread."""
        with self._pending_lock:
            snapshot = list(self._pending)
        tasks = [f if isinstance(f, asyncio.Future) else asyncio.wrap_future(f) for f in snapshot]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._owns_client:
            await self._client.aclose()

    async def _guarded_forward(self, event: str, payload: Any) -> None:
        try:
            await self.forward(event, payload)
        except Exception:
            logger.exception("Unexpected error forwarding event '%s'", event)

    def _track(self, future: Any) -> None:
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._untrack)

    def _untrack(self, future: Any) -> None:
        with self._pending_lock:
            self._pending.discard(future)

