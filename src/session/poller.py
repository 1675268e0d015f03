"""Periodic poller that asks the Session client for inbound traffic."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.session.client import SessionClient

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3.0


class Poller:
    """Calls ``client.poll()`` every ``interval`` seconds in a background task.

    A failing poll is logged and the next one runs on schedule.
    """

    def __init__(self, client: SessionClient, interval: float = DEFAULT_INTERVAL_SECONDS) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self._client = client
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._poll_loop(), name="session-poller")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self._client.poll()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Polling the Session client failed")
            await asyncio.sleep(self._interval)
