"""Data models for the webhook forwarder."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models import now_iso


class ForwardedEvent(BaseModel):
    """JSON body POSTed to the external webhook for one client event."""

    model_config = ConfigDict(frozen=True)

    event: str
    payload: Any = None
    timestamp: str = Field(default_factory=now_iso)
