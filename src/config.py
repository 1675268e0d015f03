"""Environment-sourced configuration for the Session webhook bridge."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_PORT = 8080
DEFAULT_DISPLAY_NAME = "Session Webhook Bot"
DEFAULT_STORAGE_FILE = "./session-storage.db"
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_MAX_BODY_BYTES = 50 * 1024 * 1024  # base64 attachments


class ConfigError(ValueError):
    """Raised when the environment does not describe a runnable bridge."""


class BridgeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    host: str = "0.0.0.0"
    bearer_token: str = Field(min_length=1)
    webhook_url: str = Field(min_length=1)
    mnemonic: str = Field(min_length=1, repr=False)
    display_name: str = DEFAULT_DISPLAY_NAME
    storage_file: str = DEFAULT_STORAGE_FILE
    log_level: str = "info"
    client_provider: str = Field(min_length=1)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    max_body_bytes: int = Field(default=DEFAULT_MAX_BODY_BYTES, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeConfig:
        """Read configuration from environment variables.

        ``SESSION_MNEMONIC`` is checked first so that a missing identity is
        reported on its own.
        """
        env = os.environ if environ is None else environ

        mnemonic = env.get("SESSION_MNEMONIC", "").strip()
        if not mnemonic:
            raise ConfigError("SESSION_MNEMONIC environment variable is required")

        missing = [
            name for name in ("BEARER_TOKEN", "WEBHOOK_URL", "SESSION_CLIENT")
            if not env.get(name, "").strip()
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            return cls(
                port=_parse(env, "PORT", int, DEFAULT_PORT),
                host=env.get("HOST", "0.0.0.0"),
                bearer_token=env["BEARER_TOKEN"].strip(),
                webhook_url=env["WEBHOOK_URL"].strip(),
                mnemonic=mnemonic,
                display_name=env.get("SESSION_DISPLAY_NAME") or DEFAULT_DISPLAY_NAME,
                storage_file=env.get("STORAGE_FILE") or DEFAULT_STORAGE_FILE,
                log_level=env.get("LOG_LEVEL") or "info",
                client_provider=env["SESSION_CLIENT"].strip(),
                poll_interval=_parse(env, "POLL_INTERVAL", float, DEFAULT_POLL_INTERVAL),
                max_body_bytes=_parse(env, "MAX_BODY_BYTES", int, DEFAULT_MAX_BODY_BYTES),
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def _parse(env: Mapping[str, str], name: str, kind: type, default: object) -> object:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid {kind.__name__}, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got '{raw}'")
    return value
