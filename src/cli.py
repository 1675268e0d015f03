"""Click CLI for running the Session webhook bridge."""

from __future__ import annotations

import logging

import click
import uvicorn

from src.api.app import create_bridge_app
from src.config import BridgeConfig, ConfigError
from src.logs import configure_logging
from src.models import SessionEvent

logger = logging.getLogger(__name__)


@click.group()
def cli() -> None:
    """Session webhook bridge CLI."""


@cli.command()
@click.option("--host", default=None, help="Interface to bind (overrides HOST).")
@click.option("--port", type=int, default=None, help="Port to bind (overrides PORT).")
def serve(host: str | None, port: int | None) -> None:
    """Start the Session client, then serve the command API."""
    try:
        config = BridgeConfig.from_env()
    except ConfigError as exc:
        configure_logging("info")
        logger.error("FATAL: %s", exc)
        raise SystemExit(1) from exc

    level = configure_logging(config.log_level)
    app = create_bridge_app(config)
    uvicorn.run(
        app,
        host=host or config.host,
        port=port or config.port,
        lifespan="on",
        log_config=None,
        log_level=level,
    )


@cli.command()
def events() -> None:
    """List the Session events forwarded to the webhook."""
    for event in SessionEvent:
        click.echo(event.value)
