"""FastAPI application for the Session webhook bridge."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.auth_middleware import AuthMiddleware
from src.api.errors import ErrorEnvelopeMiddleware, error_response, not_found
from src.api.routes import PUBLIC_PATHS, router
from src.config import DEFAULT_MAX_BODY_BYTES, BridgeConfig, ConfigError
from src.logs import configure_logging
from src.session.bridge import BridgeContext, start_bridge
from src.session.client import SessionClientProvider
from src.webhook.forwarder import WebhookForwarder

logger = logging.getLogger(__name__)

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables.

    Exits with status 1 on a configuration error, before any socket is bound.
    """
    configure_logging(os.environ.get("LOG_LEVEL", "info"))
    try:
        config = BridgeConfig.from_env()
    except ConfigError as exc:
        logger.error("FATAL: %s", exc)
        raise SystemExit(1) from exc
    return create_bridge_app(config)


def create_bridge_app(
    config: BridgeConfig,
    provider: SessionClientProvider | None = None,
    forwarder: WebhookForwarder | None = None,
) -> FastAPI:
    """Create the app whose lifespan brings up the Session client."""
    forwarder = forwarder or WebhookForwarder(config.webhook_url)
    return create_app(
        config.bearer_token,
        max_body_bytes=config.max_body_bytes,
        lifespan=_bridge_lifespan(config, forwarder, provider),
    )


def create_app(
    token: str,
    bridge: BridgeContext | None = None,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    lifespan: Lifespan | None = None,
) -> FastAPI:
    """Create the command API with auth and error envelopes."""
    app = FastAPI(
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.bridge = bridge
    app.state.max_body_bytes = max_body_bytes
    app.state.started_at = time.monotonic()

    app.include_router(router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # 405 on a known path is reported like any unknown route
        if exc.status_code in (404, 405):
            logger.info("No route for %s %s", request.method, request.url.path)
            return not_found(request.method, request.url.path)
        logger.warning(
            "%s %s failed with %d: %s",
            request.method, request.url.path, exc.status_code, exc.detail,
        )
        return error_response(exc.status_code, str(exc.detail))

    protected = frozenset(
        (method, route.path)
        for route in router.routes
        if isinstance(route, APIRoute) and route.path not in PUBLIC_PATHS
        for method in route.methods
    )
    app.add_middleware(AuthMiddleware, token=token, protected_routes=protected)
    app.add_middleware(ErrorEnvelopeMiddleware)

    return app


def _bridge_lifespan(
    config: BridgeConfig,
    forwarder: WebhookForwarder,
    provider: SessionClientProvider | None,
) -> Lifespan:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            bridge = await start_bridge(config, forwarder, provider)
        except Exception:
            logger.exception("Failed to start server")
            await forwarder.aclose()
            raise

        app.state.bridge = bridge
        logger.info("Forwarding Session events to: %s", config.webhook_url)
        logger.info("Available endpoints:")
        for route in router.routes:
            if isinstance(route, APIRoute):
                for method in sorted(route.methods):
                    logger.info("  %-4s %s", method, route.path)
        try:
            yield
        finally:
            app.state.bridge = None
            await bridge.close()
            await forwarder.aclose()

    return lifespan
