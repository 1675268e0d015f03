"""ASGI middleware for Bearer token authentication."""

from __future__ import annotations

import hmac
import logging

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from src.api.errors import error_response

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """ASGI middleware that validates Bearer tokens using constant-time comparison.

    Only the ``(method, path)`` pairs in ``protected_routes`` are checked.
    Anything else passes through untouched, so the health check stays open
    and unknown routes reach the 404 handler.
    """

    def __init__(
        self,
        app: ASGIApp,
        token: str,
        protected_routes: frozenset[tuple[str, str]] = frozenset(),
    ) -> None:
        self.app = app
        self._token = token.encode()
        self._protected_routes = protected_routes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        path = request.url.path

        if (request.method, path) not in self._protected_routes:
            await self.app(scope, receive, send)
            return

        auth_header = request.headers.get("authorization", "")

        if not auth_header.startswith("Bearer "):
            response = error_response(401, "Bearer token is missing or malformed")
            self._log_failure(request, "missing_token" if not auth_header else "invalid_format")
            await response(scope, receive, send)
            return

        provided_token = auth_header[7:].encode()

        if not hmac.compare_digest(provided_token, self._token):
            response = error_response(401, "Invalid Bearer token")
            self._log_failure(request, "invalid_token")
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

    def _log_failure(self, request: Request, reason: str) -> None:
        logger.warning(
            "Authentication failed for %s %s from %s: %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "unknown",
            reason,
        )
