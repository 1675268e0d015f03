"""JSON error envelopes and the top-level exception fallback."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.models import ErrorResponse

logger = logging.getLogger(__name__)

_REASONS = {
    400: "Bad Request",
    401: "Unauthorized",
    404: "Not Found",
    413: "Payload Too Large",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the ``{error, message}`` envelope used by every failure."""
    body = ErrorResponse(error=_REASONS.get(status_code, "Error"), message=message)
    return JSONResponse(body.model_dump(), status_code=status_code)


def not_found(method: str, path: str) -> JSONResponse:
    return error_response(404, f"Route {method} {path} not found")


class ErrorEnvelopeMiddleware:
    """ASGI middleware turning unhandled exceptions into a 500 envelope.

    The traceback is logged, the client only sees a generic message.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            request = Request(scope)
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            if response_started:
                return
            response = error_response(500, "An unexpected error occurred")
            await response(scope, receive, send)
