"""HTTP middleware for request correlation and per-request deadlines."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from codebrowser.core.logging import clear_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger()

# Type alias for the call_next function
CallNext = Callable[[Request], Awaitable[Response]]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to every request and log its outcome."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.debug(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return response
        finally:
            clear_request_id()


class TimeoutMiddleware:
    """Cancel requests that run past a wall-clock deadline.

    Written as plain ASGI so the cancellation lands in the handler's own
    task and reaches outbound HTTP calls and child processes it awaits.
    """

    def __init__(self, app: ASGIApp, timeout_sec: float) -> None:
        self.app = app
        self.timeout_sec = timeout_sec

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
            async with asyncio.timeout(self.timeout_sec):
                await self.app(scope, receive, send_wrapper)
        except TimeoutError:
            logger.warning(
                "request_timeout",
                path=scope.get("path"),
                timeout_sec=self.timeout_sec,
            )
            if response_started:
                raise
            response = PlainTextResponse(
                f"Request timed out after {self.timeout_sec:g}s", status_code=504
            )
            await response(scope, receive, send)
