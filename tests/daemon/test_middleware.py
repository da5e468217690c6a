"""Tests for daemon/middleware.py module.

Covers:
- REQUEST_ID_HEADER constant
- RequestContextMiddleware class
- TimeoutMiddleware class
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from codebrowser.core.logging import get_request_id
from codebrowser.daemon.middleware import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
    TimeoutMiddleware,
)


async def _echo_request_id(request: Request) -> PlainTextResponse:
    _ = request
    return PlainTextResponse(get_request_id() or "")


async def _slow(request: Request) -> PlainTextResponse:
    _ = request
    await asyncio.sleep(5)
    return PlainTextResponse("late")


async def _fast(request: Request) -> PlainTextResponse:
    _ = request
    return PlainTextResponse("ok")


def _app(timeout_sec: float = 0.05) -> Starlette:
    app = Starlette(
        routes=[
            Route("/rid", _echo_request_id),
            Route("/slow", _slow),
            Route("/fast", _fast),
        ]
    )
    app.add_middleware(TimeoutMiddleware, timeout_sec=timeout_sec)
    app.add_middleware(RequestContextMiddleware)
    return app


class TestRequestIdHeader:
    """Tests for REQUEST_ID_HEADER constant."""

    def test_header_name(self) -> None:
        """Header name is correct."""
        assert REQUEST_ID_HEADER == "X-Request-ID"


class TestRequestContextMiddleware:
    """Tests for RequestContextMiddleware class."""

    def test_generates_request_id(self) -> None:
        """A request without an ID gets one, visible to the handler and the client."""
        client = TestClient(_app())
        response = client.get("/rid")

        assert response.status_code == 200
        assert response.text
        assert response.headers[REQUEST_ID_HEADER] == response.text

    def test_propagates_incoming_request_id(self) -> None:
        """An incoming ID is reused."""
        client = TestClient(_app())
        response = client.get("/rid", headers={REQUEST_ID_HEADER: "abc123"})

        assert response.text == "abc123"
        assert response.headers[REQUEST_ID_HEADER] == "abc123"

    def test_distinct_ids_per_request(self) -> None:
        """Generated IDs differ between requests."""
        client = TestClient(_app())
        first = client.get("/rid").headers[REQUEST_ID_HEADER]
        second = client.get("/rid").headers[REQUEST_ID_HEADER]
        assert first != second


class TestTimeoutMiddleware:
    """Tests for TimeoutMiddleware class."""

    def test_stores_app_and_timeout(self) -> None:
        """Middleware stores the wrapped app and deadline."""
        mock_app = MagicMock()
        middleware = TimeoutMiddleware(mock_app, 2.5)
        assert middleware.app is mock_app
        assert middleware.timeout_sec == 2.5

    def test_fast_request_passes(self) -> None:
        """Requests within the deadline are untouched."""
        response = TestClient(_app()).get("/fast")
        assert response.status_code == 200
        assert response.text == "ok"

    def test_slow_request_returns_504(self) -> None:
        """Requests past the deadline get a plain-text 504."""
        response = TestClient(_app(timeout_sec=0.05)).get("/slow")

        assert response.status_code == 504
        assert response.text == "Request timed out after 0.05s"
        assert REQUEST_ID_HEADER in response.headers

    @pytest.mark.asyncio
    async def test_passes_through_non_http(self) -> None:
        """Passes through non-HTTP scopes unchanged."""
        called_with: list[dict] = []

        async def inner(scope: dict, receive: object, send: object) -> None:
            _ = receive, send
            called_with.append(scope)

        middleware = TimeoutMiddleware(inner, 0.01)
        scope = {"type": "lifespan"}

        await middleware(scope, MagicMock(), MagicMock())

        assert called_with == [scope]

    @pytest.mark.asyncio
    async def test_timeout_after_response_started_reraises(self) -> None:
        """A deadline hit mid-stream cannot be turned into a 504."""

        async def inner(scope: dict, receive: object, send: Any) -> None:
            _ = scope, receive
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"first", "more_body": True})
            await asyncio.sleep(5)

        sent: list[dict] = []

        async def send(message: dict) -> None:
            sent.append(message)

        middleware = TimeoutMiddleware(inner, 0.05)
        scope = {"type": "http", "method": "GET", "path": "/", "headers": []}

        with pytest.raises(TimeoutError):
            await middleware(scope, MagicMock(), send)

        assert sent[0]["type"] == "http.response.start"
        assert sent[0]["status"] == 200
