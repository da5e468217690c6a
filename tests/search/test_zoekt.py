"""Tests for search/zoekt.py module.

The zoekt webserver is replaced with httpx.MockTransport.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from codebrowser.core.errors import SearchError
from codebrowser.registry.models import RepoRef
from codebrowser.search.models import EngineKind, Fragment
from codebrowser.search.zoekt import ZoektEngine, _decode_line

REPO = RepoRef(repo_id=42, name="demo", source_path=Path("/src/demo"), data_path=Path("/d/42"))


def _b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def _engine(handler: Callable[[httpx.Request], httpx.Response]) -> ZoektEngine:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://zoekt")
    return ZoektEngine("http://zoekt", client=client)


def _reply(result: dict[str, Any]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"Result": result})

    return handler


class TestDecodeLine:
    """Tests for _decode_line function."""

    def test_base64(self) -> None:
        """Go []byte fields arrive base64-encoded."""
        assert _decode_line(_b64("func Foo() {}\n")) == "func Foo() {}"

    def test_non_string(self) -> None:
        """Missing lines decode to empty text."""
        assert _decode_line(None) == ""


class TestRequestShape:
    """Outbound request contract."""

    @pytest.mark.asyncio
    async def test_posts_json_query(self) -> None:
        """Query, repo id and match cap are sent as JSON to /api/search."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Result": {}})

        engine = _engine(handler)
        await engine.search_content(REPO, "sym:Foo")
        await engine.aclose()

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/search"
        assert json.loads(seen[0].content) == {
            "Q": "sym:Foo",
            "RepoIDs": [42],
            "Opts": {"TotalMaxMatchCount": 1000},
        }

    def test_kind_is_structural(self) -> None:
        """Zoekt understands symbol-scoped queries."""
        assert ZoektEngine("http://zoekt").kind is EngineKind.STRUCTURAL


class TestSearchContent:
    """Response parsing."""

    @pytest.mark.asyncio
    async def test_parses_line_matches(self) -> None:
        """Each line match becomes one result in engine order."""
        engine = _engine(
            _reply(
                {
                    "Files": [
                        {
                            "FileName": "d.go",
                            "LineMatches": [
                                {
                                    "Line": _b64("  foo_bar()"),
                                    "LineNumber": 5,
                                    "LineFragments": [{"LineOffset": 2, "MatchLength": 7}],
                                },
                                {"Line": _b64("x := foo_bar"), "LineNumber": 9},
                            ],
                        },
                        {
                            "FileName": "e.go",
                            "LineMatches": [{"Line": _b64("foo_bar"), "LineNumber": 1}],
                        },
                    ]
                }
            )
        )

        results = await engine.search_content(REPO, "foo_bar")

        assert [(r.path, r.line_num) for r in results] == [("d.go", 5), ("d.go", 9), ("e.go", 1)]
        assert results[0].line_text == "  foo_bar()"
        assert results[0].fragments == (Fragment(offset=2, length=7),)

    @pytest.mark.asyncio
    async def test_skips_file_name_matches(self) -> None:
        """Matches on the file name carry no line and are dropped."""
        engine = _engine(
            _reply(
                {
                    "Files": [
                        {
                            "FileName": "foo_bar.go",
                            "LineMatches": [{"Line": "", "LineNumber": 0, "FileName": True}],
                        }
                    ]
                }
            )
        )

        assert await engine.search_content(REPO, "foo_bar") == []

    @pytest.mark.asyncio
    async def test_empty_result(self) -> None:
        """No Files means no results."""
        engine = _engine(_reply({"Files": None}))
        assert await engine.search_content(REPO, "nothing") == []


class TestSearchFiles:
    """File-name search."""

    @pytest.mark.asyncio
    async def test_uses_file_atom(self) -> None:
        """File search is a content search with the f: atom."""
        queries: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(json.loads(request.content)["Q"])
            return httpx.Response(
                200, json={"Result": {"Files": [{"FileName": "pkg/a.go"}, {"FileName": "a.md"}]}}
            )

        files = await _engine(handler).search_files(REPO, "a")

        assert queries == ["f:a"]
        assert files == ["pkg/a.go", "a.md"]

    @pytest.mark.asyncio
    async def test_empty_query_skips_request(self) -> None:
        """An empty query returns nothing without calling zoekt."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unexpected request")

        assert await _engine(handler).search_files(REPO, "") == []


class TestFailures:
    """Every failure surfaces as SearchError."""

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Non-200 responses fail the search."""
        engine = _engine(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(SearchError, match="HTTP 502"):
            await engine.search_content(REPO, "x")

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Transport errors fail the search."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SearchError, match="cannot reach"):
            await _engine(handler).search_content(REPO, "x")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Unparseable bodies fail the search."""
        engine = _engine(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(SearchError, match="invalid JSON"):
            await engine.search_content(REPO, "x")
