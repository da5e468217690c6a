"""Zoekt search engine client.

Talks to a zoekt webserver over its JSON API:

    POST <base_url>/api/search
    {"Q": "<query>", "RepoIDs": [<repo_id>], "Opts": {"TotalMaxMatchCount": 1000}}

Zoekt indexes repositories under their numeric id (zoekt.repoid in the
repository's git config), so results are scoped with RepoIDs rather than
a ``repo:`` query atom.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

import httpx
import structlog

from codebrowser.config.constants import ZOEKT_MAX_MATCH_COUNT_DEFAULT
from codebrowser.core.errors import SearchError
from codebrowser.registry.models import RepoRef
from codebrowser.search.models import EngineKind, Fragment, SearchResult

logger = structlog.get_logger()

SEARCH_ENDPOINT = "/api/search"


def _decode_line(raw: Any) -> str:
    """Decode a LineMatch.Line value.

    Go encodes []byte as base64 in JSON; older builds send plain text.
    """
    if not isinstance(raw, str):
        return ""
    try:
        text = base64.b64decode(raw, validate=True).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        text = raw
    return text.rstrip("\r\n")


class ZoektEngine:
    """Structural code search via zoekt."""

    name = "zoekt"
    kind = EngineKind.STRUCTURAL

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        max_match_count: int = ZOEKT_MAX_MATCH_COUNT_DEFAULT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._max_match_count = max_match_count
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def search_content(self, repo: RepoRef, query: str) -> list[SearchResult]:
        result = await self._search(repo, query)

        results: list[SearchResult] = []
        for file_match in result.get("Files") or []:
            path = file_match.get("FileName", "")
            for line_match in file_match.get("LineMatches") or []:
                # File-name hits are reported as line matches without a line
                if line_match.get("FileName"):
                    continue
                fragments = tuple(
                    Fragment(offset=frag.get("LineOffset", 0), length=frag.get("MatchLength", 0))
                    for frag in line_match.get("LineFragments") or []
                )
                results.append(
                    SearchResult(
                        path=path,
                        line_num=int(line_match.get("LineNumber", 0)),
                        line_text=_decode_line(line_match.get("Line")),
                        fragments=fragments,
                    )
                )
        logger.debug("zoekt_search", repo_id=repo.repo_id, query=query, results=len(results))
        return results

    async def search_files(self, repo: RepoRef, query: str) -> list[str]:
        if not query:
            return []
        result = await self._search(repo, f"f:{query}")
        return [f["FileName"] for f in result.get("Files") or [] if f.get("FileName")]

    async def _search(self, repo: RepoRef, query: str) -> dict[str, Any]:
        payload = {
            "Q": query,
            "RepoIDs": [repo.repo_id],
            "Opts": {"TotalMaxMatchCount": self._max_match_count},
        }
        try:
            response = await self._client.post(SEARCH_ENDPOINT, json=payload)
        except httpx.HTTPError as e:
            raise SearchError.failed(self.name, f"cannot reach {self.base_url}: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise SearchError.failed(self.name, f"server returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise SearchError.failed(self.name, f"invalid JSON response: {e}") from e

        if not isinstance(body, dict):
            raise SearchError.failed(self.name, "unexpected response shape")
        return body.get("Result") or {}

    async def aclose(self) -> None:
        await self._client.aclose()
