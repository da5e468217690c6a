"""Text-search fallback for lookups the semantic index cannot answer."""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from codebrowser.config.constants import FALLBACK_LIMIT_DEFAULT
from codebrowser.core.errors import SearchError
from codebrowser.intelligence.models import LookupKind
from codebrowser.registry.models import RepoRef
from codebrowser.search.engine import SearchEngine
from codebrowser.search.models import EngineKind, SearchResult

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class SearchLocation:
    """A line-granular location. Lines are 1-based; columns are always 0."""

    path: str
    start_line: int
    end_line: int
    start_column: int = 0
    end_column: int = 0


def whole_word_pattern(token: str) -> str:
    return rf"\b{re.escape(token)}\b"


class FallbackResolver:
    """
    Resolve a bare token to candidate locations through a search engine.

    Structural engines are asked for the symbol first (``sym:<token>``) and
    then, if that yields nothing or fails, for the whole word. Regex engines
    get the whole-word pattern directly. Results keep engine order; no
    ranking is attempted and definitions are not told apart from references.
    """

    def __init__(self, engine: SearchEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> SearchEngine:
        return self._engine

    async def resolve(
        self,
        repo: RepoRef,
        token: str,
        kind: LookupKind,
        limit: int = FALLBACK_LIMIT_DEFAULT,
    ) -> list[SearchLocation]:
        """
        Return at most limit locations for token.

        Raises:
            SearchError: If the engine fails on the final query.
        """
        if limit <= 0 or not token:
            return []

        matches = await self._query(repo, token)
        locations = [
            SearchLocation(path=m.path, start_line=m.line_num, end_line=m.line_num)
            for m in matches[:limit]
        ]
        logger.debug(
            "fallback_resolved",
            engine=self._engine.name,
            repo_id=repo.repo_id,
            token=token,
            kind=kind.value,
            matches=len(matches),
            returned=len(locations),
        )
        return locations

    async def _query(self, repo: RepoRef, token: str) -> list[SearchResult]:
        if self._engine.kind is EngineKind.STRUCTURAL:
            try:
                matches = await self._engine.search_content(repo, f"sym:{token}")
            except SearchError as e:
                logger.info(
                    "fallback_symbol_query_failed",
                    engine=self._engine.name,
                    token=token,
                    error=e.message,
                )
                matches = []
            if matches:
                return matches
        return await self._engine.search_content(repo, whole_word_pattern(token))
