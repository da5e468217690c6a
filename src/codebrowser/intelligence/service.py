"""Definition and reference lookups.

A lookup first asks the semantic index for the symbol under the cursor and
its occurrences. When the repository has no index, the file is not indexed,
no symbol covers the cursor, or the symbol has no occurrences of the
requested kind, the token under the cursor is extracted from the file text
and handed to the text-search fallback.

Coordinates: requests and the semantic index are 0-based; responses use
1-based lines and pass columns through unchanged. The only conversion point
is _build_scip_response().
"""

from __future__ import annotations

import asyncio

import structlog

from codebrowser.config.constants import FALLBACK_LIMIT_DEFAULT
from codebrowser.core.errors import RequestError, SemanticIndexError, SourceError
from codebrowser.intelligence.fallback import FallbackResolver, SearchLocation
from codebrowser.intelligence.models import (
    DefinitionRequest,
    DefinitionResponse,
    Location,
    LookupKind,
    Provenance,
)
from codebrowser.intelligence.scip import IndexLocation, SemanticIndexStore
from codebrowser.intelligence.words import word_at
from codebrowser.registry.models import RepoRef
from codebrowser.registry.provider import RepoRegistry
from codebrowser.registry.source import normalize_rel_path

logger = structlog.get_logger()


def _build_scip_response(
    kind: LookupKind, repo: RepoRef, loc: IndexLocation
) -> DefinitionResponse:
    """Convert a semantic-index occurrence to its wire form.

    [sl, sc, ec]     -> startLine = endLine = sl + 1
    [sl, sc, el, ec] -> startLine = sl + 1, endLine = el + 1
    """
    if len(loc.range) == 3:
        start_line, start_col, end_col = loc.range
        end_line = start_line
    else:
        start_line, start_col, end_line, end_col = loc.range
    return DefinitionResponse(
        kind=kind.value,
        repo_id=repo.repo_id_str,
        file_path=loc.document_path,
        range=Location(
            start_line=start_line + 1,
            start_column=start_col,
            end_line=end_line + 1,
            end_column=end_col,
        ),
        source=Provenance.SCIP.value,
    )


def _build_search_response(
    kind: LookupKind, repo: RepoRef, loc: SearchLocation
) -> DefinitionResponse:
    """Search locations are already 1-based and line-granular."""
    return DefinitionResponse(
        kind=kind.value,
        repo_id=repo.repo_id_str,
        file_path=loc.path,
        range=Location(
            start_line=loc.start_line,
            start_column=loc.start_column,
            end_line=loc.end_line,
            end_column=loc.end_column,
        ),
        source=Provenance.SEARCH.value,
    )


def _line_of(data: bytes, line: int) -> str:
    """0-based line of a blob; lines past the end of the file are empty."""
    lines = data.decode("utf-8", errors="replace").split("\n")
    if line >= len(lines):
        return ""
    return lines[line].rstrip("\r")


class IntelligenceService:
    """Answers definition and reference lookups for registered repositories."""

    def __init__(
        self,
        registry: RepoRegistry,
        store: SemanticIndexStore,
        resolver: FallbackResolver,
        *,
        fallback_limit: int = FALLBACK_LIMIT_DEFAULT,
    ) -> None:
        self._registry = registry
        self._store = store
        self._resolver = resolver
        self._fallback_limit = fallback_limit

    @property
    def store(self) -> SemanticIndexStore:
        return self._store

    async def get_definitions(self, request: DefinitionRequest) -> list[DefinitionResponse]:
        return await self.lookup(request, LookupKind.DEFINITION)

    async def get_references(self, request: DefinitionRequest) -> list[DefinitionResponse]:
        return await self.lookup(request, LookupKind.REFERENCE)

    async def lookup(
        self, request: DefinitionRequest, kind: LookupKind
    ) -> list[DefinitionResponse]:
        """
        Resolve the symbol under the cursor to locations of the given kind.

        Raises:
            RequestError: Unknown repository (404) or invalid path (400).
            SemanticIndexError: The index exists but is corrupt.
            SourceError: The file could not be read for the fallback.
            SearchError: The fallback engine failed.
        """
        repo = self._registry.resolve(request.repo_id)
        if repo is None:
            raise RequestError.repo_not_found(request.repo_id)

        semantic = await asyncio.to_thread(self._semantic_lookup, repo, request, kind)
        if semantic:
            return [_build_scip_response(kind, repo, loc) for loc in semantic]

        line_text = await asyncio.to_thread(self._read_line, repo, request.file_path, request.line)
        token = word_at(line_text, request.character)
        if token is None:
            logger.debug(
                "no_symbol_at_cursor",
                repo_id=repo.repo_id,
                file_path=request.file_path,
                line=request.line,
                character=request.character,
            )
            return []

        logger.info(
            "fallback_search",
            repo_id=repo.repo_id,
            file_path=request.file_path,
            token=token,
            kind=kind.value,
            engine=self._resolver.engine.name,
        )
        found = await self._resolver.resolve(repo, token, kind, self._fallback_limit)
        return [_build_search_response(kind, repo, loc) for loc in found]

    def _semantic_lookup(
        self, repo: RepoRef, request: DefinitionRequest, kind: LookupKind
    ) -> list[IndexLocation]:
        """Occurrences from the semantic index, or [] when it cannot answer."""
        index_path = self._registry.index_path_of(repo)
        if not self._store.has_index(index_path):
            return []
        try:
            symbol = self._store.find_symbol_at(
                index_path, request.file_path, request.line, request.character
            )
            if symbol is None:
                raise SemanticIndexError.symbol_not_found(
                    request.file_path, request.line, request.character
                )
            return self._store.occurrences_of(index_path, symbol, kind)
        except SemanticIndexError as e:
            if not e.recoverable:
                raise
            logger.debug("semantic_lookup_miss", repo_id=repo.repo_id, reason=e.error_name)
            return []

    def _read_line(self, repo: RepoRef, file_path: str, line: int) -> str:
        # Paths escaping the repository stay a client error
        normalize_rel_path(file_path)
        try:
            data = self._registry.read_blob(repo, file_path)
        except RequestError as e:
            raise SourceError.unavailable(file_path, e.message) from e
        return _line_of(data, line)

    def invalidate(self, repo_id: str | None = None) -> int:
        """Drop cached indexes for one repository, or for all of them."""
        if repo_id is None:
            return self._store.invalidate()
        repo = self._registry.resolve(repo_id)
        if repo is None:
            raise RequestError.repo_not_found(repo_id)
        return self._store.invalidate(self._registry.index_path_of(repo))
