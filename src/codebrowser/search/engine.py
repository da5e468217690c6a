"""Search engine protocol."""

from typing import Protocol

from codebrowser.registry.models import RepoRef
from codebrowser.search.models import EngineKind, SearchResult


class SearchEngine(Protocol):
    """Uniform query contract over the available search backends.

    Every failure (transport, subprocess, malformed output) surfaces as
    SearchError; an empty list means the query matched nothing.
    """

    @property
    def name(self) -> str:
        """Engine identifier used in request parameters (e.g. 'zoekt')."""
        ...

    @property
    def kind(self) -> EngineKind:
        """Query dialect; lets callers shape queries without type checks."""
        ...

    async def search_content(self, repo: RepoRef, query: str) -> list[SearchResult]:
        """Search file contents. Results keep engine order."""
        ...

    async def search_files(self, repo: RepoRef, query: str) -> list[str]:
        """Search file names, returning repository-relative paths."""
        ...

    async def aclose(self) -> None:
        """Release connections or other resources held by the engine."""
        ...
