"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages and
provides fixtures shared across test packages.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pygit2
import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))


@pytest.fixture
def make_git_repo(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a git checkout with one commit holding the given files."""

    def _make(files: dict[str, str], name: str = "repo") -> Path:
        repo_path = tmp_path / name
        repo_path.mkdir()
        repo = pygit2.init_repository(str(repo_path), initial_head="main")
        repo.config["user.name"] = "Test User"
        repo.config["user.email"] = "test@example.com"

        for rel, content in files.items():
            target = repo_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            repo.index.add(rel)
        repo.index.write()
        tree = repo.index.write_tree()
        sig = pygit2.Signature("Test User", "test@example.com")
        repo.create_commit("refs/heads/main", sig, sig, "Initial commit", tree, [])
        repo.set_head("refs/heads/main")
        return repo_path

    return _make


@pytest.fixture
def write_scip(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a SCIP index file.

    documents maps a relative path to (symbol, range, roles) occurrences.
    """
    from codebrowser.intelligence import _proto

    def _write(
        documents: dict[str, list[tuple[str, list[int], int]]],
        path: Path | None = None,
    ) -> Path:
        index = _proto.Index()
        for rel, occurrences in documents.items():
            doc = index.documents.add(relative_path=rel, language="go")
            for symbol, rng, roles in occurrences:
                doc.occurrences.add(symbol=symbol, range=rng, symbol_roles=roles)
        target = path or tmp_path / "index.scip"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(index.SerializeToString())
        return target

    return _write


class FakeEngine:
    """In-memory search engine recording every query it receives."""

    def __init__(
        self,
        kind: Any,
        results: dict[str, list[Any]] | None = None,
        *,
        name: str = "fake",
        fail_on: set[str] | None = None,
        fail_all: bool = False,
    ) -> None:
        self.kind = kind
        self.name = name
        self.queries: list[str] = []
        self.file_queries: list[str] = []
        self._results = results or {}
        self._fail_on = fail_on or set()
        self._fail_all = fail_all
        self.closed = False

    async def search_content(self, repo: Any, query: str) -> list[Any]:
        from codebrowser.core.errors import SearchError

        self.queries.append(query)
        if self._fail_all or query in self._fail_on:
            raise SearchError.failed(self.name, "engine unavailable")
        return list(self._results.get(query, []))

    async def search_files(self, repo: Any, query: str) -> list[str]:
        self.file_queries.append(query)
        return [f"{query}.go"]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_engine() -> Callable[..., FakeEngine]:
    """Factory for FakeEngine instances."""
    return FakeEngine
