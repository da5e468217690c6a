"""Source access layer - reads file trees and blobs for a repository.

Content is served from the HEAD commit of the repository's git checkout,
so browsing never observes uncommitted edits. Source paths that are not
git repositories are served from the working tree instead.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pygit2
from pygit2.enums import RepositoryOpenFlag

from codebrowser.core.errors import RequestError, SourceError
from codebrowser.registry.models import RepoRef, TreeEntry


def normalize_rel_path(rel_path: str) -> str:
    """Normalize a client-supplied repository-relative path.

    Returns "" for the repository root. Raises RequestError for paths
    escaping the repository.
    """
    cleaned = rel_path.replace("\\", "/").strip("/")
    parts = [p for p in PurePosixPath(cleaned).parts if p not in ("", ".")]
    if ".." in parts:
        raise RequestError.bad_request(f"Path escapes repository: {rel_path}")
    return "/".join(parts)


class SourceReader:
    """Reads trees and blobs from a repository's HEAD, or its working tree."""

    def read_blob(self, repo: RepoRef, rel_path: str) -> bytes:
        """Return the raw bytes of a file.

        Raises:
            RequestError: The path does not name a file.
            SourceError: The repository itself cannot be read.
        """
        path = normalize_rel_path(rel_path)
        if not path:
            raise RequestError.bad_request("A file path is required")

        git_repo = self._open(repo)
        if git_repo is None:
            return self._read_worktree_file(repo, path)

        tree = self._head_tree(git_repo, repo)
        try:
            obj = tree[path]
        except KeyError as e:
            raise RequestError.path_not_found(path) from e
        if not isinstance(obj, pygit2.Blob):
            raise RequestError.bad_request(f"Path '{path}' is not a file")
        return obj.data

    def list_tree(self, repo: RepoRef, rel_path: str = "") -> list[TreeEntry]:
        """List the direct children of a directory."""
        path = normalize_rel_path(rel_path)

        git_repo = self._open(repo)
        if git_repo is None:
            return self._list_worktree_dir(repo, path)

        tree = self._head_tree(git_repo, repo)
        if path:
            try:
                obj = tree[path]
            except KeyError as e:
                raise RequestError.path_not_found(path) from e
            if not isinstance(obj, pygit2.Tree):
                raise RequestError.bad_request(f"Path '{path}' is not a directory")
            tree = obj

        return [
            TreeEntry(
                name=child.name,
                path=f"{path}/{child.name}" if path else child.name,
                type="file" if isinstance(child, pygit2.Blob) else "directory",
            )
            for child in tree
        ]

    # =========================================================================
    # Git access
    # =========================================================================

    def _open(self, repo: RepoRef) -> pygit2.Repository | None:
        if not repo.source_path.is_dir():
            raise SourceError.unavailable(str(repo.source_path), "source path does not exist")
        try:
            return pygit2.Repository(
                str(repo.source_path), flags=RepositoryOpenFlag.NO_SEARCH
            )
        except pygit2.GitError:
            return None

    def _head_tree(self, git_repo: pygit2.Repository, repo: RepoRef) -> pygit2.Tree:
        if git_repo.head_is_unborn:
            raise SourceError.unavailable(str(repo.source_path), "HEAD has no commits")
        try:
            return git_repo.head.peel(pygit2.Tree)
        except pygit2.GitError as e:
            raise SourceError.unavailable(str(repo.source_path), str(e)) from e

    # =========================================================================
    # Working tree access
    # =========================================================================

    def _resolve_worktree_path(self, repo: RepoRef, path: str) -> Path:
        root = repo.source_path.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise RequestError.bad_request(f"Path escapes repository: {path}")
        return target

    def _read_worktree_file(self, repo: RepoRef, path: str) -> bytes:
        target = self._resolve_worktree_path(repo, path)
        if not target.exists():
            raise RequestError.path_not_found(path)
        if not target.is_file():
            raise RequestError.bad_request(f"Path '{path}' is not a file")
        try:
            return target.read_bytes()
        except OSError as e:
            raise SourceError.unavailable(path, str(e)) from e

    def _list_worktree_dir(self, repo: RepoRef, path: str) -> list[TreeEntry]:
        target = self._resolve_worktree_path(repo, path)
        if not target.exists():
            raise RequestError.path_not_found(path)
        if not target.is_dir():
            raise RequestError.bad_request(f"Path '{path}' is not a directory")
        return [
            TreeEntry(
                name=child.name,
                path=f"{path}/{child.name}" if path else child.name,
                type="directory" if child.is_dir() else "file",
            )
            for child in sorted(target.iterdir(), key=lambda p: p.name)
            if child.name != ".git"
        ]
