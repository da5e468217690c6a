"""Repository registry - identity, source access and on-disk layout."""

from codebrowser.registry.models import RepoRef, TreeEntry
from codebrowser.registry.provider import RepoRegistry, parse_repo_id
from codebrowser.registry.source import SourceReader, normalize_rel_path

__all__ = [
    "RepoRef",
    "RepoRegistry",
    "SourceReader",
    "TreeEntry",
    "normalize_rel_path",
    "parse_repo_id",
]
