"""Repository registry backed by SQLite.

The registry owns repository identity and on-disk layout:

    <data_dir>/app.db                              registry database
    <data_dir>/repos/<repo_id>/                    per-repository data
    <data_dir>/repos/<repo_id>/scip/index.scip     semantic index

Reads are served from an in-memory snapshot that is rebuilt after every
write, so request handlers never touch the database.
"""

from __future__ import annotations

import shutil
import threading
import time
from collections import OrderedDict
from pathlib import Path

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from codebrowser.config.constants import (
    DB_FILENAME,
    REPO_ID_MAX,
    REPOS_SUBDIR,
    SCIP_INDEX_FILENAME,
    SCIP_SUBDIR,
)
from codebrowser.core.errors import RequestError
from codebrowser.registry.database import Database
from codebrowser.registry.models import Repository, RepoRef, TreeEntry
from codebrowser.registry.source import SourceReader, normalize_rel_path

logger = structlog.get_logger()


def parse_repo_id(value: str | int) -> int | None:
    """Parse an external repository identifier. Returns None when invalid."""
    if isinstance(value, int):
        repo_id = value
    else:
        text = value.strip()
        if not text.isdigit():
            return None
        repo_id = int(text)
    if not (0 < repo_id <= REPO_ID_MAX):
        return None
    return repo_id


class RepoRegistry:
    """Maps external repository identifiers to source trees and index files."""

    def __init__(
        self,
        data_dir: Path,
        *,
        blob_cache_size: int = 256,
        source_reader: SourceReader | None = None,
    ) -> None:
        self.data_dir = data_dir.resolve()
        (self.data_dir / REPOS_SUBDIR).mkdir(parents=True, exist_ok=True)

        self._db = Database(self.data_dir / DB_FILENAME)
        self._db.create_all()
        self._source = source_reader or SourceReader()

        self._lock = threading.RLock()
        self._repos: dict[int, RepoRef] = {}

        self._blob_cache_size = blob_cache_size
        self._blob_lock = threading.Lock()
        self._blob_cache: OrderedDict[tuple[int, str], bytes] = OrderedDict()

        self.reload()
        logger.info("registry_loaded", data_dir=str(self.data_dir), repos=len(self._repos))

    # =========================================================================
    # Read contract
    # =========================================================================

    def resolve(self, repo_id: str | int) -> RepoRef | None:
        """Look up a repository by its external identifier."""
        parsed = parse_repo_id(repo_id)
        if parsed is None:
            return None
        with self._lock:
            return self._repos.get(parsed)

    def list_all(self) -> list[RepoRef]:
        """All repositories, ordered by name."""
        with self._lock:
            return sorted(self._repos.values(), key=lambda r: (r.name, r.repo_id))

    def count(self) -> int:
        with self._lock:
            return len(self._repos)

    def index_path_of(self, repo: RepoRef) -> Path:
        """Location of the repository's semantic index file."""
        return repo.data_path / SCIP_SUBDIR / SCIP_INDEX_FILENAME

    def read_blob(self, repo: RepoRef, rel_path: str) -> bytes:
        """Read a file from the repository, caching recent blobs."""
        key = (repo.repo_id, normalize_rel_path(rel_path))
        with self._blob_lock:
            cached = self._blob_cache.get(key)
            if cached is not None:
                self._blob_cache.move_to_end(key)
                return cached

        data = self._source.read_blob(repo, rel_path)

        with self._blob_lock:
            self._blob_cache[key] = data
            self._blob_cache.move_to_end(key)
            while len(self._blob_cache) > self._blob_cache_size:
                self._blob_cache.popitem(last=False)
        return data

    def list_tree(self, repo: RepoRef, rel_path: str = "") -> list[TreeEntry]:
        return self._source.list_tree(repo, rel_path)

    # =========================================================================
    # Admin operations
    # =========================================================================

    def add(self, repo_id: int, name: str, source_path: Path) -> RepoRef:
        """Register a repository and create its data directory."""
        if parse_repo_id(repo_id) is None:
            raise RequestError.bad_request(f"Repository id must be 1..{REPO_ID_MAX}")
        if not name:
            raise RequestError.bad_request("Repository name must not be empty")

        source = source_path.expanduser().resolve()
        if not source.is_dir():
            raise RequestError.bad_request(f"Source path is not a directory: {source}")

        data_path = self.data_dir / REPOS_SUBDIR / str(repo_id)
        data_path.mkdir(parents=True, exist_ok=True)

        row = Repository(
            repo_id=repo_id,
            name=name,
            source_path=str(source),
            data_path=str(data_path),
        )
        try:
            with self._db.session() as session:
                session.add(row)
                session.commit()
        except IntegrityError as e:
            raise RequestError.repo_exists(repo_id) from e

        logger.info("repo_added", repo_id=repo_id, name=name, source_path=str(source))
        self.reload()
        return RepoRef(repo_id=repo_id, name=name, source_path=source, data_path=data_path)

    def delete(self, repo_id: int) -> None:
        """Unregister a repository and remove its data directory."""
        with self._db.session() as session:
            row = session.exec(select(Repository).where(Repository.repo_id == repo_id)).first()
            if row is None:
                raise RequestError.repo_not_found(str(repo_id))
            data_path = Path(row.data_path)
            session.delete(row)
            session.commit()

        logger.info("repo_deleted", repo_id=repo_id)
        if data_path.is_dir():
            shutil.rmtree(data_path, ignore_errors=True)

        with self._blob_lock:
            for key in [k for k in self._blob_cache if k[0] == repo_id]:
                del self._blob_cache[key]
        self.reload()

    def register_scip(self, repo_id: int, scip_file: Path) -> Path:
        """Copy a semantic index produced elsewhere into the repository's data dir."""
        repo = self.resolve(repo_id)
        if repo is None:
            raise RequestError.repo_not_found(str(repo_id))
        if not scip_file.is_file():
            raise RequestError.bad_request(f"SCIP file not found: {scip_file}")

        target = self.index_path_of(repo)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(scip_file, target)

        with self._db.session() as session:
            row = session.exec(select(Repository).where(Repository.repo_id == repo_id)).one()
            row.updated_at = time.time()
            session.add(row)
            session.commit()

        logger.info("scip_registered", repo_id=repo_id, path=str(target))
        return target

    def reload(self) -> None:
        """Rebuild the in-memory snapshot from the database."""
        with self._db.session() as session:
            rows = session.exec(select(Repository)).all()
            repos = {row.repo_id: RepoRef.from_row(row) for row in rows}
        with self._lock:
            self._repos = repos

    def close(self) -> None:
        self._db.close()
