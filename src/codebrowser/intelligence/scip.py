"""SCIP index parsing and the in-process semantic index store.

SCIP files are protobuf-encoded and contain, per document, the ordered list
of symbol occurrences with their ranges and role bits. The store parses an
index file once, keeps it for the process lifetime, and answers two
questions against it:

- which symbol sits under a cursor in a given document
- where else a symbol occurs across all documents, filtered by role

Usage::

    store = SemanticIndexStore()
    symbol = store.find_symbol_at(index_path, "pkg/a.go", line=3, column=7)
    if symbol is not None:
        for loc in store.occurrences_of(index_path, symbol, LookupKind.DEFINITION):
            print(loc.document_path, loc.range)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
from google.protobuf.message import DecodeError

from codebrowser.core.errors import InternalError, SemanticIndexError
from codebrowser.intelligence import _proto
from codebrowser.intelligence.models import LookupKind

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class SCIPOccurrence:
    """A symbol occurrence from a SCIP document."""

    symbol: str
    range: tuple[int, ...]  # [sl, sc, ec] or [sl, sc, el, ec], 0-based
    roles: int = 0

    @property
    def is_definition(self) -> bool:
        return bool(self.roles & _proto.SYMBOL_ROLE_DEFINITION)

    def span(self) -> tuple[int, int, int, int]:
        """Effective (start_line, start_col, end_line, end_col)."""
        if len(self.range) == 3:
            start_line, start_col, end_col = self.range
            return start_line, start_col, start_line, end_col
        start_line, start_col, end_line, end_col = self.range
        return start_line, start_col, end_line, end_col

    def contains(self, line: int, column: int) -> bool:
        """Whether the cursor (line, column) falls inside this occurrence.

        End columns are exclusive on the end line; start columns inclusive
        on the start line. Lines strictly between start and end match any
        column.
        """
        start_line, start_col, end_line, end_col = self.span()
        if line < start_line or line > end_line:
            return False
        if start_line == end_line:
            return start_col <= column < end_col
        if line == start_line:
            return column >= start_col
        if line == end_line:
            return column < end_col
        return True


@dataclass(slots=True)
class SCIPDocument:
    """A parsed SCIP document."""

    relative_path: str
    language: str = ""
    occurrences: list[SCIPOccurrence] = field(default_factory=list)


@dataclass
class SCIPIndex:
    """Complete SCIP index for a repository."""

    documents: list[SCIPDocument] = field(default_factory=list)
    _by_path: dict[str, SCIPDocument] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        for doc in self.documents:
            # First document wins when a path is emitted twice
            self._by_path.setdefault(doc.relative_path, doc)

    def document(self, relative_path: str) -> SCIPDocument | None:
        return self._by_path.get(relative_path)

    @property
    def occurrence_count(self) -> int:
        return sum(len(doc.occurrences) for doc in self.documents)


@dataclass(frozen=True, slots=True)
class IndexLocation:
    """One occurrence of a symbol: the document it is in and its raw range."""

    document_path: str
    range: tuple[int, ...]


class SCIPParser:
    """
    Parses SCIP index files into SCIPIndex.

    Only documents and their occurrences are read. Occurrences without a
    symbol, or whose range is neither 3 nor 4 integers long, are dropped.
    """

    def parse(self, scip_path: Path) -> SCIPIndex:
        """
        Parse a SCIP index file.

        Args:
            scip_path: Path to .scip file

        Returns:
            SCIPIndex with parsed documents.

        Raises:
            SemanticIndexError: NO_INDEX if the file does not exist,
                INDEX_CORRUPT if it cannot be read or decoded.
        """
        try:
            data = scip_path.read_bytes()
        except FileNotFoundError as e:
            raise SemanticIndexError.no_index(str(scip_path)) from e
        except OSError as e:
            raise SemanticIndexError.corrupt(str(scip_path), str(e)) from e

        proto_index = _proto.Index()
        try:
            proto_index.ParseFromString(data)
        except DecodeError as e:
            raise SemanticIndexError.corrupt(str(scip_path), str(e)) from e

        return self._convert_index(proto_index)

    def _convert_index(self, proto_index: Any) -> SCIPIndex:
        """Convert protobuf Index to our dataclass."""
        return SCIPIndex(documents=[self._convert_document(d) for d in proto_index.documents])

    def _convert_document(self, proto_doc: Any) -> SCIPDocument:
        """Convert protobuf Document to our dataclass."""
        doc = SCIPDocument(relative_path=proto_doc.relative_path, language=proto_doc.language)
        for proto_occ in proto_doc.occurrences:
            occ = self._convert_occurrence(proto_occ)
            if occ is not None:
                doc.occurrences.append(occ)
        return doc

    def _convert_occurrence(self, proto_occ: Any) -> SCIPOccurrence | None:
        """Convert protobuf Occurrence to our dataclass."""
        if not proto_occ.symbol:
            return None
        range_data = tuple(proto_occ.range)
        if len(range_data) not in (3, 4):
            return None
        return SCIPOccurrence(
            symbol=proto_occ.symbol,
            range=range_data,
            roles=proto_occ.symbol_roles,
        )


@dataclass
class _PendingLoad:
    """Latch shared by every caller waiting on one in-flight parse."""

    generation: int
    event: threading.Event = field(default_factory=threading.Event)
    index: SCIPIndex | None = None
    error: BaseException | None = None


class SemanticIndexStore:
    """
    Process-wide cache of parsed SCIP indexes keyed by index file path.

    Each index is parsed at most once at a time: the first caller for a path
    parses it while later callers block on the same latch and observe the
    same result or the same error. Failed parses are not cached, so a
    corrected file is picked up by the next lookup. Cached indexes are
    immutable and only replaced through invalidate().

    All methods are blocking; async callers run them in a worker thread.
    """

    def __init__(self, parser: SCIPParser | None = None) -> None:
        self._parser = parser or SCIPParser()
        self._lock = threading.Lock()
        self._indexes: dict[Path, SCIPIndex] = {}
        self._pending: dict[Path, _PendingLoad] = {}
        self._generation = 0

    def has_index(self, index_path: Path) -> bool:
        """Whether an index is cached or present on disk for this path."""
        key = Path(index_path)
        with self._lock:
            if key in self._indexes:
                return True
        return key.is_file()

    def load(self, index_path: Path) -> SCIPIndex:
        """Return the cached index for index_path, parsing it on first use."""
        key = Path(index_path)
        with self._lock:
            cached = self._indexes.get(key)
            if cached is not None:
                logger.debug("scip_cache_hit", path=str(key))
                return cached
            pending = self._pending.get(key)
            owner = pending is None
            if pending is None:
                pending = _PendingLoad(generation=self._generation)
                self._pending[key] = pending

        if not owner:
            pending.event.wait()
            if pending.error is not None:
                raise pending.error
            if pending.index is None:
                raise InternalError.unexpected(
                    "index load finished without a result", path=str(key)
                )
            return pending.index

        try:
            index = self._parser.parse(key)
        except BaseException as e:
            pending.error = e
            with self._lock:
                self._pending.pop(key, None)
            pending.event.set()
            if isinstance(e, SemanticIndexError) and e.recoverable:
                logger.debug("scip_index_missing", path=str(key))
            else:
                logger.warning("scip_index_load_failed", path=str(key), error=str(e))
            raise

        pending.index = index
        with self._lock:
            self._pending.pop(key, None)
            # An invalidate() during the parse means the file may have changed
            if pending.generation == self._generation:
                self._indexes[key] = index
        pending.event.set()
        logger.info(
            "scip_index_loaded",
            path=str(key),
            documents=len(index.documents),
            occurrences=index.occurrence_count,
        )
        return index

    def find_symbol_at(
        self, index_path: Path, file_path: str, line: int, column: int
    ) -> str | None:
        """
        Symbol of the first occurrence in file_path containing (line, column).

        Coordinates are 0-based, as in the index. Returns None when no
        occurrence contains the cursor.

        Raises:
            SemanticIndexError: NO_INDEX, INDEX_CORRUPT, or DOCUMENT_MISSING
                when file_path is not an indexed document.
        """
        index = self.load(index_path)
        doc = index.document(file_path)
        if doc is None:
            raise SemanticIndexError.document_missing(file_path)
        for occ in doc.occurrences:
            if occ.contains(line, column):
                return occ.symbol
        return None

    def occurrences_of(
        self, index_path: Path, symbol: str, kind: LookupKind
    ) -> list[IndexLocation]:
        """
        All occurrences of symbol across documents, in document order.

        Definitions are occurrences with the Definition role bit set;
        references are every other occurrence. Duplicates are kept.
        """
        index = self.load(index_path)
        want_definition = kind is LookupKind.DEFINITION
        return [
            IndexLocation(document_path=doc.relative_path, range=occ.range)
            for doc in index.documents
            for occ in doc.occurrences
            if occ.symbol == symbol and occ.is_definition == want_definition
        ]

    def invalidate(self, index_path: Path | None = None) -> int:
        """Drop one cached index, or all of them. Returns how many were dropped."""
        with self._lock:
            self._generation += 1
            if index_path is None:
                dropped = len(self._indexes)
                self._indexes.clear()
            else:
                dropped = 1 if self._indexes.pop(Path(index_path), None) is not None else 0
        logger.info(
            "scip_cache_invalidated",
            path=str(index_path) if index_path is not None else None,
            dropped=dropped,
        )
        return dropped

    def cached_paths(self) -> list[Path]:
        with self._lock:
            return list(self._indexes)
