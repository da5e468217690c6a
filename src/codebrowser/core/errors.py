"""CodeBrowser error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Semantic index
- 4xxx: Request
- 5xxx: Source access
- 6xxx: Search
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Semantic index (3xxx)
    INDEX_NOT_FOUND = 3001
    INDEX_DOCUMENT_MISSING = 3002
    INDEX_SYMBOL_NOT_FOUND = 3003
    INDEX_CORRUPT = 3004

    # Request (4xxx)
    BAD_REQUEST = 4001
    NOT_FOUND = 4004
    CONFLICT = 4009

    # Source access (5xxx)
    SOURCE_UNAVAILABLE = 5001

    # Search (6xxx)
    SEARCH_FAILED = 6001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
}


@dataclass(frozen=True, eq=False)
class CodeBrowserError(Exception):
    """Base error with structured context for HTTP responses.

    Not slotted: contextlib assigns __traceback__ on exceptions leaving a
    generator-based context manager.
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'INDEX_CORRUPT')."""
        return self.code.name

    @property
    def http_status(self) -> int:
        """HTTP status used when this error reaches a route handler."""
        return _HTTP_STATUS.get(self.code, 500)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses and structured logs."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeBrowserError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class RequestError(CodeBrowserError):
    """Client-side request errors (bad input, unknown repository)."""

    @classmethod
    def bad_request(cls, reason: str) -> "RequestError":
        return cls(code=ErrorCode.BAD_REQUEST, message=reason)

    @classmethod
    def repo_not_found(cls, repo_id: str) -> "RequestError":
        return cls(
            code=ErrorCode.NOT_FOUND,
            message=f"Repository '{repo_id}' not found",
            details={"repo_id": repo_id},
        )

    @classmethod
    def path_not_found(cls, path: str) -> "RequestError":
        return cls(
            code=ErrorCode.NOT_FOUND,
            message=f"Path '{path}' not found",
            details={"path": path},
        )

    @classmethod
    def repo_exists(cls, repo_id: int) -> "RequestError":
        return cls(
            code=ErrorCode.CONFLICT,
            message=f"Repository '{repo_id}' already exists",
            details={"repo_id": repo_id},
        )


class SemanticIndexError(CodeBrowserError):
    """Semantic index errors.

    NO_INDEX, DOCUMENT_MISSING and SYMBOL_NOT_FOUND are recoverable: the
    intelligence service falls back to text search. INDEX_CORRUPT is
    terminal for the request.
    """

    @property
    def recoverable(self) -> bool:
        return self.code is not ErrorCode.INDEX_CORRUPT

    @classmethod
    def no_index(cls, path: str) -> "SemanticIndexError":
        return cls(
            code=ErrorCode.INDEX_NOT_FOUND,
            message=f"No semantic index at {path}",
            details={"path": path},
        )

    @classmethod
    def document_missing(cls, file_path: str) -> "SemanticIndexError":
        return cls(
            code=ErrorCode.INDEX_DOCUMENT_MISSING,
            message=f"Document '{file_path}' is not in the semantic index",
            details={"file_path": file_path},
        )

    @classmethod
    def symbol_not_found(cls, file_path: str, line: int, column: int) -> "SemanticIndexError":
        return cls(
            code=ErrorCode.INDEX_SYMBOL_NOT_FOUND,
            message=f"No symbol at {file_path}:{line}:{column}",
            details={"file_path": file_path, "line": line, "column": column},
        )

    @classmethod
    def corrupt(cls, path: str, reason: str) -> "SemanticIndexError":
        return cls(
            code=ErrorCode.INDEX_CORRUPT,
            message=f"Semantic index at {path} is corrupt: {reason}",
            details={"path": path, "reason": reason},
        )


class SourceError(CodeBrowserError):
    """Failures reading repository contents."""

    @classmethod
    def unavailable(cls, path: str, reason: str) -> "SourceError":
        return cls(
            code=ErrorCode.SOURCE_UNAVAILABLE,
            message=f"Cannot read source '{path}': {reason}",
            details={"path": path, "reason": reason},
        )


class SearchError(CodeBrowserError):
    """Content search engine failures."""

    @classmethod
    def failed(cls, engine: str, reason: str) -> "SearchError":
        return cls(
            code=ErrorCode.SEARCH_FAILED,
            message=f"Search failed ({engine}): {reason}",
            details={"engine": engine, "reason": reason},
        )


class InternalError(CodeBrowserError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
