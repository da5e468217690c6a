"""Core module exports."""

from codebrowser.core.errors import (
    CodeBrowserError,
    ConfigError,
    ErrorCode,
    InternalError,
    RequestError,
    SearchError,
    SemanticIndexError,
    SourceError,
)
from codebrowser.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "CodeBrowserError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "RequestError",
    "SearchError",
    "SemanticIndexError",
    "SourceError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
