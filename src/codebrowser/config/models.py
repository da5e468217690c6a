"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODEBROWSER__SECTION__KEY)
3. Data-dir YAML (<data_dir>/config.yaml)
4. Global YAML (~/.config/codebrowser/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODEBROWSER__<SECTION>__<KEY>=<VALUE>

Examples:
    CODEBROWSER__LOGGING__LEVEL=DEBUG
    CODEBROWSER__SERVER__PORT=9090
    CODEBROWSER__SEARCH__DEFAULT_ENGINE=ripgrep
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from codebrowser.config.constants import (
    FALLBACK_LIMIT_DEFAULT,
    PORT_MAX,
    PORT_MIN,
    RIPGREP_MAX_COUNT_DEFAULT,
    ZOEKT_MAX_MATCH_COUNT_DEFAULT,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
EngineName = Literal["zoekt", "ripgrep"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODEBROWSER__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every index lookup and search query.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """HTTP server configuration.

    Env vars:
        CODEBROWSER__SERVER__HOST: Bind address (default: 127.0.0.1)
        CODEBROWSER__SERVER__PORT: Port number (default: 8088)
        CODEBROWSER__SERVER__REQUEST_TIMEOUT_SEC: Per-request deadline
    """

    host: str = Field(
        default="127.0.0.1",
        description="Bind address. Use 0.0.0.0 for network access.",
    )
    port: int = Field(default=8088, description="Server port.")
    request_timeout_sec: float = Field(
        default=10.0,
        description="Wall-clock deadline per request. Outbound search calls are "
        "cancelled when it expires.",
    )
    shutdown_timeout_sec: int = Field(
        default=5,
        description="Graceful shutdown timeout before force-kill.",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (PORT_MIN <= v <= PORT_MAX):
            raise ValueError(f"Port must be {PORT_MIN}-{PORT_MAX}, got {v}")
        return v

    @field_validator("request_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class SearchConfig(BaseModel):
    """Content search engine configuration.

    Env vars:
        CODEBROWSER__SEARCH__DEFAULT_ENGINE: zoekt or ripgrep
        CODEBROWSER__SEARCH__ZOEKT_URL: Base URL of the zoekt webserver
        CODEBROWSER__SEARCH__RIPGREP_BINARY: rg executable name or path
    """

    default_engine: EngineName = Field(
        default="zoekt",
        description="Engine used for the intelligence fallback and for search "
        "requests that do not name one.",
    )
    zoekt_url: str = Field(default="http://localhost:6070")
    zoekt_timeout_sec: float = Field(default=5.0)
    max_match_count: int = Field(
        default=ZOEKT_MAX_MATCH_COUNT_DEFAULT,
        description="TotalMaxMatchCount sent to zoekt.",
    )
    ripgrep_binary: str = Field(default="rg")
    ripgrep_max_count: int = Field(
        default=RIPGREP_MAX_COUNT_DEFAULT,
        description="Per-file match cap passed to rg -m.",
    )

    @field_validator("zoekt_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class IntelligenceConfig(BaseModel):
    """Code intelligence configuration.

    Env vars:
        CODEBROWSER__INTELLIGENCE__FALLBACK_LIMIT: Max text-search fallback results
    """

    fallback_limit: int = Field(
        default=FALLBACK_LIMIT_DEFAULT,
        description="Cap on locations returned by the text-search fallback.",
    )

    @field_validator("fallback_limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if not (1 <= v <= FALLBACK_LIMIT_DEFAULT):
            raise ValueError(f"fallback_limit must be 1-{FALLBACK_LIMIT_DEFAULT}, got {v}")
        return v


class CacheConfig(BaseModel):
    """In-memory cache sizes.

    Env vars:
        CODEBROWSER__CACHE__BLOB_MAX_ENTRIES: Cached file blobs
    """

    blob_max_entries: int = Field(
        default=256,
        description="Number of file blobs kept in memory for repeated lookups.",
    )

    @field_validator("blob_max_entries")
    @classmethod
    def validate_entries(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"blob_max_entries must be >= 1, got {v}")
        return v


class CodeBrowserConfig(BaseModel):
    """Root configuration for CodeBrowser."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    intelligence: IntelligenceConfig = Field(default_factory=IntelligenceConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
