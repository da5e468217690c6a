"""Config module exports."""

from codebrowser.config.loader import load_config
from codebrowser.config.models import (
    CacheConfig,
    CodeBrowserConfig,
    IntelligenceConfig,
    LoggingConfig,
    LogOutputConfig,
    SearchConfig,
    ServerConfig,
)

__all__ = [
    "load_config",
    "CacheConfig",
    "CodeBrowserConfig",
    "IntelligenceConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "SearchConfig",
    "ServerConfig",
]
