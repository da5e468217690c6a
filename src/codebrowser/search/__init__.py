"""Content search - zoekt and ripgrep behind one query contract."""

from codebrowser.config.models import SearchConfig
from codebrowser.search.engine import SearchEngine
from codebrowser.search.models import EngineKind, Fragment, SearchResult
from codebrowser.search.ripgrep import RipgrepEngine
from codebrowser.search.zoekt import ZoektEngine


def create_engines(config: SearchConfig) -> dict[str, SearchEngine]:
    """Instantiate every configured engine, keyed by engine name."""
    return {
        "zoekt": ZoektEngine(
            config.zoekt_url,
            timeout=config.zoekt_timeout_sec,
            max_match_count=config.max_match_count,
        ),
        "ripgrep": RipgrepEngine(config.ripgrep_binary, max_count=config.ripgrep_max_count),
    }


__all__ = [
    "EngineKind",
    "Fragment",
    "RipgrepEngine",
    "SearchEngine",
    "SearchResult",
    "ZoektEngine",
    "create_engines",
]
