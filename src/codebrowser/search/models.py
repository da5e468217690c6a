"""Content search result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EngineKind(str, Enum):
    """Query dialect an engine understands.

    STRUCTURAL engines accept symbol-scoped queries (``sym:name``);
    REGEX engines only take line-oriented regular expressions.
    """

    STRUCTURAL = "structural"
    REGEX = "regex"


@dataclass(frozen=True, slots=True)
class Fragment:
    """Matched span within a result line."""

    offset: int
    length: int


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One matching line."""

    path: str
    line_num: int  # 1-based
    line_text: str
    fragments: tuple[Fragment, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "lineNum": self.line_num,
            "lineText": self.line_text,
            "fragments": [{"offset": f.offset, "length": f.length} for f in self.fragments],
        }
