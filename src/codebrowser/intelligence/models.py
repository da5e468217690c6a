"""Request and response models for code intelligence lookups."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from codebrowser.config.constants import INT32_MAX


class LookupKind(str, Enum):
    """Which occurrences of the symbol under the cursor to return."""

    DEFINITION = "definition"
    REFERENCE = "reference"


class Provenance(str, Enum):
    """Where a location came from."""

    SCIP = "scip"
    SEARCH = "search"


class DefinitionRequest(BaseModel):
    """Cursor position sent by the UI. Line and character are 0-based."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    repo_id: str = Field(alias="repoId", min_length=1)
    file_path: str = Field(alias="filePath", min_length=1)
    line: int = Field(default=0, ge=0, le=INT32_MAX)
    character: int = Field(default=0, ge=0, le=INT32_MAX)

    @field_validator("repo_id", "file_path", mode="before")
    @classmethod
    def coerce_str(cls, v: object) -> object:
        # UIs send numeric repo ids as JSON numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class Location(BaseModel):
    """Range on the wire: 1-based lines, columns as produced by the indexer."""

    start_line: int = Field(serialization_alias="startLine")
    start_column: int = Field(serialization_alias="startColumn")
    end_line: int = Field(serialization_alias="endLine")
    end_column: int = Field(serialization_alias="endColumn")


class DefinitionResponse(BaseModel):
    """One location returned by a definitions or references lookup."""

    kind: Literal["definition", "reference"]
    repo_id: str = Field(serialization_alias="repoId")
    file_path: str = Field(serialization_alias="filePath")
    range: Location
    source: Literal["scip", "search"]

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)
