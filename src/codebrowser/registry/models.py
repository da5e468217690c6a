"""Repository registry models.

``Repository`` is the persisted row; ``RepoRef`` is the immutable snapshot
handed to the rest of the application. Consumers never see ORM objects.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from sqlmodel import Field, SQLModel


class Repository(SQLModel, table=True):
    """Registered source repository."""

    __tablename__ = "repositories"

    id: int | None = Field(default=None, primary_key=True)
    repo_id: int = Field(unique=True, index=True)  # External uint32 identifier
    name: str
    source_path: str
    data_path: str
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class RepoRef:
    """Read-only view of a registered repository."""

    repo_id: int
    name: str
    source_path: Path
    data_path: Path

    @property
    def repo_id_str(self) -> str:
        return str(self.repo_id)

    @classmethod
    def from_row(cls, row: Repository) -> RepoRef:
        return cls(
            repo_id=row.repo_id,
            name=row.name,
            source_path=Path(row.source_path),
            data_path=Path(row.data_path),
        )


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """A direct child of a directory in a repository tree."""

    name: str
    path: str
    type: Literal["file", "directory"]

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "path": self.path, "type": self.type}
