"""SQLite engine for the repository registry.

WAL mode lets the server read while the CLI registers repositories.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

if TYPE_CHECKING:
    from sqlalchemy import Engine


class Database:
    """SQLite connection manager with WAL mode for concurrent access."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        event.listen(engine, "connect", _configure_pragmas)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session; commits are explicit."""
        with Session(self.engine) as session:
            yield session

    def close(self) -> None:
        self.engine.dispose()


def _configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
    """Configure SQLite for concurrent access."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
