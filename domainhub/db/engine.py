"""SQLAlchemy engine factory and session maker for SQLite."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

if TYPE_CHECKING:
    from sqlalchemy import Engine

_MEMORY = ":memory:"


def sqlite_url(db_path: str | Path) -> str:
    path_str = str(db_path)
    return "sqlite://" if path_str == _MEMORY else f"sqlite:///{path_str}"


def path_from_url(url: str) -> str:
    """Inverse of :func:`sqlite_url` for ``sqlite:///relative`` and ``sqlite:////abs`` URLs."""
    if url == "sqlite://":
        return _MEMORY
    return url.removeprefix("sqlite:///")


def create_db_engine(db_path: str | Path, echo: bool = False) -> Engine:
    """Create an engine for a SQLite file in WAL mode with foreign keys enforced."""
    path_str = str(db_path)
    if path_str != _MEMORY:
        Path(path_str).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(sqlite_url(path_str), echo=echo, connect_args={"timeout": 30.0})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: object, _connection_record: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)
