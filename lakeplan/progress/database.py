"""
Database - key/string byte stores for progress data

Two interchangeable backends:
- MemoryByteStore: a dict, for tests and throwaway sessions
- SqlByteStore: SQLAlchemy table kv_entries (SQLite by default)

This module handles ONLY byte storage.
Record shapes and export codes are handled by the store module.
"""

from __future__ import annotations
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Protocol

from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lakeplan.progress.models import Base, KeyValueEntry


load_dotenv()

log = logging.getLogger(__name__)

# Database path configuration
DB_DIR = Path(__file__).parent.parent.parent / "logs"


class ByteStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    PROGRESS_DATABASE_URL wins when set. Otherwise a SQLite file in logs/,
    progress.db or test_progress.db depending on TEST_MODE.

    Returns:
        SQLAlchemy database URL
    """
    url = os.getenv("PROGRESS_DATABASE_URL")
    if url:
        return url
    db_name = "test_progress.db" if is_test_mode() else "progress.db"
    DB_DIR.mkdir(exist_ok=True)
    return f"sqlite:///{DB_DIR / db_name}"


def get_default_entity_id() -> str:
    """Entity id used when the tool runs outside an event page."""
    return os.getenv("DEFAULT_ENTITY_ID", "fishing_tool")


def get_engine(db_url: Optional[str] = None) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    In-memory SQLite shares one connection so every session sees the same data.

    Args:
        db_url: Database URL (defaults to get_database_url())

    Returns:
        SQLAlchemy Engine instance
    """
    db_url = db_url or get_database_url()
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False
        )
    return create_engine(db_url, pool_pre_ping=True, echo=False)


def init_db(engine: Engine) -> None:
    """
    Initialize database schema if the table doesn't exist.

    Safe to call multiple times.
    """
    inspector = inspect(engine)
    if KeyValueEntry.__tablename__ not in inspector.get_table_names():
        Base.metadata.create_all(engine)


def reset_db(engine: Engine) -> None:
    """
    DANGEROUS: Delete all stored progress and recreate the table.
    """
    Base.metadata.drop_all(engine)
    log.warning("Progress tables dropped")
    init_db(engine)


class MemoryByteStore:
    """Dict-backed byte store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class SqlByteStore:
    """
    Byte store on a SQLAlchemy engine.

    Each call opens and closes its own session.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()
        init_db(self.engine)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def get_session(self) -> Session:
        return self._session_factory()

    def get(self, key: str) -> Optional[str]:
        session = self.get_session()
        try:
            row = session.get(KeyValueEntry, key)
            return row.value if row is not None else None
        finally:
            session.close()

    def set(self, key: str, value: str) -> None:
        session = self.get_session()
        try:
            row = session.get(KeyValueEntry, key)
            now = datetime.now(timezone.utc)
            if row is None:
                session.add(KeyValueEntry(key=key, value=value, updated_at=now))
            else:
                row.value = value
                row.updated_at = now
            session.commit()
        finally:
            session.close()

    def delete(self, key: str) -> None:
        session = self.get_session()
        try:
            session.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
            session.commit()
        finally:
            session.close()

    def keys(self) -> list[str]:
        session = self.get_session()
        try:
            return [row.key for row in session.query(KeyValueEntry.key).all()]
        finally:
            session.close()
