"""SQLiteKeyValueStore - durable key-value store on a single SQLite table."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from enrollkit.kv_store.exceptions import CorruptValueError, KeyValueStoreError
from enrollkit.kv_store.interfaces import KeyValueStore
from enrollkit.kv_store.models import Base, Entry
from enrollkit.logging import get_logger

logger = get_logger("kv_store")

MEMORY_PATH = ":memory:"


def _create_engine(db_path: str) -> Engine:
    """Engine usable from worker threads, with WAL journaling for file databases."""
    if db_path == MEMORY_PATH:
        # One shared connection, otherwise every worker thread sees an empty database
        return create_engine(
            "sqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def use_wal(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


class SQLiteKeyValueStore(KeyValueStore):
    """Key-value store persisted to SQLite.

    Each key is one row of the ``entries`` table holding JSON text. Blocking
    session work runs in a worker thread so the event loop is never held by
    disk I/O.
    """

    def __init__(self, db_path: str = "enrollkit.db") -> None:
        """Open the database, creating the file and table if needed.

        Args:
            db_path: Path to SQLite database file, or ":memory:"

        Raises:
            KeyValueStoreError: If the database cannot be opened
        """
        self.db_path = db_path
        self._engine = _create_engine(db_path)
        self._sessions: sessionmaker[Session] = sessionmaker(
            bind=self._engine, expire_on_commit=False
        )
        try:
            Base.metadata.create_all(self._engine)
            mode = self.journal_mode()
        except SQLAlchemyError as e:
            self._engine.dispose()
            raise KeyValueStoreError(f"Cannot open store at '{db_path}'") from e
        logger.debug("Opened SQLite key-value store at %s (journal_mode=%s)", db_path, mode)

    @property
    def engine(self) -> Engine:
        return self._engine

    def journal_mode(self) -> str:
        """SQLite journal mode in effect: "wal" for files, "memory" for ":memory:"."""
        with self._engine.connect() as conn:
            return str(conn.execute(text("PRAGMA journal_mode")).scalar())

    async def get(self, key: str) -> Any | None:
        raw = await asyncio.to_thread(self._read, key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptValueError(f"Value under key '{key}' is not valid JSON") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise KeyValueStoreError(f"Value for key '{key}' is not serializable") from e
        await asyncio.to_thread(self._write, key, raw)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    async def close(self) -> None:
        self._engine.dispose()

    def _read(self, key: str) -> str | None:
        session = self._sessions()
        try:
            entry = session.get(Entry, key)
            return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise KeyValueStoreError(f"Failed to read key '{key}'") from e
        finally:
            session.close()

    def _write(self, key: str, raw: str) -> None:
        session = self._sessions()
        try:
            entry = session.get(Entry, key)
            if entry is None:
                session.add(Entry(key=key, value=raw))
            else:
                entry.value = raw
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise KeyValueStoreError(f"Failed to write key '{key}'") from e
        finally:
            session.close()

    def _delete(self, key: str) -> None:
        session = self._sessions()
        try:
            entry = session.get(Entry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise KeyValueStoreError(f"Failed to remove key '{key}'") from e
        finally:
            session.close()
