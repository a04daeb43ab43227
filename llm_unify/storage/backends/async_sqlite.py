"""Async SQLite storage backend implementation using aiosqlite.

Every operation opens its own connection, so concurrent tasks never share
cursor state:

- Reads run inside a deferred transaction, which in WAL mode pins one
  snapshot for the whole block.
- Writes run inside ``BEGIN IMMEDIATE``. SQLite serializes writers; other
  connections wait up to ``DB_TIMEOUT`` seconds for the write lock.

A write block that raises (including ``asyncio.CancelledError``) is rolled
back, so no partial conversation is ever committed.
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from llm_unify.errors import StorageError
from llm_unify.lib.log import get_logger
from llm_unify.paths import default_db_path
from llm_unify.storage.backends.schema import ensure_schema, migration_history

logger = get_logger(__name__)

# Seconds a connection waits on a locked database before failing.
DB_TIMEOUT = 30


@asynccontextmanager
async def connect(db_path: Path) -> AsyncIterator[aiosqlite.Connection]:
    """Open a configured connection; sqlite failures surface as StorageError."""
    try:
        async with aiosqlite.connect(db_path, timeout=DB_TIMEOUT, isolation_level=None) as conn:
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA foreign_keys = ON")
            await conn.execute(f"PRAGMA busy_timeout = {DB_TIMEOUT * 1000}")
            yield conn
    except sqlite3.Error as exc:
        raise StorageError(f"{db_path}: {exc}") from exc


class SQLiteBackend:
    """Owns the database file: schema setup and transactional connections.

    Example:
        backend = SQLiteBackend(tmp_path / "archive.db")
        async with backend.write() as conn:
            await conn.execute("DELETE FROM conversations")
        async with backend.read() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM conversations")
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = Path(db_path) if db_path is not None else default_db_path()
        self._schema_lock = asyncio.Lock()
        self._schema_ensured = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def ensure_schema(self) -> int:
        """Create or migrate the schema; returns the schema version."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with connect(self._db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            version = await ensure_schema(conn)
        logger.debug("schema ready", path=str(self._db_path), version=version)
        self._schema_ensured = True
        return version

    async def _ensure_schema_once(self) -> None:
        """Ensure schema is initialized exactly once (guarded by an asyncio lock)."""
        if self._schema_ensured:
            return
        async with self._schema_lock:
            if self._schema_ensured:
                return
            await self.ensure_schema()

    def invalidate_schema(self) -> None:
        """Forget that the schema was checked, e.g. after the file was replaced."""
        self._schema_ensured = False

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Connection inside a read transaction over one consistent snapshot."""
        await self._ensure_schema_once()
        async with connect(self._db_path) as conn:
            await conn.execute("BEGIN")
            try:
                yield conn
            finally:
                await conn.execute("ROLLBACK")

    @asynccontextmanager
    async def write(self) -> AsyncIterator[aiosqlite.Connection]:
        """Connection inside an immediate write transaction, committed on success."""
        await self._ensure_schema_once()
        async with connect(self._db_path) as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    async def schema_history(self) -> list[tuple[int, str, str]]:
        async with self.read() as conn:
            return await migration_history(conn)

    async def integrity_check(self) -> list[str]:
        """Run ``PRAGMA integrity_check``; an empty list means the file is sound."""
        async with self.read() as conn:
            cursor = await conn.execute("PRAGMA integrity_check")
            rows = [row[0] for row in await cursor.fetchall()]
        return [] if rows == ["ok"] else rows

    async def foreign_key_violations(self) -> int:
        async with self.read() as conn:
            cursor = await conn.execute("PRAGMA foreign_key_check")
            return len(await cursor.fetchall())


__all__ = ["DB_TIMEOUT", "SQLiteBackend", "connect"]
