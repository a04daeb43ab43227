"""SQLite storage backend: connections, transactions and schema."""

from __future__ import annotations

from llm_unify.storage.backends.async_sqlite import DB_TIMEOUT, SQLiteBackend, connect
from llm_unify.storage.backends.schema import SCHEMA_VERSION

__all__ = ["DB_TIMEOUT", "SCHEMA_VERSION", "SQLiteBackend", "connect"]
