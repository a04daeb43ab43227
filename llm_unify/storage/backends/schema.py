"""SQLite schema management: DDL, migrations, and version control."""

from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite

from llm_unify.errors import StorageError
from llm_unify.lib.log import get_logger

logger = get_logger(__name__)
SCHEMA_VERSION = 1


# Core DDL applied on a fresh database.
SCHEMA_DDL = """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            description TEXT NOT NULL,
            applied_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS conversations (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            conversation_id TEXT NOT NULL UNIQUE,
            provider_name TEXT NOT NULL
                CHECK (provider_name IN ('chatgpt', 'claude', 'gemini', 'copilot')),
            title TEXT NOT NULL,
            created_at TEXT,
            updated_at TEXT,
            content_hash TEXT NOT NULL,
            message_count INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_conversations_provider
        ON conversations(provider_name);

        CREATE INDEX IF NOT EXISTS idx_conversations_created
        ON conversations(created_at);

        CREATE TABLE IF NOT EXISTS messages (
            conversation_id TEXT NOT NULL
                REFERENCES conversations(conversation_id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            timestamp TEXT,
            PRIMARY KEY (conversation_id, position)
        ) WITHOUT ROWID;

        CREATE TABLE IF NOT EXISTS search_postings (
            term TEXT NOT NULL,
            conversation_id TEXT NOT NULL
                REFERENCES conversations(conversation_id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            tf INTEGER NOT NULL CHECK (tf > 0),
            PRIMARY KEY (term, conversation_id, position)
        ) WITHOUT ROWID;

        CREATE INDEX IF NOT EXISTS idx_postings_conversation
        ON search_postings(conversation_id);
"""

# version -> (description, DDL applied to reach it)
MIGRATIONS: dict[int, tuple[str, str]] = {
    1: ("initial schema", SCHEMA_DDL),
}


async def current_version(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("PRAGMA user_version")
    row = await cursor.fetchone()
    return int(row[0]) if row else 0


async def ensure_schema(conn: aiosqlite.Connection) -> int:
    """Bring the database up to SCHEMA_VERSION, applying pending migrations in order.

    Returns the schema version after migration. A database written by a newer
    release is refused rather than downgraded.
    """
    version = await current_version(conn)
    if version > SCHEMA_VERSION:
        raise StorageError(
            f"Database schema version {version} is newer than supported version {SCHEMA_VERSION}"
        )
    for target in range(version + 1, SCHEMA_VERSION + 1):
        description, ddl = MIGRATIONS[target]
        await conn.executescript(ddl)
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations (version, description, applied_at) VALUES (?, ?, ?)",
            (target, description, datetime.now(timezone.utc).isoformat()),
        )
        await conn.execute(f"PRAGMA user_version = {target}")
        logger.info("schema migrated", version=target, description=description)
    return SCHEMA_VERSION


async def migration_history(conn: aiosqlite.Connection) -> list[tuple[int, str, str]]:
    cursor = await conn.execute(
        "SELECT version, description, applied_at FROM schema_migrations ORDER BY version"
    )
    return [(row[0], row[1], row[2]) for row in await cursor.fetchall()]


__all__ = ["SCHEMA_VERSION", "SCHEMA_DDL", "MIGRATIONS", "current_version", "ensure_schema", "migration_history"]
