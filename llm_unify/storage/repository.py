"""Async conversation repository: the single write path into the archive.

A save writes the conversation row, its full message list and its search
postings in one ``BEGIN IMMEDIATE`` transaction. A delete removes all three in
one transaction. Saves and deletes on the same id are additionally
serialized by a per-id ``asyncio.Lock``, so the later of two concurrent
writers always lands a complete result.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from llm_unify.lib.log import get_logger
from llm_unify.lib.models import Conversation
from llm_unify.storage import index, store
from llm_unify.storage.backends.async_sqlite import SQLiteBackend
from llm_unify.types import Provider

logger = get_logger(__name__)


class _KeyedLocks:
    """One asyncio.Lock per key, discarded once no task holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: Counter[str] = Counter()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class ConversationRepository:
    """Stores, fetches, lists and deletes unified conversations.

    Example:
        async with ConversationRepository(db_path) as repo:
            await repo.save(conversation)
            stored = await repo.find_by_id(conversation.id)
    """

    def __init__(self, db_path: Path | None = None, *, backend: SQLiteBackend | None = None) -> None:
        self._backend = backend if backend is not None else SQLiteBackend(db_path)
        self._locks = _KeyedLocks()

    @property
    def backend(self) -> SQLiteBackend:
        return self._backend

    async def __aenter__(self) -> ConversationRepository:
        await self._backend.ensure_schema()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Connections are per operation; nothing outlives a call."""

    async def save(self, conversation: Conversation) -> bool:
        """Insert or replace a conversation with its messages and postings.

        Returns False when the stored copy already has identical content.
        """
        record, messages = store.conversation_to_records(conversation)
        async with self._locks.hold(conversation.id):
            async with self._backend.write() as conn:
                if await store.get_content_hash(conn, conversation.id) == record.content_hash:
                    logger.debug("conversation unchanged", conversation_id=conversation.id)
                    return False
                await store.upsert_conversation(conn, record, messages)
                postings = await index.replace_postings(conn, conversation)
        logger.info(
            "conversation saved",
            conversation_id=conversation.id,
            messages=len(messages),
            postings=postings,
        )
        return True

    async def find_by_id(self, conversation_id: str) -> Conversation | None:
        async with self._backend.read() as conn:
            return await store.load_conversation(conn, conversation_id)

    async def resolve_id(self, text: str, *, prefixes: bool = True) -> str | None:
        """Expand a full id, an id prefix, or a bare provider-local id.

        With ``prefixes=False`` only a full id or a bare provider-local id
        resolves.

        Returns None when nothing or more than one conversation matches.
        """
        text = text.strip()
        if not text:
            return None
        async with self._backend.read() as conn:
            if await store.get_content_hash(conn, text) is not None:
                return text
            matches = set(await store.resolve_prefix(conn, text)) if prefixes else set()
            cursor = await conn.execute(
                "SELECT conversation_id FROM conversations "
                "WHERE substr(conversation_id, -length(?)) = ? LIMIT 2",
                (f":{text}", f":{text}"),
            )
            matches.update(row[0] for row in await cursor.fetchall())
        return matches.pop() if len(matches) == 1 else None

    async def list(self, provider: Provider | None = None) -> list[Conversation]:
        """All conversations, oldest first; undated ones last in insertion order."""
        async with self._backend.read() as conn:
            return await store.load_conversations(conn, provider)

    async def delete(self, conversation_id: str) -> bool:
        """Remove a conversation, its messages and its postings; a no-op when absent."""
        async with self._locks.hold(conversation_id):
            async with self._backend.write() as conn:
                await index.delete_postings(conn, conversation_id)
                removed = await store.delete_conversation(conn, conversation_id)
        if removed:
            logger.info("conversation deleted", conversation_id=conversation_id)
        return removed

    async def rebuild_index(self) -> int:
        """Recompute every search posting from the stored messages."""
        async with self._backend.write() as conn:
            postings = await index.rebuild_index(conn)
        logger.info("search index rebuilt", postings=postings)
        return postings

    async def count(self, provider: Provider | None = None) -> int:
        async with self._backend.read() as conn:
            if provider is None:
                cursor = await conn.execute("SELECT COUNT(*) FROM conversations")
            else:
                cursor = await conn.execute(
                    "SELECT COUNT(*) FROM conversations WHERE provider_name = ?", (provider.value,)
                )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def message_count(self) -> int:
        async with self._backend.read() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM messages")
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def posting_count(self) -> int:
        async with self._backend.read() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM search_postings")
            row = await cursor.fetchone()
        return int(row[0]) if row else 0


__all__ = ["ConversationRepository"]
