"""Row-level persistence of conversations and messages.

These functions take an open connection inside a transaction owned by the
caller; they never begin or commit on their own.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import aiosqlite
from pydantic import BaseModel, field_validator

from llm_unify.lib.models import Conversation, Message
from llm_unify.lib.timestamps import format_timestamp, parse_timestamp
from llm_unify.types import ContentHash, ConversationId, Provider


class ConversationRecord(BaseModel):
    conversation_id: ConversationId
    provider_name: str
    title: str
    created_at: str | None = None
    updated_at: str | None = None
    content_hash: ContentHash
    message_count: int

    @field_validator("conversation_id", "content_hash")
    @classmethod
    def non_empty_string(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v


class MessageRecord(BaseModel):
    conversation_id: ConversationId
    position: int
    role: str
    content: str
    timestamp: str | None = None


def conversation_to_records(conv: Conversation) -> tuple[ConversationRecord, list[MessageRecord]]:
    record = ConversationRecord(
        conversation_id=conv.id,
        provider_name=conv.provider.value,
        title=conv.title,
        created_at=format_timestamp(conv.created_at),
        updated_at=format_timestamp(conv.updated_at),
        content_hash=conv.content_hash(),
        message_count=conv.message_count,
    )
    messages = [
        MessageRecord(
            conversation_id=conv.id,
            position=position,
            role=msg.role.value,
            content=msg.content,
            timestamp=format_timestamp(msg.timestamp),
        )
        for position, msg in enumerate(conv.messages)
    ]
    return record, messages


def _row_to_conversation(row: aiosqlite.Row) -> ConversationRecord:
    return ConversationRecord(
        conversation_id=row["conversation_id"],
        provider_name=row["provider_name"],
        title=row["title"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        content_hash=row["content_hash"],
        message_count=row["message_count"],
    )


def _row_to_message(row: aiosqlite.Row) -> MessageRecord:
    return MessageRecord(
        conversation_id=row["conversation_id"],
        position=row["position"],
        role=row["role"],
        content=row["content"],
        timestamp=row["timestamp"],
    )


def records_to_conversation(record: ConversationRecord, messages: Sequence[MessageRecord]) -> Conversation:
    """Rebuild the domain model; the inverse of `conversation_to_records`."""
    return Conversation(
        id=record.conversation_id,
        provider=Provider(record.provider_name),
        title=record.title,
        created_at=parse_timestamp(record.created_at),
        updated_at=parse_timestamp(record.updated_at),
        messages=[
            Message(role=m.role, content=m.content, timestamp=parse_timestamp(m.timestamp))
            for m in sorted(messages, key=lambda m: m.position)
        ],
    )


_CONVERSATION_COLUMNS = (
    "conversation_id, provider_name, title, created_at, updated_at, content_hash, message_count"
)


async def get_content_hash(conn: aiosqlite.Connection, conversation_id: str) -> str | None:
    cursor = await conn.execute(
        "SELECT content_hash FROM conversations WHERE conversation_id = ?",
        (conversation_id,),
    )
    row = await cursor.fetchone()
    return row[0] if row is not None else None


async def upsert_conversation(
    conn: aiosqlite.Connection,
    record: ConversationRecord,
    messages: Iterable[MessageRecord],
) -> None:
    """Insert or replace one conversation and its full message list.

    An existing row keeps its insertion sequence number, so re-saving does not
    move a conversation in listing order.
    """
    await conn.execute(
        f"""
        INSERT INTO conversations ({_CONVERSATION_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(conversation_id) DO UPDATE SET
            provider_name = excluded.provider_name,
            title = excluded.title,
            created_at = excluded.created_at,
            updated_at = excluded.updated_at,
            content_hash = excluded.content_hash,
            message_count = excluded.message_count
        """,
        (
            record.conversation_id,
            record.provider_name,
            record.title,
            record.created_at,
            record.updated_at,
            record.content_hash,
            record.message_count,
        ),
    )
    await conn.execute("DELETE FROM messages WHERE conversation_id = ?", (record.conversation_id,))
    await conn.executemany(
        "INSERT INTO messages (conversation_id, position, role, content, timestamp) VALUES (?, ?, ?, ?, ?)",
        [(m.conversation_id, m.position, m.role, m.content, m.timestamp) for m in messages],
    )


async def delete_conversation(conn: aiosqlite.Connection, conversation_id: str) -> bool:
    await conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
    cursor = await conn.execute("DELETE FROM conversations WHERE conversation_id = ?", (conversation_id,))
    return cursor.rowcount > 0


async def load_conversation(conn: aiosqlite.Connection, conversation_id: str) -> Conversation | None:
    cursor = await conn.execute(
        f"SELECT {_CONVERSATION_COLUMNS} FROM conversations WHERE conversation_id = ?",
        (conversation_id,),
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    cursor = await conn.execute(
        "SELECT * FROM messages WHERE conversation_id = ? ORDER BY position",
        (conversation_id,),
    )
    messages = [_row_to_message(m) for m in await cursor.fetchall()]
    return records_to_conversation(_row_to_conversation(row), messages)


async def load_conversations(conn: aiosqlite.Connection, provider: Provider | None = None) -> list[Conversation]:
    """All conversations by creation time (undated last), then insertion order."""
    where = "WHERE provider_name = ?" if provider is not None else ""
    params: tuple[str, ...] = (provider.value,) if provider is not None else ()
    cursor = await conn.execute(
        f"""
        SELECT {_CONVERSATION_COLUMNS} FROM conversations {where}
        ORDER BY created_at IS NULL, created_at, seq
        """,
        params,
    )
    records = [_row_to_conversation(row) for row in await cursor.fetchall()]
    if not records:
        return []

    cursor = await conn.execute(
        f"""
        SELECT m.* FROM messages m
        JOIN conversations c ON c.conversation_id = m.conversation_id
        {"WHERE c.provider_name = ?" if provider is not None else ""}
        ORDER BY m.conversation_id, m.position
        """,
        params,
    )
    by_conversation: dict[str, list[MessageRecord]] = {}
    for row in await cursor.fetchall():
        by_conversation.setdefault(row["conversation_id"], []).append(_row_to_message(row))
    return [records_to_conversation(r, by_conversation.get(r.conversation_id, [])) for r in records]


async def resolve_prefix(conn: aiosqlite.Connection, prefix: str, limit: int = 2) -> list[str]:
    cursor = await conn.execute(
        "SELECT conversation_id FROM conversations WHERE substr(conversation_id, 1, length(?)) = ? "
        "ORDER BY conversation_id LIMIT ?",
        (prefix, prefix, limit),
    )
    return [row[0] for row in await cursor.fetchall()]


__all__ = [
    "ConversationRecord",
    "MessageRecord",
    "conversation_to_records",
    "records_to_conversation",
    "get_content_hash",
    "upsert_conversation",
    "delete_conversation",
    "load_conversation",
    "load_conversations",
    "resolve_prefix",
]
