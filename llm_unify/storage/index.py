"""Inverted index over message content.

The index is the ``search_postings`` table: one row per
(term, conversation, message position) with the term's frequency in that
message. It lives in the archive database and is rewritten inside the same
transaction that saves or deletes a conversation, so readers never observe
postings that disagree with the stored messages.

Tokenization is deliberately simple and deterministic:

1. NFKC-normalize and lowercase the text.
2. Split on every character that is not a letter or digit (``_`` included).
3. Drop stopwords.

The same function tokenizes queries, so a query term matches exactly the
tokens produced from message text.
"""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from collections.abc import Iterable

import aiosqlite

from llm_unify.lib.models import Conversation

TOKEN_RE = re.compile(r"[^\W_]+")

STOPWORDS: frozenset[str] = frozenset(
    """
    a an and are as at be but by for from has have he her his i if in into is it its
    me my no not of on or our she so that the their them then there these they this
    to us was we were what when where which who will with you your
    """.split()
)

# (term, position, tf)
Posting = tuple[str, int, int]


def normalize(text: str) -> str:
    return unicodedata.normalize("NFKC", text).lower()


def tokenize(text: str) -> list[str]:
    """Split text into index terms, in order of appearance (duplicates kept)."""
    return [token for token in TOKEN_RE.findall(normalize(text)) if token not in STOPWORDS]


def query_terms(query: str) -> list[str]:
    """Distinct terms of a query, in order of first appearance."""
    return list(dict.fromkeys(tokenize(query)))


def term_frequencies(text: str) -> Counter[str]:
    return Counter(tokenize(text))


def conversation_postings(conv: Conversation) -> list[Posting]:
    """All postings a conversation contributes; titles are not indexed."""
    postings: list[Posting] = []
    for position, message in enumerate(conv.messages):
        postings.extend((term, position, tf) for term, tf in sorted(term_frequencies(message.content).items()))
    return postings


def postings_from_contents(contents: Iterable[tuple[int, str]]) -> set[Posting]:
    """Postings for (position, content) pairs as read back from storage."""
    return {
        (term, position, tf)
        for position, content in contents
        for term, tf in term_frequencies(content).items()
    }


async def delete_postings(conn: aiosqlite.Connection, conversation_id: str) -> int:
    cursor = await conn.execute("DELETE FROM search_postings WHERE conversation_id = ?", (conversation_id,))
    return cursor.rowcount


async def replace_postings(conn: aiosqlite.Connection, conv: Conversation) -> int:
    """Rewrite one conversation's postings; other conversations are untouched."""
    await delete_postings(conn, conv.id)
    postings = conversation_postings(conv)
    await conn.executemany(
        "INSERT INTO search_postings (term, conversation_id, position, tf) VALUES (?, ?, ?, ?)",
        [(term, conv.id, position, tf) for term, position, tf in postings],
    )
    return len(postings)


async def rebuild_index(conn: aiosqlite.Connection) -> int:
    """Recompute every posting from stored messages; returns the posting count."""
    await conn.execute("DELETE FROM search_postings")
    cursor = await conn.execute("SELECT conversation_id, position, content FROM messages ORDER BY conversation_id, position")
    rows: list[tuple[str, str, int, int]] = []
    for conversation_id, position, content in await cursor.fetchall():
        rows.extend(
            (term, conversation_id, position, tf)
            for term, tf in sorted(term_frequencies(content).items())
        )
    await conn.executemany(
        "INSERT INTO search_postings (term, conversation_id, position, tf) VALUES (?, ?, ?, ?)",
        rows,
    )
    return len(rows)


__all__ = [
    "STOPWORDS",
    "TOKEN_RE",
    "normalize",
    "tokenize",
    "query_terms",
    "term_frequencies",
    "conversation_postings",
    "postings_from_contents",
    "delete_postings",
    "replace_postings",
    "rebuild_index",
]
