"""Ranked keyword search over the postings index.

Scoring is TF-IDF with a coverage factor, computed from one read snapshot:

    idf(t)    = ln(1 + N / df(t))
    weight(t) = (1 + ln tf(t)) * idf(t), tf(t) summed over the conversation's messages
    score     = (matched query terms / distinct query terms) * sum of weight(t)

N is the number of stored conversations and df(t) the number of
conversations containing t. Conversations matching more query terms
outrank ones matching fewer. Equal scores are
ordered by ``updated_at`` (newest first, undated last), then by id.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

import aiosqlite

from llm_unify.lib.log import get_logger
from llm_unify.storage.backends.async_sqlite import SQLiteBackend
from llm_unify.storage.index import TOKEN_RE, normalize, query_terms
from llm_unify.types import ConversationId, Provider

logger = get_logger(__name__)

SNIPPET_LENGTH = 200
ELLIPSIS = "..."
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class SearchHit:
    conversation_id: ConversationId
    title: str
    provider: Provider
    snippet: str
    score: float
    position: int
    matched_terms: tuple[str, ...] = field(default=())

    def highlighted(self, open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
        """Snippet with every matched term wrapped in the given markers."""
        terms = set(self.matched_terms)

        def _wrap(match: re.Match[str]) -> str:
            token = match.group(0)
            return f"{open_tag}{token}{close_tag}" if normalize(token) in terms else token

        return TOKEN_RE.sub(_wrap, self.snippet)


@dataclass
class _Candidate:
    conversation_id: str
    term_frequencies: dict[str, int] = field(default_factory=dict)
    message_weights: dict[int, dict[str, float]] = field(default_factory=dict)


def inverse_document_frequency(total: int, df: int) -> float:
    return math.log(1 + total / df) if df else 0.0


def make_snippet(text: str, anchors: list[str], length: int = SNIPPET_LENGTH) -> str:
    """Excerpt of at most ``length`` characters centred on the first anchor term found.

    ``anchors`` are tried in order; the first one occurring in ``text`` wins.
    Cut edges are marked with an ellipsis.
    """
    anchor: re.Match[str] | None = None
    for term in anchors:
        anchor = next((m for m in TOKEN_RE.finditer(text) if normalize(m.group(0)) == term), None)
        if anchor is not None:
            break

    if anchor is None or len(text) <= length:
        start, end = 0, min(len(text), length)
    else:
        centre = (anchor.start() + anchor.end()) // 2
        start = max(0, centre - length // 2)
        end = min(len(text), start + length)
        start = max(0, end - length)

    excerpt = _WHITESPACE.sub(" ", text[start:end]).strip()
    if start > 0:
        excerpt = ELLIPSIS + excerpt
    if end < len(text):
        excerpt = excerpt + ELLIPSIS
    return excerpt


class SearchEngine:
    """Answers keyword queries against an archive database.

    Example:
        engine = SearchEngine(backend)
        for hit in await engine.search("trip planning", limit=5):
            print(hit.conversation_id, hit.score, hit.highlighted())
    """

    def __init__(self, backend: SQLiteBackend, *, default_limit: int = 10, snippet_length: int = SNIPPET_LENGTH):
        self._backend = backend
        self._default_limit = default_limit
        self._snippet_length = snippet_length

    async def search(
        self,
        query: str,
        limit: int | None = None,
        provider: Provider | None = None,
    ) -> list[SearchHit]:
        """Return up to ``limit`` hits in descending relevance.

        A query without index terms (empty, punctuation, stopwords only)
        matches nothing.
        """
        terms = query_terms(query)
        limit = self._default_limit if limit is None else limit
        if not terms or limit <= 0:
            return []

        async with self._backend.read() as conn:
            hits = await self._search(conn, terms, limit, provider)
        logger.debug("search", query=query, terms=terms, hits=len(hits))
        return hits

    async def _search(
        self,
        conn: aiosqlite.Connection,
        terms: list[str],
        limit: int,
        provider: Provider | None,
    ) -> list[SearchHit]:
        cursor = await conn.execute("SELECT COUNT(*) FROM conversations")
        row = await cursor.fetchone()
        total = int(row[0]) if row else 0
        if total == 0:
            return []

        placeholders = ",".join("?" for _ in terms)
        cursor = await conn.execute(
            f"SELECT term, conversation_id, position, tf FROM search_postings WHERE term IN ({placeholders})",
            terms,
        )
        postings = await cursor.fetchall()
        if not postings:
            return []

        containing: dict[str, set[str]] = {}
        for term, conversation_id, _position, _tf in postings:
            containing.setdefault(term, set()).add(conversation_id)
        idf = {term: inverse_document_frequency(total, len(ids)) for term, ids in containing.items()}

        candidates: dict[str, _Candidate] = {}
        for term, conversation_id, position, tf in postings:
            cand = candidates.setdefault(conversation_id, _Candidate(conversation_id))
            cand.term_frequencies[term] = cand.term_frequencies.get(term, 0) + tf
            per_message = cand.message_weights.setdefault(position, {})
            per_message[term] = (1 + math.log(tf)) * idf[term]

        ids = list(candidates)
        placeholders = ",".join("?" for _ in ids)
        cursor = await conn.execute(
            f"SELECT conversation_id, provider_name, title, updated_at FROM conversations "
            f"WHERE conversation_id IN ({placeholders})",
            ids,
        )
        meta = {row[0]: (Provider(row[1]), row[2], row[3]) for row in await cursor.fetchall()}

        scored: list[tuple[float, str | None, str]] = []
        for conversation_id, cand in candidates.items():
            if conversation_id not in meta:
                continue
            if provider is not None and meta[conversation_id][0] is not provider:
                continue
            coverage = len(cand.term_frequencies) / len(terms)
            weight = sum((1 + math.log(tf)) * idf[term] for term, tf in cand.term_frequencies.items())
            score = round(coverage * weight, 9)
            scored.append((score, meta[conversation_id][2], conversation_id))

        scored.sort(key=lambda item: item[2])
        scored.sort(key=lambda item: (item[1] is not None, item[1] or ""), reverse=True)
        scored.sort(key=lambda item: item[0], reverse=True)

        hits: list[SearchHit] = []
        for score, _updated_at, conversation_id in scored[:limit]:
            cand = candidates[conversation_id]
            position = min(cand.message_weights, key=lambda pos: (-sum(cand.message_weights[pos].values()), pos))
            cursor = await conn.execute(
                "SELECT content FROM messages WHERE conversation_id = ? AND position = ?",
                (conversation_id, position),
            )
            row = await cursor.fetchone()
            content = row[0] if row else ""
            in_message = cand.message_weights[position]
            anchors = sorted(in_message, key=lambda t: (-idf[t], terms.index(t)))
            provider_value, title, _ = meta[conversation_id]
            hits.append(
                SearchHit(
                    conversation_id=ConversationId(conversation_id),
                    title=title,
                    provider=provider_value,
                    snippet=make_snippet(content, anchors, self._snippet_length),
                    score=score,
                    position=position,
                    matched_terms=tuple(t for t in terms if t in cand.term_frequencies),
                )
            )
        return hits


__all__ = ["SNIPPET_LENGTH", "SearchEngine", "SearchHit", "inverse_document_frequency", "make_snippet"]
