"""Database health checks backing the ``validate`` command."""

from __future__ import annotations

from dataclasses import dataclass, field

from llm_unify.errors import IndexInconsistency
from llm_unify.lib.log import get_logger
from llm_unify.storage.backends.async_sqlite import SQLiteBackend
from llm_unify.storage.index import postings_from_contents

logger = get_logger(__name__)


@dataclass(frozen=True)
class CheckResult:
    name: str
    passed: bool
    detail: str = ""


@dataclass
class ValidationReport:
    checks: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failures(self) -> list[CheckResult]:
        return [check for check in self.checks if not check.passed]


async def find_index_inconsistencies(backend: SQLiteBackend) -> list[str]:
    """Ids whose stored postings differ from postings recomputed from their messages."""
    async with backend.read() as conn:
        cursor = await conn.execute("SELECT conversation_id, position, content FROM messages")
        contents: dict[str, list[tuple[int, str]]] = {}
        for conversation_id, position, content in await cursor.fetchall():
            contents.setdefault(conversation_id, []).append((position, content))

        cursor = await conn.execute("SELECT term, conversation_id, position, tf FROM search_postings")
        stored: dict[str, set[tuple[str, int, int]]] = {}
        for term, conversation_id, position, tf in await cursor.fetchall():
            stored.setdefault(conversation_id, set()).add((term, position, tf))

    mismatched = []
    for conversation_id in sorted(set(contents) | set(stored)):
        expected = postings_from_contents(contents.get(conversation_id, []))
        if stored.get(conversation_id, set()) != expected:
            mismatched.append(conversation_id)
    return mismatched


async def assert_index_consistent(backend: SQLiteBackend) -> None:
    mismatched = await find_index_inconsistencies(backend)
    if mismatched:
        raise IndexInconsistency(f"search postings out of date for: {', '.join(mismatched)}")


async def _data_consistency(backend: SQLiteBackend) -> CheckResult:
    async with backend.read() as conn:
        cursor = await conn.execute(
            """
            SELECT COUNT(*) FROM messages m
            LEFT JOIN conversations c ON c.conversation_id = m.conversation_id
            WHERE c.conversation_id IS NULL
            """
        )
        orphan_messages = (await cursor.fetchone())[0]
        cursor = await conn.execute(
            """
            SELECT COUNT(*) FROM search_postings p
            LEFT JOIN conversations c ON c.conversation_id = p.conversation_id
            WHERE c.conversation_id IS NULL
            """
        )
        orphan_postings = (await cursor.fetchone())[0]
        cursor = await conn.execute(
            """
            SELECT COUNT(*) FROM conversations c
            WHERE c.message_count != (SELECT COUNT(*) FROM messages m WHERE m.conversation_id = c.conversation_id)
            """
        )
        miscounted = (await cursor.fetchone())[0]

    problems = []
    if orphan_messages:
        problems.append(f"{orphan_messages} orphaned messages")
    if orphan_postings:
        problems.append(f"{orphan_postings} orphaned postings")
    if miscounted:
        problems.append(f"{miscounted} conversations with wrong message counts")
    return CheckResult("Data consistency", not problems, "; ".join(problems))


async def validate_database(backend: SQLiteBackend) -> ValidationReport:
    """Run every check; a failing check never stops the ones after it."""
    report = ValidationReport()

    integrity = await backend.integrity_check()
    report.checks.append(CheckResult("SQLite integrity", not integrity, "; ".join(integrity)))

    violations = await backend.foreign_key_violations()
    report.checks.append(
        CheckResult("Foreign keys", violations == 0, f"{violations} violations" if violations else "")
    )

    report.checks.append(await _data_consistency(backend))

    mismatched = await find_index_inconsistencies(backend)
    report.checks.append(
        CheckResult(
            "Search index consistency",
            not mismatched,
            f"{len(mismatched)} conversations out of date: {', '.join(mismatched[:5])}" if mismatched else "",
        )
    )
    logger.info("database validated", passed=report.passed, failures=[c.name for c in report.failures])
    return report


__all__ = [
    "CheckResult",
    "ValidationReport",
    "assert_index_consistent",
    "find_index_inconsistencies",
    "validate_database",
]
