from __future__ import annotations

import pytest

from llm_unify.errors import IndexInconsistency
from llm_unify.storage.backends.schema import SCHEMA_VERSION
from llm_unify.storage.validation import (
    assert_index_consistent,
    find_index_inconsistencies,
    validate_database,
)
from tests.infra.builders import make_conversation


@pytest.mark.asyncio
async def test_fresh_database_passes(backend):
    report = await validate_database(backend)
    assert report.passed
    assert [c.name for c in report.checks] == [
        "SQLite integrity",
        "Foreign keys",
        "Data consistency",
        "Search index consistency",
    ]


@pytest.mark.asyncio
async def test_populated_database_passes(repository, backend):
    await repository.save(make_conversation("a", ["one two three"]))
    await repository.save(make_conversation("b", ["four five"]))
    report = await validate_database(backend)
    assert report.passed
    assert report.failures == []


@pytest.mark.asyncio
async def test_tampered_postings_detected(repository, backend):
    await repository.save(make_conversation("a", ["one two three"]))
    await repository.save(make_conversation("b", ["four five"]))
    async with backend.write() as conn:
        await conn.execute("UPDATE search_postings SET tf = 7 WHERE conversation_id = 'claude:b'")

    assert await find_index_inconsistencies(backend) == ["claude:b"]
    with pytest.raises(IndexInconsistency, match="claude:b"):
        await assert_index_consistent(backend)
    report = await validate_database(backend)
    assert not report.passed
    assert [c.name for c in report.failures] == ["Search index consistency"]


@pytest.mark.asyncio
async def test_rebuild_repairs_index(repository, backend):
    await repository.save(make_conversation("a", ["one two three"]))
    async with backend.write() as conn:
        await conn.execute("DELETE FROM search_postings")
    assert await find_index_inconsistencies(backend) == ["claude:a"]

    assert await repository.rebuild_index() == 3

    await assert_index_consistent(backend)


@pytest.mark.asyncio
async def test_message_count_mismatch_detected(repository, backend):
    await repository.save(make_conversation("a", ["one", "two"]))
    async with backend.write() as conn:
        await conn.execute("UPDATE conversations SET message_count = 5")

    report = await validate_database(backend)

    [failure] = report.failures
    assert failure.name == "Data consistency"
    assert "wrong message counts" in failure.detail


@pytest.mark.asyncio
async def test_schema_history(backend):
    history = await backend.schema_history()
    assert [version for version, _description, _applied in history] == list(range(1, SCHEMA_VERSION + 1))
