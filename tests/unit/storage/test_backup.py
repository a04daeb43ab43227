from __future__ import annotations

import pytest

from llm_unify.errors import BackupError
from llm_unify.lib.json import loads
from llm_unify.storage.backends.async_sqlite import SQLiteBackend
from llm_unify.storage.backends.schema import SCHEMA_VERSION
from llm_unify.storage.backup import (
    BACKUP_FORMAT_VERSION,
    create_backup,
    file_checksum,
    metadata_path,
    restore_backup,
    verify_backup,
)
from llm_unify.storage.repository import ConversationRepository
from llm_unify.storage.search import SearchEngine
from tests.infra.builders import make_conversation


@pytest.mark.asyncio
async def test_backup_restore_round_trip(repository, backend, tmp_path):
    original = make_conversation("keeper", ["remember the miso recipe"])
    await repository.save(original)
    backup = tmp_path / "backups" / "archive.bak"

    meta = await create_backup(backend, backup)

    assert backup.is_file()
    assert meta.format_version == BACKUP_FORMAT_VERSION
    assert meta.schema_version == SCHEMA_VERSION
    assert meta.checksum == file_checksum(backup)
    assert meta.size_bytes == backup.stat().st_size
    sidecar = loads(metadata_path(backup).read_bytes())
    assert sidecar["checksum"].startswith("sha256:")

    await repository.delete(original.id)
    await repository.save(make_conversation("newcomer", ["unrelated"]))

    restored = await restore_backup(backend, backup)

    assert restored.checksum == meta.checksum
    assert [c.id for c in await repository.list()] == [original.id]
    assert await repository.find_by_id(original.id) == original
    assert [h.conversation_id for h in await SearchEngine(backend).search("miso")] == [original.id]


@pytest.mark.asyncio
async def test_restore_into_fresh_location(repository, backend, tmp_path):
    await repository.save(make_conversation("c", ["hello"]))
    backup = tmp_path / "archive.bak"
    await create_backup(backend, backup)

    fresh = ConversationRepository(backend=SQLiteBackend(tmp_path / "elsewhere" / "new.db"))
    await restore_backup(fresh.backend, backup)

    assert await fresh.count() == 1


@pytest.mark.asyncio
async def test_failed_swap_keeps_live_writes(repository, backend, tmp_path, monkeypatch):
    await repository.save(make_conversation("before", ["snapshotted"]))
    backup = tmp_path / "archive.bak"
    await create_backup(backend, backup)
    later = make_conversation("after", ["only in the live database"])
    await repository.save(later)

    def refuse(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("llm_unify.storage.backup.os.replace", refuse)
    with pytest.raises(BackupError, match="could not replace"):
        await restore_backup(backend, backup)
    monkeypatch.undo()

    assert await repository.find_by_id(later.id) == later
    assert await repository.count() == 2


@pytest.mark.asyncio
async def test_tampered_backup_rejected(repository, backend, tmp_path):
    await repository.save(make_conversation("c", ["hello"]))
    backup = tmp_path / "archive.bak"
    await create_backup(backend, backup)
    with backup.open("ab") as fh:
        fh.write(b"tampered")

    with pytest.raises(BackupError, match="checksum mismatch"):
        await restore_backup(backend, backup)

    assert await repository.count() == 1


@pytest.mark.asyncio
async def test_missing_metadata_rejected(backend, tmp_path):
    backup = tmp_path / "archive.bak"
    await create_backup(backend, backup)
    metadata_path(backup).unlink()

    with pytest.raises(BackupError, match="missing backup metadata"):
        await verify_backup(backup)


@pytest.mark.asyncio
async def test_invalid_metadata_rejected(backend, tmp_path):
    backup = tmp_path / "archive.bak"
    await create_backup(backend, backup)
    metadata_path(backup).write_text("{not json", encoding="utf-8")

    with pytest.raises(BackupError, match="invalid backup metadata"):
        await verify_backup(backup)


@pytest.mark.asyncio
async def test_missing_backup_file(tmp_path):
    with pytest.raises(BackupError, match="backup not found"):
        await verify_backup(tmp_path / "nope.bak")
