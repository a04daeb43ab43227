"""Database snapshots with checksums, and verified restore.

A backup is a plain SQLite file produced by the SQLite online backup API
(consistent even while other connections write), plus a sidecar
``<backup>.meta.json`` recording its SHA-256 checksum and versions. Restore
refuses any snapshot whose checksum, integrity or schema version does not
check out, and swaps the database file atomically.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import shutil
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ValidationError

from llm_unify.errors import BackupError
from llm_unify.lib.json import JSONDecodeError, dumps, loads
from llm_unify.lib.log import get_logger
from llm_unify.storage.backends.async_sqlite import DB_TIMEOUT, SQLiteBackend
from llm_unify.storage.backends.schema import SCHEMA_VERSION

logger = get_logger(__name__)

BACKUP_FORMAT_VERSION = 1
_CHUNK = 1024 * 1024


class BackupMetadata(BaseModel):
    format_version: int
    schema_version: int
    checksum: str
    created_at: datetime
    size_bytes: int


def metadata_path(backup: Path) -> Path:
    return backup.with_name(backup.name + ".meta.json")


def file_checksum(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            digest.update(chunk)
    return f"sha256:{digest.hexdigest()}"


def _snapshot(source: Path, target: Path) -> None:
    tmp = target.with_name(target.name + ".tmp")
    tmp.unlink(missing_ok=True)
    try:
        with closing(sqlite3.connect(source, timeout=DB_TIMEOUT)) as src, closing(sqlite3.connect(tmp)) as dst:
            src.backup(dst)
            # Standalone file: no -wal/-shm companions needed to read it.
            dst.execute("PRAGMA journal_mode=DELETE")
        os.replace(tmp, target)
    except sqlite3.Error as exc:
        tmp.unlink(missing_ok=True)
        raise BackupError(f"backup of {source} failed: {exc}") from exc


def _checkpoint(path: Path) -> None:
    """Fold the live database's WAL into its main file and empty the WAL."""
    if not path.exists():
        return
    try:
        with closing(sqlite3.connect(path, timeout=DB_TIMEOUT)) as conn:
            busy = conn.execute("PRAGMA wal_checkpoint(TRUNCATE)").fetchone()[0]
    except sqlite3.Error as exc:
        raise BackupError(f"could not checkpoint {path}: {exc}") from exc
    if busy:
        raise BackupError(f"{path} is busy; close other connections and retry")


def _inspect(path: Path) -> tuple[int, list[str]]:
    """Schema version and integrity problems of a database file."""
    try:
        with closing(sqlite3.connect(path)) as conn:
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            problems = [row[0] for row in conn.execute("PRAGMA integrity_check").fetchall()]
    except sqlite3.Error as exc:
        raise BackupError(f"{path} is not a readable database: {exc}") from exc
    return int(version), [] if problems == ["ok"] else problems


async def create_backup(backend: SQLiteBackend, output: Path) -> BackupMetadata:
    """Snapshot the database to ``output`` and write its metadata sidecar."""
    await backend.ensure_schema()
    output.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(_snapshot, backend.db_path, output)
    checksum = await asyncio.to_thread(file_checksum, output)
    meta = BackupMetadata(
        format_version=BACKUP_FORMAT_VERSION,
        schema_version=SCHEMA_VERSION,
        checksum=checksum,
        created_at=datetime.now(timezone.utc),
        size_bytes=output.stat().st_size,
    )
    metadata_path(output).write_text(dumps(meta.model_dump(mode="json"), pretty=True) + "\n", encoding="utf-8")
    logger.info("backup created", path=str(output), checksum=checksum, size_bytes=meta.size_bytes)
    return meta


def read_metadata(backup: Path) -> BackupMetadata:
    sidecar = metadata_path(backup)
    if not sidecar.exists():
        raise BackupError(f"missing backup metadata: {sidecar}")
    try:
        return BackupMetadata.model_validate(loads(sidecar.read_bytes()))
    except (JSONDecodeError, ValidationError) as exc:
        raise BackupError(f"invalid backup metadata {sidecar}: {exc}") from exc


async def verify_backup(backup: Path) -> BackupMetadata:
    """Check a snapshot against its metadata without touching the live database."""
    if not backup.is_file():
        raise BackupError(f"backup not found: {backup}")
    meta = read_metadata(backup)
    if meta.format_version != BACKUP_FORMAT_VERSION:
        raise BackupError(f"unsupported backup format version {meta.format_version}")
    actual = await asyncio.to_thread(file_checksum, backup)
    if actual != meta.checksum:
        raise BackupError(f"checksum mismatch for {backup}: expected {meta.checksum}, got {actual}")
    return meta


async def restore_backup(backend: SQLiteBackend, backup: Path) -> BackupMetadata:
    """Replace the live database with a verified snapshot."""
    meta = await verify_backup(backup)
    target = backend.db_path
    target.parent.mkdir(parents=True, exist_ok=True)
    staging = target.with_name(target.name + ".restore")
    await asyncio.to_thread(shutil.copyfile, backup, staging)
    try:
        version, problems = await asyncio.to_thread(_inspect, staging)
        if problems:
            raise BackupError(f"backup failed integrity check: {'; '.join(problems[:3])}")
        if version != meta.schema_version:
            raise BackupError(f"backup schema version {version} does not match metadata {meta.schema_version}")
        if version > SCHEMA_VERSION:
            raise BackupError(f"backup schema version {version} is newer than supported {SCHEMA_VERSION}")
        # An emptied WAL cannot replay stale pages onto the restored file.
        await asyncio.to_thread(_checkpoint, target)
        try:
            os.replace(staging, target)
        except OSError as exc:
            raise BackupError(f"could not replace {target}: {exc}") from exc
        for suffix in ("-wal", "-shm"):
            target.with_name(target.name + suffix).unlink(missing_ok=True)
    finally:
        staging.unlink(missing_ok=True)
    backend.invalidate_schema()
    logger.info("database restored", source=str(backup), target=str(target))
    return meta


__all__ = [
    "BACKUP_FORMAT_VERSION",
    "BackupMetadata",
    "create_backup",
    "file_checksum",
    "metadata_path",
    "read_metadata",
    "restore_backup",
    "verify_backup",
]
