"""Storage layer for llm-unify - database, indexing, and search."""

from __future__ import annotations

from .backends import SCHEMA_VERSION, SQLiteBackend
from .backup import BACKUP_FORMAT_VERSION, create_backup, restore_backup
from .index import STOPWORDS, tokenize
from .repository import ConversationRepository
from .search import SNIPPET_LENGTH, SearchEngine, SearchHit
from .validation import ValidationReport, assert_index_consistent, validate_database

__all__ = [
    "BACKUP_FORMAT_VERSION",
    "SCHEMA_VERSION",
    "SNIPPET_LENGTH",
    "STOPWORDS",
    "ConversationRepository",
    "SQLiteBackend",
    "SearchEngine",
    "SearchHit",
    "ValidationReport",
    "assert_index_consistent",
    "create_backup",
    "restore_backup",
    "tokenize",
    "validate_database",
]
