"""CLI types."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

from rich.console import Console

from llm_unify.config import Settings
from llm_unify.storage.backends.async_sqlite import SQLiteBackend
from llm_unify.storage.repository import ConversationRepository
from llm_unify.storage.search import SearchEngine


@dataclass
class AppEnv:
    settings: Settings
    console: Console = field(default_factory=lambda: Console(highlight=False, soft_wrap=True))

    @cached_property
    def backend(self) -> SQLiteBackend:
        return SQLiteBackend(self.settings.database)

    @cached_property
    def repository(self) -> ConversationRepository:
        return ConversationRepository(backend=self.backend)

    @cached_property
    def search_engine(self) -> SearchEngine:
        return SearchEngine(
            self.backend,
            default_limit=self.settings.search_limit,
            snippet_length=self.settings.snippet_length,
        )
