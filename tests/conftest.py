from __future__ import annotations

import sys
from pathlib import Path

import pytest
from hypothesis import HealthCheck, settings

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from llm_unify.lib.log import configure_logging
from llm_unify.storage.backends.async_sqlite import SQLiteBackend
from llm_unify.storage.repository import ConversationRepository
from llm_unify.storage.search import SearchEngine

# The autouse isolation fixture is function-scoped; it only touches env vars.
settings.register_profile("llm-unify", suppress_health_check=[HealthCheck.function_scoped_fixture])
settings.load_profile("llm-unify")


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep every test away from the real XDG data directory and user settings."""
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    for name in ("LLM_UNIFY_DATABASE", "LLM_UNIFY_SEARCH_LIMIT", "LLM_UNIFY_SNIPPET_LENGTH", "LLM_UNIFY_JSON_LOGS"):
        monkeypatch.delenv(name, raising=False)
    configure_logging(verbose=False)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "archive.db"


@pytest.fixture
def backend(db_path: Path) -> SQLiteBackend:
    return SQLiteBackend(db_path)


@pytest.fixture
def repository(backend: SQLiteBackend) -> ConversationRepository:
    return ConversationRepository(backend=backend)


@pytest.fixture
def search_engine(backend: SQLiteBackend) -> SearchEngine:
    return SearchEngine(backend)
