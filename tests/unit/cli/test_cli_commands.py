"""End-to-end CLI behaviour through click's CliRunner."""

from __future__ import annotations

import sqlite3
from contextlib import closing

import pytest
from click.testing import CliRunner

from llm_unify.cli import cli
from llm_unify.lib.json import loads
from llm_unify.storage.backends.schema import SCHEMA_VERSION
from llm_unify.version import LLM_UNIFY_VERSION
from tests.infra.builders import code_review_export, copilot_conversation, encode, trip_planning_export


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, db_path):
    def _invoke(*args: str):
        return runner.invoke(cli, ["--database", str(db_path), *args])

    return _invoke


@pytest.fixture
def exports(tmp_path):
    trip = tmp_path / "chatgpt.json"
    trip.write_bytes(trip_planning_export())
    review = tmp_path / "claude.json"
    review.write_bytes(code_review_export())
    return trip, review


@pytest.fixture
def populated(invoke, exports):
    trip, review = exports
    assert invoke("import", "chatgpt", str(trip)).exit_code == 0
    assert invoke("import", "claude", str(review)).exit_code == 0
    return invoke


# =============================================================================
# import / load
# =============================================================================


def test_import_reports_count(invoke, exports):
    result = invoke("import", "chatgpt", str(exports[0]))
    assert result.exit_code == 0, result.output
    assert "Imported 1 conversations from chatgpt" in result.output


def test_reimport_reports_unchanged(invoke, exports):
    invoke("import", "chatgpt", str(exports[0]))
    result = invoke("import", "chatgpt", str(exports[0]))
    assert result.exit_code == 0
    assert "1 already up to date" in result.output


def test_import_unknown_provider(invoke, exports):
    result = invoke("import", "bard", str(exports[0]))
    assert result.exit_code == 1
    assert "import: Unknown provider: bard" in result.output


def test_import_missing_file(invoke, tmp_path):
    result = invoke("import", "claude", str(tmp_path / "missing.json"))
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_import_malformed_export_writes_nothing(invoke, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_bytes(b'[{"uuid": "x", "name": "broken"')
    result = invoke("import", "claude", str(bad))
    assert result.exit_code == 1
    assert result.output.startswith("import: claude:")
    assert "No conversations found." in invoke("list").output


def test_import_copilot_envelope(invoke, tmp_path):
    path = tmp_path / "copilot.json"
    path.write_bytes(encode({"version": 1, "conversations": [copilot_conversation("cp-1", "Recipes", [("user", "pasta?")])]}))
    assert invoke("import", "copilot", str(path)).exit_code == 0
    assert "copilot:cp-1 | copilot | Recipes | 1 messages" in invoke("list").output


def test_export_then_load_into_another_database(populated, runner, tmp_path):
    exported = tmp_path / "out" / "trip.json"
    result = populated("export", "chatgpt:trip-1", "--output", str(exported))
    assert result.exit_code == 0, result.output
    assert loads(exported.read_bytes())["conversation"]["id"] == "chatgpt:trip-1"

    other_db = tmp_path / "other.db"
    result = runner.invoke(cli, ["--database", str(other_db), "load", str(exported)])
    assert result.exit_code == 0, result.output
    assert "Loaded: chatgpt:trip-1 (Trip Planning)" in result.output

    result = runner.invoke(cli, ["--database", str(other_db), "load", str(exported)])
    assert "Unchanged: chatgpt:trip-1" in result.output


# =============================================================================
# list / show / delete / export
# =============================================================================


def test_list(populated):
    result = populated("list")
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert lines == [
        "chatgpt:trip-1 | chatgpt | Trip Planning | 4 messages",
        "claude:review-1 | claude | Code Review | 2 messages",
    ]


def test_list_provider_filter(populated):
    assert populated("list", "--provider", "claude").output.strip().splitlines() == [
        "claude:review-1 | claude | Code Review | 2 messages"
    ]


def test_list_empty(invoke):
    assert invoke("list").output.strip() == "No conversations found."


def test_show_by_prefix(populated):
    result = populated("show", "chatgpt:trip")
    assert result.exit_code == 0, result.output
    assert "Conversation: Trip Planning" in result.output
    assert "Provider: chatgpt" in result.output
    assert "Messages: 4" in result.output
    assert "[user] Help me with planning a trip to Japan in April." in result.output
    assert "[assistant] Budget around 200 dollars" in result.output


def test_show_missing(populated):
    result = populated("show", "nope")
    assert result.exit_code == 1
    assert "show: Conversation not found: nope" in result.output


def test_delete(populated):
    result = populated("delete", "review-1")
    assert result.exit_code == 0
    assert "Deleted conversation: claude:review-1" in result.output
    assert "claude:review-1" not in populated("list").output
    assert "Deleted conversation: claude:review-1" in populated("delete", "claude:review-1").output


def test_delete_does_not_expand_prefixes(populated):
    result = populated("delete", "chatgpt:")
    assert result.exit_code == 0
    assert "chatgpt:trip-1" in populated("list").output

    populated("delete", "chatgpt:trip")
    assert "chatgpt:trip-1" in populated("list").output


def test_export_to_stdout(populated):
    result = populated("export", "claude:review-1", "--raw")
    assert result.exit_code == 0
    document = loads(result.output)
    assert document["id"] == "claude:review-1"
    assert [m["role"] for m in document["messages"]] == ["user", "assistant"]


# =============================================================================
# search / stats
# =============================================================================


def test_search(populated):
    result = populated("search", "planning")
    assert result.exit_code == 0, result.output
    assert "1. Conversation: chatgpt:trip-1 (Trip Planning, score" in result.output
    assert "<mark>planning</mark>" in result.output
    assert "claude:review-1" not in result.output


def test_search_no_results(populated):
    assert populated("search", "nonexistent_token_xyz").output.strip() == "No results."


def test_search_limit_must_be_positive(populated):
    assert populated("search", "planning", "--limit", "0").exit_code == 2


def test_stats(populated):
    result = populated("stats")
    assert result.exit_code == 0
    assert "Total conversations: 2" in result.output
    assert "Total messages: 6" in result.output
    assert "  chatgpt: 1" in result.output
    assert "  claude: 1" in result.output


def test_stats_json(populated):
    document = loads(populated("stats", "--json").output)
    assert document["total_conversations"] == 2
    assert document["providers"] == {"chatgpt": 1, "claude": 1}


# =============================================================================
# database maintenance
# =============================================================================


def test_init_and_schema(invoke, db_path):
    result = invoke("init")
    assert result.exit_code == 0
    assert f"Schema version: {SCHEMA_VERSION}" in result.output
    assert db_path.exists()

    result = invoke("schema")
    assert f"Current schema version: {SCHEMA_VERSION}" in result.output
    assert "initial schema" in result.output


def test_validate(populated):
    result = populated("validate")
    assert result.exit_code == 0, result.output
    assert "✓ Search index consistency check passed" in result.output
    assert "Validation PASSED" in result.output


def test_validate_detects_corruption(populated, db_path):
    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("DELETE FROM search_postings WHERE conversation_id = 'claude:review-1'")
        conn.commit()

    result = populated("validate")
    assert result.exit_code == 1
    assert "✗ Search index consistency check failed" in result.output
    assert "validate: Validation FAILED" in result.output

    assert "llm-unify reindex" in result.output

    result = populated("reindex")
    assert result.exit_code == 0, result.output
    assert "Search index rebuilt:" in result.output
    assert "Validation PASSED" in populated("validate").output


def test_backup_and_restore(populated, tmp_path):
    backup = tmp_path / "snap.db"
    result = populated("backup", str(backup))
    assert result.exit_code == 0, result.output
    assert "Checksum: sha256:" in result.output

    populated("delete", "chatgpt:trip-1")
    result = populated("restore", str(backup))
    assert result.exit_code == 0, result.output
    assert "Checksum verified: sha256:" in result.output
    assert "chatgpt:trip-1" in populated("list").output


def test_restore_tampered_backup(populated, tmp_path):
    backup = tmp_path / "snap.db"
    populated("backup", str(backup))
    with backup.open("ab") as fh:
        fh.write(b"x")

    result = populated("restore", str(backup))

    assert result.exit_code == 1
    assert "restore: checksum mismatch" in result.output


def test_version(invoke):
    result = invoke("version")
    assert result.exit_code == 0
    assert f"llm-unify v{LLM_UNIFY_VERSION}" in result.output
    assert f"Schema version: {SCHEMA_VERSION}" in result.output


def test_invalid_environment_setting(runner, monkeypatch):
    monkeypatch.setenv("LLM_UNIFY_SEARCH_LIMIT", "zero")
    result = runner.invoke(cli, ["version"])
    assert result.exit_code == 1
    assert result.output.startswith("config:")
