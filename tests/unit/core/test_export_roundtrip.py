from __future__ import annotations

from datetime import datetime, timezone

import pytest

from llm_unify.errors import MalformedStructure, MissingRequiredField, ParseError, UnsupportedFormatVersion
from llm_unify.export import EXPORT_FORMAT_VERSION, export_conversation, load_export
from llm_unify.lib.json import loads
from llm_unify.storage.backends.schema import SCHEMA_VERSION
from llm_unify.types import Provider
from tests.infra.builders import make_conversation


@pytest.fixture
def conversation():
    return make_conversation("export-me", ["What is a B-tree?", "A balanced search tree."], provider=Provider.GEMINI)


def test_envelope_fields(conversation):
    stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    document = loads(export_conversation(conversation, exported_at=stamp))
    assert document["format_version"] == EXPORT_FORMAT_VERSION
    assert document["schema_version"] == SCHEMA_VERSION
    assert document["exported_at"] == "2024-05-01T12:00:00+00:00"
    assert document["conversation"]["id"] == "gemini:export-me"
    assert document["conversation"]["messages"][0]["role"] == "user"


def test_export_is_pretty_and_sorted(conversation):
    text = export_conversation(conversation)
    assert text.startswith('{\n  "conversation"')


def test_enveloped_export_loads_back(conversation):
    assert load_export(export_conversation(conversation).encode()) == conversation


def test_raw_export_loads_back(conversation):
    text = export_conversation(conversation, raw=True)
    assert "format_version" not in loads(text)
    assert load_export(text.encode()) == conversation


def test_future_format_rejected(conversation):
    text = export_conversation(conversation).replace('"format_version": 1', '"format_version": 2')
    with pytest.raises(UnsupportedFormatVersion):
        load_export(text.encode())


def test_envelope_without_conversation():
    with pytest.raises(MissingRequiredField):
        load_export(b'{"format_version": 1}')


def test_non_object_rejected():
    with pytest.raises(MalformedStructure):
        load_export(b"[1, 2, 3]")


def test_truncated_export():
    with pytest.raises(ParseError):
        load_export(b'{"format_version": 1, "conversation": {"id": "claude:')
