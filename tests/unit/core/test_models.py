from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from llm_unify.lib.models import Conversation, Message
from llm_unify.lib.roles import Role
from llm_unify.types import Provider
from tests.infra.builders import BASE_TIME, make_conversation


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("user", Role.USER),
        ("Human", Role.USER),
        ("model", Role.ASSISTANT),
        ("bot", Role.ASSISTANT),
        ("function", Role.TOOL),
        ("  System ", Role.SYSTEM),
        ("narrator", Role.UNKNOWN),
    ],
)
def test_role_normalize(raw, expected):
    assert Role.normalize(raw) is expected


def test_role_normalize_rejects_empty():
    with pytest.raises(ValueError):
        Role.normalize("   ")


def test_message_normalizes_role_strings():
    assert Message(role="human", content="hi").role is Role.USER


def test_make_id_and_source_id():
    conv = make_conversation("abc:def", ["hi"])
    assert conv.id == "claude:abc:def"
    assert conv.source_id == "abc:def"


def test_id_must_match_provider():
    with pytest.raises(ValidationError):
        Conversation(id="chatgpt:x", provider=Provider.CLAUDE, title="t")


def test_id_cannot_be_blank():
    with pytest.raises(ValidationError):
        Conversation(id="  ", provider=Provider.CLAUDE, title="t")


def test_models_are_frozen():
    conv = make_conversation("x", ["hi"])
    with pytest.raises(ValidationError):
        conv.title = "changed"


def test_content_hash_stable_and_sensitive():
    base = make_conversation("x", ["one", "two"])
    assert base.content_hash() == make_conversation("x", ["one", "two"]).content_hash()
    assert base.content_hash() != make_conversation("x", ["one", "three"]).content_hash()
    assert base.content_hash() != make_conversation("x", ["one", "two"], title="Other").content_hash()
    assert len(base.content_hash()) == 64


def test_content_hash_ignores_timezone_representation():
    """The same instant expressed in another offset hashes identically."""
    other_tz = BASE_TIME.astimezone(timezone(timedelta(hours=9)))
    a = make_conversation("x", ["hi"], created_at=BASE_TIME)
    b = make_conversation("x", ["hi"], created_at=other_tz)
    assert a.content_hash() == b.content_hash()


def test_timestamps_are_utc_aware():
    naive = datetime(2024, 1, 1, 12, 0, 0, 123456)
    tokyo = datetime(2024, 1, 1, 21, 0, tzinfo=timezone(timedelta(hours=9)))
    conv = make_conversation("tz", ["hi"], created_at=naive, updated_at=tokyo)
    assert conv.created_at == naive.replace(tzinfo=timezone.utc)
    assert conv.created_at.tzinfo is timezone.utc
    assert conv.updated_at.utcoffset() == timedelta(0)
    assert Message(role=Role.USER, content="x", timestamp=naive).timestamp.tzinfo is timezone.utc


def test_timestamp_strings_without_offset_are_utc():
    conv = Conversation(
        id="chatgpt:s", provider=Provider.CHATGPT, title="S", created_at="2024-01-01T00:00:00"
    )
    assert conv.created_at == BASE_TIME


@given(st.lists(st.text(alphabet=st.characters(min_codepoint=32, max_codepoint=126), max_size=40), max_size=8))
def test_message_count_matches_messages(contents):
    conv = make_conversation("p", contents, created_at=datetime(2023, 5, 1, tzinfo=timezone.utc))
    assert conv.message_count == len(contents)
    assert [m.content for m in conv.messages] == contents
