"""Single-conversation JSON export and re-import.

The envelope records the versions a file was written with:

    {
      "conversation": {...},
      "exported_at": "2024-05-01T12:00:00+00:00",
      "format_version": 1,
      "schema_version": 1
    }

``raw`` exports carry the bare conversation object; `load_export` accepts both.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from llm_unify.errors import MalformedStructure, MissingRequiredField
from llm_unify.lib.json import dumps
from llm_unify.lib.models import Conversation
from llm_unify.sources.parsers.base import decode_json, major_version, validate_model
from llm_unify.storage.backends.schema import SCHEMA_VERSION

EXPORT_FORMAT_VERSION = 1
SUPPORTED_FORMAT_VERSIONS = (EXPORT_FORMAT_VERSION,)
SOURCE = "export"


def conversation_document(conversation: Conversation) -> dict[str, Any]:
    return conversation.model_dump(mode="json")


def export_conversation(
    conversation: Conversation,
    *,
    raw: bool = False,
    exported_at: datetime | None = None,
) -> str:
    """Pretty, key-sorted JSON for one conversation."""
    document = conversation_document(conversation)
    if raw:
        return dumps(document, pretty=True)
    envelope = {
        "format_version": EXPORT_FORMAT_VERSION,
        "schema_version": SCHEMA_VERSION,
        "exported_at": (exported_at or datetime.now(timezone.utc)).isoformat(),
        "conversation": document,
    }
    return dumps(envelope, pretty=True)


def load_export(raw: bytes) -> Conversation:
    """Parse an export produced by `export_conversation`, enveloped or raw."""
    payload = decode_json(SOURCE, raw)
    if not isinstance(payload, dict):
        raise MalformedStructure(SOURCE, f"expected a JSON object, got {type(payload).__name__}")
    if "format_version" in payload:
        major_version(SOURCE, payload["format_version"], SUPPORTED_FORMAT_VERSIONS)
        if "conversation" not in payload:
            raise MissingRequiredField(SOURCE, "conversation")
        payload = payload["conversation"]
    return validate_model(SOURCE, Conversation, payload, where="conversation")


__all__ = [
    "EXPORT_FORMAT_VERSION",
    "conversation_document",
    "export_conversation",
    "load_export",
]
