"""Unified models for conversations and messages.

Every provider parser produces these types, and the repository stores and
returns them unchanged:

- `Message`: one turn, attributed to a canonical `Role`. Its position in
  `Conversation.messages` is its ordering; there is no separate sort key.

- `Conversation`: one chat session. The id is ``<provider>:<source id>``
  so that ids from different providers never collide.

Example:
    conv = Conversation(
        id=Conversation.make_id(Provider.CLAUDE, "abc"),
        provider=Provider.CLAUDE,
        title="Code Review",
        messages=[Message(role=Role.USER, content="Please review this")],
    )
    print(conv.message_count, conv.content_hash())
"""

from __future__ import annotations

import hashlib
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from llm_unify.lib.json import canonical
from llm_unify.lib.roles import Role
from llm_unify.lib.timestamps import as_utc, format_timestamp
from llm_unify.types import ContentHash, ConversationId, Provider


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        if isinstance(v, str) and not isinstance(v, Role):
            return Role.normalize(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def utc_timestamp(cls, v: datetime | None) -> datetime | None:
        return None if v is None else as_utc(v)


class Conversation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: ConversationId
    provider: Provider
    title: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id")
    @classmethod
    def non_empty_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Conversation id cannot be empty")
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def utc_timestamps(cls, v: datetime | None) -> datetime | None:
        return None if v is None else as_utc(v)

    @model_validator(mode="after")
    def id_matches_provider(self) -> Conversation:
        if not self.id.startswith(f"{self.provider.value}:"):
            raise ValueError(f"Conversation id '{self.id}' does not belong to provider '{self.provider}'")
        return self

    @staticmethod
    def make_id(provider: Provider, source_id: str) -> ConversationId:
        """Build the globally unique id for a provider-local conversation id."""
        return ConversationId(f"{provider.value}:{source_id}")

    @property
    def source_id(self) -> str:
        """The provider-local part of the id."""
        return self.id.split(":", 1)[1]

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def content_hash(self) -> ContentHash:
        """SHA-256 over the canonical JSON form; equal content, equal hash."""
        document = {
            "id": self.id,
            "provider": self.provider.value,
            "title": self.title,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "messages": [
                [msg.role.value, msg.content, format_timestamp(msg.timestamp)] for msg in self.messages
            ],
        }
        return ContentHash(hashlib.sha256(canonical(document)).hexdigest())


__all__ = ["Conversation", "Message", "Role"]
