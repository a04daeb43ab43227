"""Type aliases and enums for llm-unify."""
from __future__ import annotations

from enum import Enum
from typing import NewType

from llm_unify.errors import UnknownProvider

# Semantic ID types - provides compile-time distinction
ConversationId = NewType("ConversationId", str)
ContentHash = NewType("ContentHash", str)


class Provider(str, Enum):
    """Supported conversation providers."""
    CHATGPT = "chatgpt"
    CLAUDE = "claude"
    GEMINI = "gemini"
    COPILOT = "copilot"

    @classmethod
    def from_string(cls, value: str | None) -> Provider:
        """Normalize a provider name, raising UnknownProvider when unrecognized."""
        if not value:
            raise UnknownProvider(str(value))
        normalized = value.lower().strip()
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownProvider(value) from None

    def __str__(self) -> str:
        return self.value


__all__ = ["ConversationId", "ContentHash", "Provider"]
