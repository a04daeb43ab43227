"""Unified role normalization for llm-unify.

Provides canonical mapping of provider-specific role names to standard roles.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Canonical conversation roles."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, raw: str) -> Role:
        """Normalize a provider role string to a canonical Role.

        Args:
            raw: Provider-specific role string (e.g., "human", "model", "bot").
                 Must be non-empty. Missing roles should be handled at parse time.

        Returns:
            Canonical Role enum value. Returns UNKNOWN for unrecognized roles.

        Raises:
            ValueError: If raw is empty or whitespace-only.
        """
        lowered = raw.strip().lower()
        if not lowered:
            raise ValueError("Role cannot be empty. Handle missing roles at parse time.")
        return cls(ROLE_MAP.get(lowered, "unknown"))

    def __str__(self) -> str:
        return self.value


ROLE_MAP = {
    "user": "user",
    "human": "user",
    "assistant": "assistant",
    "model": "assistant",
    "ai": "assistant",
    "bot": "assistant",
    "copilot": "assistant",
    "system": "system",
    "tool": "tool",
    "function": "tool",
    "tool_use": "tool",
    "tool_result": "tool",
    "unknown": "unknown",
}


__all__ = ["Role", "ROLE_MAP"]
