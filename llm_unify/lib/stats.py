"""Archive statistics types."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from llm_unify.lib.models import Conversation


@dataclass(frozen=True)
class ArchiveStats:
    """Snapshot of archive totals and the provider breakdown.

    Built as a pure fold over conversations (see `from_conversations`), so
    there is no global counter to keep in sync with storage.
    """

    total_conversations: int
    total_messages: int
    providers: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_conversations(cls, conversations: Iterable[Conversation]) -> ArchiveStats:
        total_conversations = 0
        total_messages = 0
        providers: Counter[str] = Counter()
        for conv in conversations:
            total_conversations += 1
            total_messages += conv.message_count
            providers[conv.provider.value] += 1
        return cls(
            total_conversations=total_conversations,
            total_messages=total_messages,
            providers=dict(sorted(providers.items())),
        )

    @property
    def provider_count(self) -> int:
        """Number of unique providers."""
        return len(self.providers)

    @property
    def avg_messages_per_conversation(self) -> float:
        if self.total_conversations == 0:
            return 0.0
        return self.total_messages / self.total_conversations

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        return {
            "total_conversations": self.total_conversations,
            "total_messages": self.total_messages,
            "provider_count": self.provider_count,
            "providers": self.providers,
            "avg_messages_per_conversation": round(self.avg_messages_per_conversation, 1),
        }


__all__ = ["ArchiveStats"]
