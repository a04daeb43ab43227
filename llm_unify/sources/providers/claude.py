"""Claude (claude.ai web) provider-specific typed models.

These models match the ``conversations.json`` file of a Claude data export.
Newer exports link each message to its parent through
``parent_message_uuid``; retried or edited turns then form branches.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# parent_message_uuid of the first message in a conversation
ROOT_PARENT_UUID = "00000000-0000-4000-8000-000000000000"


class ClaudeContentBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    text: str | None = None


class ClaudeChatMessage(BaseModel):
    """A single message in a Claude conversation."""

    model_config = ConfigDict(extra="allow")

    uuid: str
    sender: str
    """Sender: human or assistant."""

    text: str | None = None
    content: list[ClaudeContentBlock] | None = None
    created_at: str | None = None
    parent_message_uuid: str | None = None

    @property
    def has_text(self) -> bool:
        return self.text is not None or self.content is not None

    def text_content(self) -> str:
        """Prefer structured text blocks, falling back to the flat ``text`` field."""
        if self.content:
            blocks = [block.text for block in self.content if block.text and block.type in (None, "text")]
            if blocks:
                return "\n\n".join(blocks)
        return self.text or ""


class ClaudeConversation(BaseModel):
    """A complete Claude conversation export."""

    model_config = ConfigDict(extra="allow")

    uuid: str
    name: str
    created_at: str
    updated_at: str
    chat_messages: list[ClaudeChatMessage]

    @property
    def is_branched(self) -> bool:
        return any(msg.parent_message_uuid for msg in self.chat_messages)


__all__ = ["ROOT_PARENT_UUID", "ClaudeContentBlock", "ClaudeChatMessage", "ClaudeConversation"]
