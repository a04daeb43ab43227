"""ChatGPT provider-specific typed models.

These models match the ``conversations.json`` file of a ChatGPT data export.
Each conversation stores its turns as a tree (``mapping``): editing or
regenerating a turn adds a sibling branch rather than replacing the node.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatGPTAuthor(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str
    """Author role: user, assistant, system or tool."""

    name: str | None = None
    """Tool name for role=tool (browser, python, dalle...)."""


class ChatGPTContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    content_type: str = "text"
    parts: list[Any] | None = None
    text: str | None = None
    """Used by ``code`` and ``execution_output`` content types instead of parts."""

    def text_content(self) -> str:
        fragments: list[str] = []
        for part in self.parts or []:
            if isinstance(part, str):
                if part:
                    fragments.append(part)
            elif isinstance(part, dict):
                # tether_quote and multimodal text parts; image pointers carry no text
                text = part.get("text")
                if isinstance(text, str) and text:
                    fragments.append(text)
        if not fragments and self.text:
            fragments.append(self.text)
        return "\n".join(fragments)


class ChatGPTMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    author: ChatGPTAuthor
    content: ChatGPTContent | None = None
    create_time: float | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_hidden(self) -> bool:
        return bool((self.metadata or {}).get("is_visually_hidden_from_conversation"))


class ChatGPTNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    message: ChatGPTMessage | None = None
    parent: str | None = None
    children: list[str] = Field(default_factory=list)


class ChatGPTConversation(BaseModel):
    """A complete ChatGPT conversation export."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    conversation_id: str | None = None
    title: str | None
    """Required key; ChatGPT writes null for conversations it never titled."""

    create_time: float
    update_time: float
    mapping: dict[str, ChatGPTNode]
    current_node: str | None = None

    @property
    def source_id(self) -> str | None:
        return self.conversation_id or self.id


__all__ = [
    "ChatGPTAuthor",
    "ChatGPTContent",
    "ChatGPTMessage",
    "ChatGPTNode",
    "ChatGPTConversation",
]
