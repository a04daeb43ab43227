"""Microsoft Copilot provider-specific typed models.

These models match the JSON conversation export of Copilot: a versioned
envelope holding conversations with a flat, chronological message list.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CopilotMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    author: str | None = None
    """user or bot; older exports name the same field ``role``."""

    role: str | None = None
    text: str | None = None
    content: str | None = None
    createdAt: str | None = None

    @property
    def author_role(self) -> str | None:
        return self.author if self.author is not None else self.role

    @property
    def body(self) -> str | None:
        return self.text if self.text is not None else self.content


class CopilotConversation(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    createdAt: str
    updatedAt: str
    messages: list[CopilotMessage]


__all__ = ["CopilotMessage", "CopilotConversation"]
