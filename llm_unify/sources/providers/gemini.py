"""Gemini AI Studio provider-specific typed models.

These models match the prompt files AI Studio saves to Google Drive
(``chunkedPrompt`` documents). Chunks are already linear.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GeminiPart(BaseModel):
    """Content part within a Gemini chunk."""

    model_config = ConfigDict(extra="allow")

    text: str | None = None
    # Can also contain inlineData, fileData, etc.


class GeminiChunk(BaseModel):
    """A single Gemini AI Studio chunk (one turn or one thought block)."""

    model_config = ConfigDict(extra="allow")

    role: str
    """Role: user or model."""

    text: str | None = None
    parts: list[GeminiPart] | None = None

    isThought: bool = False
    """Whether this is a thinking/reasoning block."""

    tokenCount: int | None = None
    createTime: str | None = None

    @property
    def has_text(self) -> bool:
        return self.text is not None or self.parts is not None

    def text_content(self) -> str:
        if self.text is not None:
            return self.text
        return "\n".join(part.text for part in self.parts or [] if part.text)


class GeminiChunkedPrompt(BaseModel):
    model_config = ConfigDict(extra="allow")

    chunks: list[GeminiChunk]


class GeminiPrompt(BaseModel):
    """A complete AI Studio prompt document."""

    model_config = ConfigDict(extra="allow")

    chunkedPrompt: GeminiChunkedPrompt
    id: str | None = None
    title: str | None = None
    displayName: str | None = None
    createTime: str | None = None
    updateTime: str | None = None
    runSettings: dict[str, Any] = Field(default_factory=dict)

    @property
    def display_title(self) -> str | None:
        return self.title or self.displayName


__all__ = ["GeminiPart", "GeminiChunk", "GeminiChunkedPrompt", "GeminiPrompt"]
