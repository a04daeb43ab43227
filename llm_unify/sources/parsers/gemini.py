from __future__ import annotations

import hashlib
from typing import Any

from llm_unify.errors import MissingRequiredField
from llm_unify.lib.json import canonical
from llm_unify.lib.log import get_logger
from llm_unify.lib.models import Conversation, Message
from llm_unify.sources.providers.gemini import GeminiPrompt
from llm_unify.types import Provider

from .base import decode_json, optional_timestamp, require_role, split_batch, validate_model

logger = get_logger(__name__)

UNTITLED = "Untitled prompt"


def looks_like(payload: dict[str, Any]) -> bool:
    return isinstance(payload.get("chunkedPrompt"), dict)


def prompt_identity(payload: dict[str, Any]) -> str:
    """Stable id for prompt files that carry none: a digest of their canonical JSON."""
    return hashlib.sha256(canonical(payload)).hexdigest()[:32]


def parse_conversation(payload: dict[str, Any], *, where: str) -> Conversation:
    prompt = validate_model(Provider.GEMINI, GeminiPrompt, payload, where=where)
    messages: list[Message] = []
    for index, chunk in enumerate(prompt.chunkedPrompt.chunks):
        field = f"{where}.chunkedPrompt.chunks[{index}]"
        if not chunk.has_text:
            raise MissingRequiredField(str(Provider.GEMINI), f"{field}.text")
        if chunk.isThought:
            continue
        text = chunk.text_content()
        if not text.strip():
            continue
        messages.append(
            Message(
                role=require_role(Provider.GEMINI, chunk.role, field=f"{field}.role"),
                content=text,
                timestamp=optional_timestamp(Provider.GEMINI, chunk.createTime, field=f"{field}.createTime"),
            )
        )
    created_at = optional_timestamp(Provider.GEMINI, prompt.createTime, field=f"{where}.createTime")
    updated_at = optional_timestamp(Provider.GEMINI, prompt.updateTime, field=f"{where}.updateTime")
    return Conversation(
        id=Conversation.make_id(Provider.GEMINI, prompt.id or prompt_identity(payload)),
        provider=Provider.GEMINI,
        title=prompt.display_title or UNTITLED,
        messages=messages,
        created_at=created_at,
        updated_at=updated_at or created_at,
    )


class GeminiParser:
    """Parser for Gemini AI Studio prompt documents."""

    provider = Provider.GEMINI
    supported_versions = (1,)

    def parse(self, raw: bytes) -> list[Conversation]:
        payload = decode_json(self.provider, raw)
        items = split_batch(self.provider, payload, supported=self.supported_versions, is_conversation=looks_like)
        conversations = [parse_conversation(item, where=f"conversations[{i}]") for i, item in enumerate(items)]
        logger.debug("parsed export", provider=str(self.provider), conversations=len(conversations))
        return conversations


__all__ = ["GeminiParser", "looks_like", "parse_conversation", "prompt_identity"]
