from __future__ import annotations

from typing import Any

from llm_unify.errors import MissingRequiredField
from llm_unify.lib.log import get_logger
from llm_unify.lib.models import Conversation, Message
from llm_unify.sources.providers.copilot import CopilotConversation
from llm_unify.types import Provider

from .base import decode_json, optional_timestamp, require_role, require_timestamp, split_batch, validate_model

logger = get_logger(__name__)


def looks_like(payload: dict[str, Any]) -> bool:
    return isinstance(payload.get("messages"), list)


def parse_conversation(payload: dict[str, Any], *, where: str) -> Conversation:
    conv = validate_model(Provider.COPILOT, CopilotConversation, payload, where=where)
    messages: list[Message] = []
    for index, msg in enumerate(conv.messages):
        field = f"{where}.messages[{index}]"
        if msg.author_role is None:
            raise MissingRequiredField(str(Provider.COPILOT), f"{field}.author")
        body = msg.body
        if body is None:
            raise MissingRequiredField(str(Provider.COPILOT), f"{field}.text")
        if not body.strip():
            continue
        messages.append(
            Message(
                role=require_role(Provider.COPILOT, msg.author_role, field=f"{field}.author"),
                content=body,
                timestamp=optional_timestamp(Provider.COPILOT, msg.createdAt, field=f"{field}.createdAt"),
            )
        )
    return Conversation(
        id=Conversation.make_id(Provider.COPILOT, conv.id),
        provider=Provider.COPILOT,
        title=conv.title,
        messages=messages,
        created_at=require_timestamp(Provider.COPILOT, conv.createdAt, field=f"{where}.createdAt"),
        updated_at=require_timestamp(Provider.COPILOT, conv.updatedAt, field=f"{where}.updatedAt"),
    )


class CopilotParser:
    """Parser for Microsoft Copilot conversation exports."""

    provider = Provider.COPILOT
    supported_versions = (1,)

    def parse(self, raw: bytes) -> list[Conversation]:
        payload = decode_json(self.provider, raw)
        items = split_batch(self.provider, payload, supported=self.supported_versions, is_conversation=looks_like)
        conversations = [parse_conversation(item, where=f"conversations[{i}]") for i, item in enumerate(items)]
        logger.debug("parsed export", provider=str(self.provider), conversations=len(conversations))
        return conversations


__all__ = ["CopilotParser", "looks_like", "parse_conversation"]
