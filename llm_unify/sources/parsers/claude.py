from __future__ import annotations

from typing import Any

from llm_unify.errors import MissingRequiredField
from llm_unify.lib.log import get_logger
from llm_unify.lib.models import Conversation, Message
from llm_unify.sources.providers.claude import ROOT_PARENT_UUID, ClaudeChatMessage, ClaudeConversation
from llm_unify.types import Provider

from .base import (
    BranchNode,
    decode_json,
    flatten_branches,
    optional_timestamp,
    require_role,
    require_timestamp,
    split_batch,
    validate_model,
)

logger = get_logger(__name__)


def looks_like(payload: dict[str, Any]) -> bool:
    return isinstance(payload.get("chat_messages"), list)


def _linearize(conv: ClaudeConversation, *, where: str) -> list[ClaudeChatMessage]:
    if not conv.is_branched:
        return list(conv.chat_messages)
    nodes: list[BranchNode[ClaudeChatMessage]] = []
    for index, msg in enumerate(conv.chat_messages):
        created = optional_timestamp(Provider.CLAUDE, msg.created_at, field=f"{where}.chat_messages[{index}].created_at")
        parent = msg.parent_message_uuid
        nodes.append(
            BranchNode(
                node_id=msg.uuid,
                parent_id=None if parent in (None, ROOT_PARENT_UUID) else parent,
                timestamp=created.timestamp() if created is not None else None,
                item=msg,
            )
        )
    return flatten_branches(Provider.CLAUDE, nodes)


def parse_conversation(payload: dict[str, Any], *, where: str) -> Conversation:
    conv = validate_model(Provider.CLAUDE, ClaudeConversation, payload, where=where)
    messages: list[Message] = []
    for index, msg in enumerate(_linearize(conv, where=where)):
        field = f"{where}.chat_messages[{index}]"
        if not msg.has_text:
            raise MissingRequiredField(str(Provider.CLAUDE), f"{field}.text")
        text = msg.text_content()
        if not text.strip():
            continue
        messages.append(
            Message(
                role=require_role(Provider.CLAUDE, msg.sender, field=f"{field}.sender"),
                content=text,
                timestamp=optional_timestamp(Provider.CLAUDE, msg.created_at, field=f"{field}.created_at"),
            )
        )
    return Conversation(
        id=Conversation.make_id(Provider.CLAUDE, conv.uuid),
        provider=Provider.CLAUDE,
        title=conv.name,
        messages=messages,
        created_at=require_timestamp(Provider.CLAUDE, conv.created_at, field=f"{where}.created_at"),
        updated_at=require_timestamp(Provider.CLAUDE, conv.updated_at, field=f"{where}.updated_at"),
    )


class ClaudeParser:
    """Parser for claude.ai ``conversations.json`` exports."""

    provider = Provider.CLAUDE
    supported_versions = (1,)

    def parse(self, raw: bytes) -> list[Conversation]:
        payload = decode_json(self.provider, raw)
        items = split_batch(self.provider, payload, supported=self.supported_versions, is_conversation=looks_like)
        conversations = [parse_conversation(item, where=f"conversations[{i}]") for i, item in enumerate(items)]
        logger.debug("parsed export", provider=str(self.provider), conversations=len(conversations))
        return conversations


__all__ = ["ClaudeParser", "looks_like", "parse_conversation"]
