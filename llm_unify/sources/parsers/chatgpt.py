from __future__ import annotations

from typing import Any

from llm_unify.errors import MissingRequiredField
from llm_unify.lib.log import get_logger
from llm_unify.lib.models import Conversation, Message
from llm_unify.lib.timestamps import parse_timestamp
from llm_unify.sources.providers.chatgpt import ChatGPTConversation, ChatGPTMessage
from llm_unify.types import Provider

from .base import (
    BranchNode,
    decode_json,
    flatten_branches,
    require_role,
    require_timestamp,
    split_batch,
    validate_model,
)

logger = get_logger(__name__)

UNTITLED = "Untitled"


def looks_like(payload: dict[str, Any]) -> bool:
    return isinstance(payload.get("mapping"), dict)


def _branch_nodes(conv: ChatGPTConversation) -> list[BranchNode[ChatGPTMessage | None]]:
    nodes: list[BranchNode[ChatGPTMessage | None]] = []
    for key, node in conv.mapping.items():
        message = node.message
        timestamp = message.create_time if message is not None else None
        nodes.append(BranchNode(node_id=key, parent_id=node.parent, timestamp=timestamp, item=message))
    return nodes


def extract_messages(conv: ChatGPTConversation, *, where: str) -> list[Message]:
    """Flatten the mapping tree and convert its visible turns."""
    messages: list[Message] = []
    path = flatten_branches(Provider.CHATGPT, _branch_nodes(conv))
    for index, msg in enumerate(path):
        if msg is None or msg.content is None or msg.is_hidden:
            continue
        text = msg.content.text_content()
        if not text.strip():
            continue
        role = require_role(Provider.CHATGPT, msg.author.role, field=f"{where}.mapping[{index}].author.role")
        messages.append(Message(role=role, content=text, timestamp=parse_timestamp(msg.create_time)))
    return messages


def parse_conversation(payload: dict[str, Any], *, where: str) -> Conversation:
    conv = validate_model(Provider.CHATGPT, ChatGPTConversation, payload, where=where)
    source_id = conv.source_id
    if not source_id:
        raise MissingRequiredField(str(Provider.CHATGPT), f"{where}.conversation_id")
    return Conversation(
        id=Conversation.make_id(Provider.CHATGPT, source_id),
        provider=Provider.CHATGPT,
        title=conv.title or UNTITLED,
        messages=extract_messages(conv, where=where),
        created_at=require_timestamp(Provider.CHATGPT, conv.create_time, field=f"{where}.create_time"),
        updated_at=require_timestamp(Provider.CHATGPT, conv.update_time, field=f"{where}.update_time"),
    )


class ChatGPTParser:
    """Parser for ChatGPT ``conversations.json`` exports."""

    provider = Provider.CHATGPT
    supported_versions = (1,)

    def parse(self, raw: bytes) -> list[Conversation]:
        payload = decode_json(self.provider, raw)
        items = split_batch(self.provider, payload, supported=self.supported_versions, is_conversation=looks_like)
        conversations = [parse_conversation(item, where=f"conversations[{i}]") for i, item in enumerate(items)]
        logger.debug("parsed export", provider=str(self.provider), conversations=len(conversations))
        return conversations


__all__ = ["ChatGPTParser", "extract_messages", "looks_like", "parse_conversation"]
