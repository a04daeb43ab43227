"""Builders for provider export payloads and unified conversations.

Usage:
    from tests.infra.builders import chatgpt_conversation, encode, trip_planning_export

Each builder returns plain JSON-ready dicts shaped like the real export
files, so parser tests exercise the same code path as ``llm-unify import``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from llm_unify.lib.json import dumps
from llm_unify.lib.models import Conversation, Message
from llm_unify.lib.roles import Role
from llm_unify.types import Provider

BASE_EPOCH = 1704067200.0  # 2024-01-01T00:00:00Z
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

TRIP_PLANNING_TURNS = [
    ("user", "Help me with planning a trip to Japan in April."),
    ("assistant", "Sure! For planning a spring trip, consider Tokyo and Kyoto during cherry blossom season."),
    ("user", "What about the budget?"),
    ("assistant", "Budget around 200 dollars per day including hotels and the rail pass."),
]

CODE_REVIEW_TURNS = [
    ("human", "Please review this Python function for bugs."),
    ("assistant", "The loop never terminates when the list is empty; add a guard clause."),
]


def encode(payload: Any) -> bytes:
    return dumps(payload).encode("utf-8")


def _iso(offset_minutes: float) -> str:
    return (BASE_TIME + timedelta(minutes=offset_minutes)).isoformat().replace("+00:00", "Z")


def chatgpt_node(node_id: str, role: str, text: str | None, *, parent: str | None, create_time: float | None) -> dict[str, Any]:
    message = None
    if text is not None:
        message = {
            "id": node_id,
            "author": {"role": role},
            "content": {"content_type": "text", "parts": [text]},
            "create_time": create_time,
            "metadata": {},
        }
    return {"id": node_id, "message": message, "parent": parent, "children": []}


def chatgpt_conversation(
    conv_id: str,
    title: str | None,
    turns: list[tuple[str, str]],
    *,
    create_time: float = BASE_EPOCH,
    update_time: float | None = None,
) -> dict[str, Any]:
    """Linear ChatGPT conversation: a message-less root plus one node per turn."""
    mapping: dict[str, Any] = {"root": chatgpt_node("root", "system", None, parent=None, create_time=None)}
    parent = "root"
    for i, (role, text) in enumerate(turns):
        node_id = f"{conv_id}-n{i}"
        mapping[node_id] = chatgpt_node(node_id, role, text, parent=parent, create_time=create_time + i * 60)
        mapping[parent]["children"].append(node_id)
        parent = node_id
    return {
        "id": conv_id,
        "conversation_id": conv_id,
        "title": title,
        "create_time": create_time,
        "update_time": update_time if update_time is not None else create_time + len(turns) * 60,
        "mapping": mapping,
        "current_node": parent,
    }


def claude_conversation(
    uuid: str,
    name: str,
    turns: list[tuple[str, str]],
    *,
    offset_minutes: float = 24 * 60,
) -> dict[str, Any]:
    return {
        "uuid": uuid,
        "name": name,
        "created_at": _iso(offset_minutes),
        "updated_at": _iso(offset_minutes + len(turns)),
        "chat_messages": [
            {
                "uuid": f"{uuid}-m{i}",
                "sender": sender,
                "text": text,
                "content": [{"type": "text", "text": text}],
                "created_at": _iso(offset_minutes + i),
            }
            for i, (sender, text) in enumerate(turns)
        ],
    }


def gemini_prompt(turns: list[tuple[str, str]], *, prompt_id: str | None = None, title: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "runSettings": {"model": "models/gemini-1.5-pro"},
        "chunkedPrompt": {
            "chunks": [{"role": role, "text": text, "tokenCount": len(text.split())} for role, text in turns],
        },
        "createTime": _iso(2 * 24 * 60),
    }
    if prompt_id is not None:
        payload["id"] = prompt_id
    if title is not None:
        payload["title"] = title
    return payload


def copilot_conversation(conv_id: str, title: str, turns: list[tuple[str, str]]) -> dict[str, Any]:
    return {
        "id": conv_id,
        "title": title,
        "createdAt": _iso(3 * 24 * 60),
        "updatedAt": _iso(3 * 24 * 60 + len(turns)),
        "messages": [
            {"author": author, "text": text, "createdAt": _iso(3 * 24 * 60 + i)}
            for i, (author, text) in enumerate(turns)
        ],
    }


def trip_planning_export() -> bytes:
    return encode([chatgpt_conversation("trip-1", "Trip Planning", TRIP_PLANNING_TURNS)])


def code_review_export() -> bytes:
    return encode([claude_conversation("review-1", "Code Review", CODE_REVIEW_TURNS)])


def make_conversation(
    source_id: str,
    contents: list[str],
    *,
    provider: Provider = Provider.CLAUDE,
    title: str | None = None,
    created_at: datetime | None = BASE_TIME,
    updated_at: datetime | None = None,
) -> Conversation:
    """A unified conversation alternating user/assistant turns."""
    roles = (Role.USER, Role.ASSISTANT)
    return Conversation(
        id=Conversation.make_id(provider, source_id),
        provider=provider,
        title=title or source_id.replace("-", " ").title(),
        messages=[
            Message(role=roles[i % 2], content=text, timestamp=BASE_TIME + timedelta(minutes=i))
            for i, text in enumerate(contents)
        ],
        created_at=created_at,
        updated_at=updated_at if updated_at is not None else created_at,
    )
