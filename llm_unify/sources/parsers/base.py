"""Shared parser plumbing: the parser protocol, decoding, validation, flattening.

Every provider module exposes a parser object satisfying `ConversationParser`.
The helpers here turn raw bytes into validated pydantic models and map
every failure onto one `ParseError` kind, so no provider invents its own
error handling.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from llm_unify.errors import (
    MalformedStructure,
    MissingRequiredField,
    TruncatedInput,
    UnsupportedFormatVersion,
)
from llm_unify.lib.json import JSONDecodeError, loads
from llm_unify.lib.models import Conversation
from llm_unify.lib.roles import Role
from llm_unify.lib.timestamps import parse_timestamp
from llm_unify.types import Provider

ModelT = TypeVar("ModelT", bound=BaseModel)
ItemT = TypeVar("ItemT")

# Exports without a declared version are the provider's native format.
IMPLICIT_MAJOR_VERSION = 1


@runtime_checkable
class ConversationParser(Protocol):
    """Decodes one provider's export bytes into unified conversations.

    Implementations are pure: no I/O beyond the input buffer, and either the
    whole batch parses or a `ParseError` is raised.
    """

    provider: Provider
    supported_versions: tuple[int, ...]

    def parse(self, raw: bytes) -> list[Conversation]:
        ...


def decode_json(provider: Provider | str, raw: bytes) -> Any:
    if not raw or not raw.strip():
        raise TruncatedInput(str(provider), "empty input")
    try:
        return loads(raw)
    except JSONDecodeError as exc:
        if _looks_truncated(raw, exc):
            raise TruncatedInput(str(provider), f"input ends prematurely ({exc})") from exc
        raise MalformedStructure(str(provider), f"invalid JSON: {exc}") from exc


def _looks_truncated(raw: bytes, exc: JSONDecodeError) -> bool:
    message = str(exc).lower()
    if "trailing" in message:
        return False
    if "eof" in message or "end of data" in message or "unexpected end" in message:
        return True
    return exc.pos >= len(raw.rstrip()) - 1


def major_version(provider: Provider | str, version: object, supported: tuple[int, ...]) -> int:
    """Return the major version of a declared export version, checking support."""
    if version is None:
        major = IMPLICIT_MAJOR_VERSION
    elif isinstance(version, bool):
        raise UnsupportedFormatVersion(str(provider), version, supported)
    elif isinstance(version, int):
        major = version
    elif isinstance(version, (float, str)):
        head = str(version).strip().split(".", 1)[0]
        if not head.isdigit():
            raise UnsupportedFormatVersion(str(provider), version, supported)
        major = int(head)
    else:
        raise UnsupportedFormatVersion(str(provider), version, supported)
    if major not in supported:
        raise UnsupportedFormatVersion(str(provider), version, supported)
    return major


def split_batch(
    provider: Provider,
    payload: Any,
    *,
    supported: tuple[int, ...],
    is_conversation: Callable[[dict[str, Any]], bool],
) -> list[dict[str, Any]]:
    """Return the conversation objects of an export payload.

    Accepts a bare list, a single conversation object, or a versioned
    envelope ``{"version": ..., "conversations": [...]}``. Any other object
    is taken as a single conversation so the provider model reports what
    it lacks, the same as it would inside a list.
    """
    if isinstance(payload, dict):
        if is_conversation(payload):
            items: Any = [payload]
        elif "conversations" in payload:
            major_version(provider, payload.get("version"), supported)
            items = payload["conversations"]
            if not isinstance(items, list):
                raise MalformedStructure(str(provider), "'conversations' must be a list")
        elif "version" in payload:
            # A versioned document we cannot interpret is a version problem first.
            major_version(provider, payload.get("version"), supported)
            raise MissingRequiredField(str(provider), "conversations")
        else:
            items = [payload]
    elif isinstance(payload, list):
        items = payload
    else:
        raise MalformedStructure(str(provider), f"expected a JSON object or array, got {type(payload).__name__}")

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedStructure(str(provider), f"conversations[{index}] is not an object")
    return items


def _format_loc(where: str, loc: Sequence[int | str]) -> str:
    path = where
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path.lstrip(".")


def validate_model(provider: Provider | str, model: type[ModelT], data: object, *, where: str) -> ModelT:
    """Validate provider data, mapping pydantic errors onto parse error kinds."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = exc.errors()
        for err in errors:
            if err["type"] == "missing":
                raise MissingRequiredField(str(provider), _format_loc(where, err["loc"])) from exc
        first = errors[0]
        raise MalformedStructure(str(provider), f"{_format_loc(where, first['loc'])}: {first['msg']}") from exc


def require_timestamp(provider: Provider, value: object, *, field: str) -> datetime:
    if value is None:
        raise MissingRequiredField(str(provider), field)
    parsed = parse_timestamp(value)
    if parsed is None:
        raise MalformedStructure(str(provider), f"{field}: unparseable timestamp {value!r}")
    return parsed


def optional_timestamp(provider: Provider, value: object, *, field: str) -> datetime | None:
    if value is None:
        return None
    return require_timestamp(provider, value, field=field)


def require_role(provider: Provider, value: str | None, *, field: str) -> Role:
    if value is None or not value.strip():
        raise MissingRequiredField(str(provider), field)
    return Role.normalize(value)


@dataclass(frozen=True)
class BranchNode(Generic[ItemT]):
    """One node of a tree-shaped conversation, in source order."""

    node_id: str
    parent_id: str | None
    timestamp: float | None
    item: ItemT


def flatten_branches(provider: Provider, nodes: Sequence[BranchNode[ItemT]]) -> list[ItemT]:
    """Linearize a conversation tree into one root-to-leaf path.

    The path ends at the most recently created leaf. Leaves without a
    timestamp rank below timestamped ones; among equal timestamps the leaf
    encountered last in source order wins. Parent references to unknown
    nodes end the walk (that node is a root).
    """
    if not nodes:
        return []

    by_id: dict[str, BranchNode[ItemT]] = {}
    for node in nodes:
        if node.node_id in by_id:
            raise MalformedStructure(str(provider), f"duplicate node id '{node.node_id}'")
        by_id[node.node_id] = node

    parents = {node.parent_id for node in nodes if node.parent_id is not None and node.parent_id in by_id}
    best: BranchNode[ItemT] | None = None
    best_key: tuple[bool, float] = (False, 0.0)
    for node in nodes:
        if node.node_id in parents:
            continue
        key = (node.timestamp is not None, node.timestamp if node.timestamp is not None else 0.0)
        if best is None or key >= best_key:
            best, best_key = node, key
    if best is None:
        raise MalformedStructure(str(provider), "conversation tree has no leaf node")

    path: list[ItemT] = []
    seen: set[str] = set()
    current: BranchNode[ItemT] | None = best
    while current is not None:
        if current.node_id in seen:
            raise MalformedStructure(str(provider), f"cycle in conversation tree at node '{current.node_id}'")
        seen.add(current.node_id)
        path.append(current.item)
        current = by_id.get(current.parent_id) if current.parent_id is not None else None
    path.reverse()
    return path


__all__ = [
    "ConversationParser",
    "BranchNode",
    "decode_json",
    "major_version",
    "split_batch",
    "validate_model",
    "require_timestamp",
    "optional_timestamp",
    "require_role",
    "flatten_branches",
]
