"""CLI helper functions."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, NoReturn, TypeVar, overload

from llm_unify.errors import LlmUnifyError
from llm_unify.types import Provider

T = TypeVar("T")


def fail(command: str, message: str) -> NoReturn:
    raise SystemExit(f"{command}: {message}")


def run(command: str, coro: Coroutine[Any, Any, T]) -> T:
    """Drive one async operation to completion, reporting domain errors as `fail`."""
    try:
        return asyncio.run(coro)
    except LlmUnifyError as exc:
        fail(command, str(exc))


@overload
def parse_provider(command: str, value: str) -> Provider: ...
@overload
def parse_provider(command: str, value: None) -> None: ...
@overload
def parse_provider(command: str, value: str | None) -> Provider | None: ...


def parse_provider(command: str, value: str | None) -> Provider | None:
    if value is None:
        return None
    try:
        return Provider.from_string(value)
    except LlmUnifyError as exc:
        fail(command, str(exc))
