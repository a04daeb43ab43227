"""orjson wrappers.

Two encodings are used across the project:

- ``dumps(..., pretty=True)``: 2-space indented, sorted keys. Exports,
  backup sidecars and ``stats --json`` are written this way.
- ``canonical``: compact and key-sorted bytes, the input to content hashes.
  Equal documents always produce equal bytes.
"""

from __future__ import annotations

from typing import Any

import orjson

# Subclass of json.JSONDecodeError (and so of ValueError); carries ``pos``.
JSONDecodeError = orjson.JSONDecodeError

_PRETTY = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS


def dumps(obj: Any, *, pretty: bool = False) -> str:
    return orjson.dumps(obj, option=_PRETTY if pretty else None).decode("utf-8")


def canonical(obj: Any) -> bytes:
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS)


def loads(obj: str | bytes) -> Any:
    return orjson.loads(obj)


__all__ = ["JSONDecodeError", "canonical", "dumps", "loads"]
