"""Shared filesystem paths for llm-unify."""

from __future__ import annotations

import os
from pathlib import Path


def _xdg_path(env_var: str, fallback: Path) -> Path:
    raw = os.environ.get(env_var)
    if raw:
        return Path(raw).expanduser()
    return fallback


def data_home() -> Path:
    """Return the llm-unify data directory.

    Read at call time (not import time) so tests can monkeypatch XDG_DATA_HOME.
    """
    return _xdg_path("XDG_DATA_HOME", Path.home() / ".local/share") / "llm-unify"


def default_db_path() -> Path:
    return data_home() / "llm-unify.db"


__all__ = ["data_home", "default_db_path"]
