"""Configuration using Pydantic Settings for automatic env var support."""
from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from llm_unify.paths import default_db_path


class Settings(BaseSettings):
    """Runtime settings.

    Every field can be overridden with an ``LLM_UNIFY_`` environment variable,
    e.g. ``LLM_UNIFY_DATABASE=/tmp/archive.db``.
    """

    database: Path = Field(default_factory=default_db_path)
    search_limit: int = Field(default=10, ge=1)
    snippet_length: int = Field(default=200, ge=40)
    json_logs: bool = Field(default=False)

    @field_validator("database", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    model_config = SettingsConfigDict(env_prefix="LLM_UNIFY_")


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, letting explicit values win."""
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


__all__ = ["Settings", "load_settings"]
