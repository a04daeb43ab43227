"""llm-unify error hierarchy.

All project exceptions inherit from LlmUnifyError, enabling:
- ``except LlmUnifyError`` at top-level boundaries (CLI, TUI)
- Fine-grained catches deeper in the stack (``except MissingRequiredField``)

Hierarchy:
    LlmUnifyError
    ├── UnknownProvider
    ├── ParseError                      # kind: ParseErrorKind
    │   ├── MissingRequiredField
    │   ├── UnsupportedFormatVersion
    │   ├── TruncatedInput
    │   └── MalformedStructure
    ├── StorageError
    │   └── BackupError
    └── IndexInconsistency
"""

from __future__ import annotations

from enum import Enum


class LlmUnifyError(Exception):
    """Base class for all llm-unify errors."""


class UnknownProvider(LlmUnifyError):
    """Provider name is not one of the supported providers."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown provider: {name}")
        self.name = name


class ParseErrorKind(str, Enum):
    MISSING_REQUIRED_FIELD = "missing-required-field"
    UNSUPPORTED_SCHEMA_VERSION = "unsupported-schema-version"
    TRUNCATED_INPUT = "truncated-input"
    MALFORMED_STRUCTURE = "malformed-structure"

    def __str__(self) -> str:
        return self.value


class ParseError(LlmUnifyError):
    """Export bytes do not match the provider schema.

    Raised for the whole batch: a parser never returns partial results.
    """

    kind: ParseErrorKind = ParseErrorKind.MALFORMED_STRUCTURE

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.detail = message


class MissingRequiredField(ParseError):
    kind = ParseErrorKind.MISSING_REQUIRED_FIELD

    def __init__(self, provider: str, field: str) -> None:
        super().__init__(provider, f"missing required field '{field}'")
        self.field = field


class UnsupportedFormatVersion(ParseError):
    kind = ParseErrorKind.UNSUPPORTED_SCHEMA_VERSION

    def __init__(self, provider: str, version: object, supported: tuple[int, ...]) -> None:
        known = ", ".join(str(v) for v in supported)
        super().__init__(provider, f"unsupported format version {version!r} (supported major versions: {known})")
        self.version = version
        self.supported = supported


class TruncatedInput(ParseError):
    kind = ParseErrorKind.TRUNCATED_INPUT


class MalformedStructure(ParseError):
    kind = ParseErrorKind.MALFORMED_STRUCTURE


class StorageError(LlmUnifyError):
    """I/O failure, corruption or lock contention in the storage layer."""


class BackupError(StorageError):
    """Backup snapshot or its metadata failed verification."""


class IndexInconsistency(LlmUnifyError):
    """Search postings disagree with stored message content."""


__all__ = [
    "LlmUnifyError",
    "UnknownProvider",
    "ParseErrorKind",
    "ParseError",
    "MissingRequiredField",
    "UnsupportedFormatVersion",
    "TruncatedInput",
    "MalformedStructure",
    "StorageError",
    "BackupError",
    "IndexInconsistency",
]
