"""structlog setup shared by the CLI, the TUI and the tests.

Events go to stderr so command output on stdout stays machine-readable
(``export`` and ``stats --json`` print JSON there). Quiet runs show
warnings only; ``--verbose`` adds the per-operation debug and info events.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor


class _CurrentStderr:
    """Writes to whatever ``sys.stderr`` is at write time.

    Click's test runner swaps the stream per invocation; a logger bound to
    the stream seen at configuration time would write to a closed file.
    """

    def write(self, text: str) -> int:
        return sys.stderr.write(text)

    def flush(self) -> None:
        sys.stderr.flush()


def _renderer(json_logs: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(verbose: bool = False, json_logs: bool = False) -> None:
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info if json_logs else structlog.processors.StackInfoRenderer(),
            _renderer(json_logs),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_CurrentStderr()),  # type: ignore[arg-type]
        cache_logger_on_first_use=False,
    )


def bind_context(**values: Any) -> None:
    """Attach key/values to every event logged afterwards in this context."""
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


__all__ = ["bind_context", "configure_logging", "get_logger"]
