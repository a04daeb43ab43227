"""Export sources: provider models and parsers."""

from llm_unify.sources.parsers import ConversationParser, get_parser

__all__ = ["ConversationParser", "get_parser"]
