"""Provider-specific parsers: export bytes → unified Conversation list."""

from __future__ import annotations

from llm_unify.types import Provider

from .base import ConversationParser
from .chatgpt import ChatGPTParser
from .claude import ClaudeParser
from .copilot import CopilotParser
from .gemini import GeminiParser

PARSERS: dict[Provider, ConversationParser] = {
    Provider.CHATGPT: ChatGPTParser(),
    Provider.CLAUDE: ClaudeParser(),
    Provider.GEMINI: GeminiParser(),
    Provider.COPILOT: CopilotParser(),
}


def get_parser(provider: Provider | str) -> ConversationParser:
    """Return the parser for a provider; names are resolved via Provider.from_string."""
    if not isinstance(provider, Provider):
        provider = Provider.from_string(provider)
    return PARSERS[provider]


__all__ = [
    "ConversationParser",
    "ChatGPTParser",
    "ClaudeParser",
    "CopilotParser",
    "GeminiParser",
    "PARSERS",
    "get_parser",
]
