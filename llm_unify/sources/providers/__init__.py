"""Provider-specific typed models for parse-don't-validate pattern."""

from llm_unify.sources.providers.chatgpt import ChatGPTConversation
from llm_unify.sources.providers.claude import ClaudeConversation
from llm_unify.sources.providers.copilot import CopilotConversation
from llm_unify.sources.providers.gemini import GeminiPrompt

__all__ = [
    "ChatGPTConversation",
    "ClaudeConversation",
    "CopilotConversation",
    "GeminiPrompt",
]
