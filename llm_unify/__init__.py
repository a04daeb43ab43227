"""llm-unify - one searchable archive for LLM chat exports.

Parses conversation exports from ChatGPT, Claude, Gemini and Copilot into a
single model, stores them in SQLite and ranks them by keyword relevance.

Example:
    from llm_unify import ConversationRepository, SearchEngine, get_parser

    conversations = get_parser("claude").parse(raw_bytes)
    async with ConversationRepository(db_path) as repo:
        for conv in conversations:
            await repo.save(conv)
        for hit in await SearchEngine(repo.backend).search("code review"):
            print(hit.conversation_id, hit.snippet)
"""

from llm_unify.errors import LlmUnifyError, ParseError, StorageError, UnknownProvider
from llm_unify.lib.models import Conversation, Message
from llm_unify.lib.roles import Role
from llm_unify.sources import get_parser
from llm_unify.storage.repository import ConversationRepository
from llm_unify.storage.search import SearchEngine, SearchHit
from llm_unify.types import Provider
from llm_unify.version import LLM_UNIFY_VERSION

__version__ = LLM_UNIFY_VERSION

__all__ = [
    "Conversation",
    "ConversationRepository",
    "LlmUnifyError",
    "Message",
    "ParseError",
    "Provider",
    "Role",
    "SearchEngine",
    "SearchHit",
    "StorageError",
    "UnknownProvider",
    "get_parser",
]
