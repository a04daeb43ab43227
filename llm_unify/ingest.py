"""Import provider exports into the repository."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from llm_unify.lib.log import get_logger
from llm_unify.lib.models import Conversation
from llm_unify.sources import get_parser
from llm_unify.storage.repository import ConversationRepository
from llm_unify.types import Provider

logger = get_logger(__name__)


class IngestResult(BaseModel):
    provider: Provider
    parsed: int
    saved: int
    unchanged: int


async def save_all(repository: ConversationRepository, provider: Provider, conversations: list[Conversation]) -> IngestResult:
    saved = 0
    for conv in conversations:
        if await repository.save(conv):
            saved += 1
    result = IngestResult(
        provider=provider,
        parsed=len(conversations),
        saved=saved,
        unchanged=len(conversations) - saved,
    )
    logger.info("import finished", provider=provider.value, parsed=result.parsed, saved=result.saved)
    return result


async def ingest_bytes(repository: ConversationRepository, provider: Provider | str, raw: bytes) -> IngestResult:
    """Parse a whole export, then save its conversations one by one.

    Parsing completes before the first save, so a malformed export writes
    nothing. Each conversation commits on its own.
    """
    parser = get_parser(provider)
    conversations = parser.parse(raw)
    return await save_all(repository, parser.provider, conversations)


async def ingest_file(repository: ConversationRepository, provider: Provider | str, path: Path) -> IngestResult:
    if not isinstance(provider, Provider):
        provider = Provider.from_string(provider)
    return await ingest_bytes(repository, provider, path.read_bytes())


__all__ = ["IngestResult", "ingest_bytes", "ingest_file", "save_all"]
