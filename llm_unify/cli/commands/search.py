"""Search command."""

from __future__ import annotations

import click
from rich.markup import escape

from llm_unify.cli.helpers import parse_provider, run
from llm_unify.cli.types import AppEnv

HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"


@click.command("search")
@click.argument("query")
@click.option("--limit", "-n", type=click.IntRange(min=1), help="Maximum number of hits")
@click.option("--provider", help="Only search this provider's conversations")
@click.pass_obj
def search_command(env: AppEnv, query: str, limit: int | None, provider: str | None) -> None:
    """Rank conversations by relevance to QUERY."""
    selected = parse_provider("search", provider)
    hits = run("search", env.search_engine.search(query, limit=limit, provider=selected))
    if not hits:
        env.console.print("No results.")
        return
    for rank, hit in enumerate(hits, start=1):
        env.console.print(
            f"{rank}. Conversation: {escape(hit.conversation_id)} "
            f"[dim]({escape(hit.title)}, score {hit.score:.3f})[/dim]"
        )
        env.console.print(f"   {escape(hit.highlighted(HIGHLIGHT_OPEN, HIGHLIGHT_CLOSE))}")
        env.console.print()
