"""TUI command."""

from __future__ import annotations

import click

from llm_unify.cli.helpers import parse_provider
from llm_unify.cli.types import AppEnv


@click.command("tui")
@click.option("--provider", help="Only browse this provider's conversations")
@click.pass_obj
def tui_command(env: AppEnv, provider: str | None) -> None:
    """Browse conversations interactively."""
    from llm_unify.tui.app import ConversationBrowser

    selected = parse_provider("tui", provider)
    ConversationBrowser(env.repository, env.search_engine, provider=selected).run()
