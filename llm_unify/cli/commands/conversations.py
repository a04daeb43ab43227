"""Browsing commands: list, show, delete, export."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from llm_unify.cli.helpers import fail, parse_provider, run
from llm_unify.cli.types import AppEnv
from llm_unify.export import export_conversation
from llm_unify.lib.models import Conversation


@click.command("list")
@click.option("--provider", help="Only conversations from this provider")
@click.pass_obj
def list_command(env: AppEnv, provider: str | None) -> None:
    """List stored conversations, oldest first."""
    selected = parse_provider("list", provider)
    conversations = run("list", env.repository.list(selected))
    if not conversations:
        env.console.print("No conversations found.")
        return
    for conv in conversations:
        env.console.print(
            f"{escape(conv.id)} | {conv.provider} | {escape(conv.title)} | {conv.message_count} messages"
        )


async def _find(env: AppEnv, text: str) -> Conversation | None:
    resolved = await env.repository.resolve_id(text)
    if resolved is None:
        return None
    return await env.repository.find_by_id(resolved)


@click.command("show")
@click.argument("conversation_id")
@click.pass_obj
def show_command(env: AppEnv, conversation_id: str) -> None:
    """Print a conversation with all of its messages."""
    conv = run("show", _find(env, conversation_id))
    if conv is None:
        fail("show", f"Conversation not found: {conversation_id}")
    env.console.print(f"[bold]Conversation:[/bold] {escape(conv.title)}")
    env.console.print(f"[bold]Provider:[/bold] {conv.provider}")
    env.console.print(f"[bold]Messages:[/bold] {conv.message_count}")
    for message in conv.messages:
        env.console.print()
        env.console.print(f"[cyan]{escape(f'[{message.role}]')}[/cyan] {escape(message.content)}")


@click.command("delete")
@click.argument("conversation_id")
@click.pass_obj
def delete_command(env: AppEnv, conversation_id: str) -> None:
    """Delete a conversation and everything indexed for it.

    Takes a full id or a bare provider-local id; prefixes are not expanded.
    """

    async def _delete() -> str:
        target = await env.repository.resolve_id(conversation_id, prefixes=False) or conversation_id
        await env.repository.delete(target)
        return target

    deleted = run("delete", _delete())
    env.console.print(f"Deleted conversation: {escape(deleted)}")


@click.command("export")
@click.argument("conversation_id")
@click.option("--output", "-o", type=click.Path(path_type=Path, dir_okay=False), help="Write to file instead of stdout")
@click.option("--raw", is_flag=True, help="Emit the bare conversation without the version envelope")
@click.pass_obj
def export_command(env: AppEnv, conversation_id: str, output: Path | None, raw: bool) -> None:
    """Export one conversation as JSON."""
    conv = run("export", _find(env, conversation_id))
    if conv is None:
        fail("export", f"Conversation not found: {conversation_id}")
    document = export_conversation(conv, raw=raw)
    if output is None:
        click.echo(document)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(document + "\n", encoding="utf-8")
    env.console.print(f"Exported {escape(conv.id)} to {escape(str(output))}")
