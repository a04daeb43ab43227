"""Import commands: provider exports and single-conversation exports."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from llm_unify.cli.helpers import fail, parse_provider, run
from llm_unify.cli.types import AppEnv
from llm_unify.export import load_export
from llm_unify.ingest import IngestResult, ingest_bytes, save_all
from llm_unify.types import Provider


def _read(command: str, path: Path) -> bytes:
    if not path.is_file():
        fail(command, f"File not found: {path}")
    return path.read_bytes()


@click.command("import")
@click.argument("provider")
@click.argument("file", type=click.Path(path_type=Path, dir_okay=False))
@click.pass_obj
def import_command(env: AppEnv, provider: str, file: Path) -> None:
    """Import a provider export file (chatgpt, claude, gemini, copilot)."""
    resolved = parse_provider("import", provider)
    raw = _read("import", file)
    result: IngestResult = run("import", ingest_bytes(env.repository, resolved, raw))
    env.console.print(f"Imported {result.parsed} conversations from {resolved}")
    if result.unchanged:
        env.console.print(f"[dim]{result.unchanged} already up to date[/dim]")


@click.command("load")
@click.argument("file", type=click.Path(path_type=Path, dir_okay=False))
@click.pass_obj
def load_command(env: AppEnv, file: Path) -> None:
    """Load a conversation previously written by `export`."""
    raw = _read("load", file)

    async def _load() -> tuple[str, str, bool]:
        conversation = load_export(raw)
        result = await save_all(env.repository, Provider(conversation.provider), [conversation])
        return conversation.id, conversation.title, bool(result.saved)

    conversation_id, title, saved = run("load", _load())
    state = "Loaded" if saved else "Unchanged"
    env.console.print(f"{state}: {escape(conversation_id)} ({escape(title)})")
