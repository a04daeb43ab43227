"""CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError

from llm_unify.cli.commands.conversations import delete_command, export_command, list_command, show_command
from llm_unify.cli.commands.database import (
    backup_command,
    init_command,
    reindex_command,
    restore_command,
    schema_command,
    validate_command,
)
from llm_unify.cli.commands.import_cmd import import_command, load_command
from llm_unify.cli.commands.search import search_command
from llm_unify.cli.commands.stats import stats_command
from llm_unify.cli.commands.tui import tui_command
from llm_unify.cli.helpers import fail
from llm_unify.cli.types import AppEnv
from llm_unify.config import load_settings
from llm_unify.export import EXPORT_FORMAT_VERSION
from llm_unify.lib.log import bind_context, configure_logging
from llm_unify.storage.backends.schema import SCHEMA_VERSION
from llm_unify.storage.backup import BACKUP_FORMAT_VERSION
from llm_unify.version import LLM_UNIFY_VERSION


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--database",
    "-d",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Database file (default: $LLM_UNIFY_DATABASE or the XDG data directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug events to stderr")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, database: Path | None, verbose: bool, json_logs: bool) -> None:
    """Unify, store and search conversations exported from LLM chat apps."""
    try:
        settings = load_settings(database=database, json_logs=json_logs or None)
    except ValidationError as exc:
        fail("config", str(exc))
    configure_logging(verbose=verbose, json_logs=settings.json_logs)
    bind_context(database=str(settings.database))
    ctx.obj = AppEnv(settings=settings)


@cli.command("version")
@click.pass_obj
def version_command(env: AppEnv) -> None:
    """Show version information."""
    env.console.print(f"llm-unify v{LLM_UNIFY_VERSION}")
    env.console.print(f"Schema version: {SCHEMA_VERSION}")
    env.console.print(f"Backup format: {BACKUP_FORMAT_VERSION}")
    env.console.print(f"Export format: {EXPORT_FORMAT_VERSION}")


for _command in (
    init_command,
    schema_command,
    import_command,
    load_command,
    list_command,
    show_command,
    search_command,
    delete_command,
    export_command,
    stats_command,
    validate_command,
    reindex_command,
    backup_command,
    restore_command,
    tui_command,
):
    cli.add_command(_command)


def main() -> None:
    cli()


__all__ = ["cli", "main"]
