"""Database maintenance commands: init, schema, validate, reindex, backup, restore."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from llm_unify.cli.helpers import fail, run
from llm_unify.cli.types import AppEnv
from llm_unify.storage.backup import create_backup, restore_backup
from llm_unify.storage.validation import validate_database


@click.command("init")
@click.pass_obj
def init_command(env: AppEnv) -> None:
    """Create the database, or migrate it to the current schema."""
    version = run("init", env.backend.ensure_schema())
    env.console.print(f"Database initialized: {escape(str(env.backend.db_path))}")
    env.console.print(f"Schema version: {version}")


@click.command("schema")
@click.pass_obj
def schema_command(env: AppEnv) -> None:
    """Show the schema version and migration history."""
    history = run("schema", env.backend.schema_history())
    current = history[-1][0] if history else 0
    env.console.print(f"Current schema version: {current}")
    env.console.print("Migration history:")
    for version, description, applied_at in history:
        env.console.print(f"  v{version}  {applied_at}  {escape(description)}")


@click.command("validate")
@click.pass_obj
def validate_command(env: AppEnv) -> None:
    """Check database integrity and search index consistency."""
    report = run("validate", validate_database(env.backend))
    for check in report.checks:
        if check.passed:
            env.console.print(f"[green]✓[/green] {check.name} check passed")
        else:
            env.console.print(f"[red]✗[/red] {check.name} check failed: {escape(check.detail)}")
    if not report.passed:
        env.console.print("[yellow]Hint: run `llm-unify reindex` to rebuild the search index.[/yellow]")
        fail("validate", "Validation FAILED")
    env.console.print("Validation PASSED")


@click.command("reindex")
@click.pass_obj
def reindex_command(env: AppEnv) -> None:
    """Rebuild the search index from the stored messages."""
    postings = run("reindex", env.repository.rebuild_index())
    env.console.print(f"Search index rebuilt: {postings} postings")

@click.command("backup")
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
@click.pass_obj
def backup_command(env: AppEnv, output: Path) -> None:
    """Snapshot the database to OUTPUT with a checksum sidecar."""
    meta = run("backup", create_backup(env.backend, output))
    env.console.print(f"Backup created: {escape(str(output))}")
    env.console.print(f"Checksum: {meta.checksum}")


@click.command("restore")
@click.argument("backup", type=click.Path(path_type=Path, dir_okay=False))
@click.pass_obj
def restore_command(env: AppEnv, backup: Path) -> None:
    """Replace the database with a verified backup."""
    meta = run("restore", restore_backup(env.backend, backup))
    env.console.print(f"Checksum verified: {meta.checksum}")
    env.console.print(f"Database restored from: {escape(str(backup))}")
