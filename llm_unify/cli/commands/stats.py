"""Stats command."""

from __future__ import annotations

import click

from llm_unify.cli.helpers import run
from llm_unify.cli.types import AppEnv
from llm_unify.lib.json import dumps
from llm_unify.lib.stats import ArchiveStats


@click.command("stats")
@click.option("--json", "json_output", is_flag=True, help="Output JSON")
@click.pass_obj
def stats_command(env: AppEnv, json_output: bool) -> None:
    """Totals and per-provider conversation counts."""
    stats = ArchiveStats.from_conversations(run("stats", env.repository.list()))
    if json_output:
        click.echo(dumps(stats.to_dict(), pretty=True))
        return
    env.console.print(f"Total conversations: {stats.total_conversations}")
    env.console.print(f"Total messages: {stats.total_messages}")
    env.console.print()
    env.console.print("By provider:")
    for provider, count in stats.providers.items():
        env.console.print(f"  {provider}: {count}")
