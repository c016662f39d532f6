from __future__ import annotations

import click

from gitdir.cli.common import cli_error_handler, open_repository
from gitdir.cli.context import CLIContext, async_command
from gitdir.cli.output import OutputFormat, commit_to_dict, format_json


@click.command("log")
@click.argument("branch", default="HEAD")
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)
@click.pass_context
@async_command
async def log(ctx: click.Context, branch: str, fmt: str) -> None:
    """Show the commits reachable from BRANCH (default: HEAD).

    Examples:
        gitdir log
        gitdir log gh-pages --format json
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]

    with cli_error_handler():
        git_dir = await open_repository(cli_ctx)
        commits = await git_dir.get_commits(branch)

        if fmt == OutputFormat.JSON.value:
            click.echo(format_json([commit_to_dict(c) for c in commits.values()]))
            return

        for commit in commits.values():
            click.echo(
                f"{commit.short_sha} {commit.committer.timestamp:%Y-%m-%d} "
                f"{commit.author.name}: {commit.summary}"
            )
