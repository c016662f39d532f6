from __future__ import annotations

import click

from gitdir.cli.common import cli_error_handler, open_repository
from gitdir.cli.context import CLIContext, async_command
from gitdir.cli.output import OutputFormat, format_json, format_table, tag_to_dict
from gitdir.exceptions import GitError
from gitdir.models import SHORT_SHA_LEN


@click.command()
@click.pass_context
@async_command
async def branches(ctx: click.Context) -> None:
    """List branches with their tip commits.

    The current branch is marked with an asterisk.
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]

    with cli_error_handler():
        git_dir = await open_repository(cli_ctx)
        refs = await git_dir.branch_references()
        try:
            current = (await git_dir.current_branch()).branch_name
        except GitError:
            # detached or unborn HEAD: nothing to mark
            current = None

        rows = [
            [
                "*" if ref.branch_name == current else "",
                ref.branch_name,
                ref.sha[:SHORT_SHA_LEN],
            ]
            for ref in refs
        ]
        click.echo(format_table(["", "Branch", "Sha"], rows))


@click.command()
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
async def tags(ctx: click.Context, fmt: str) -> None:
    """List annotated tags."""
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]

    with cli_error_handler():
        git_dir = await open_repository(cli_ctx)
        found = sorted(await git_dir.tags(), key=lambda t: t.tag)

        if fmt == OutputFormat.JSON.value:
            click.echo(format_json([tag_to_dict(t) for t in found]))
            return

        rows = [
            [t.tag, t.object_sha[:SHORT_SHA_LEN], t.message.split("\n", 1)[0]]
            for t in found
        ]
        click.echo(format_table(["Tag", "Object", "Message"], rows))
