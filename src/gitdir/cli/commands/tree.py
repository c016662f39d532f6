from __future__ import annotations

import click

from gitdir.cli.common import cli_error_handler, open_repository
from gitdir.cli.context import CLIContext, async_command


@click.command("ls-tree")
@click.argument("treeish")
@click.option(
    "-d",
    "--dirs-only",
    is_flag=True,
    default=False,
    help="Only list subtrees.",
)
@click.option(
    "--path",
    "path",
    default=None,
    help="Restrict the listing to PATH.",
)
@click.pass_context
@async_command
async def ls_tree(
    ctx: click.Context, treeish: str, dirs_only: bool, path: str | None
) -> None:
    """List the entries of TREEISH, one per line."""
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]

    with cli_error_handler():
        git_dir = await open_repository(cli_ctx)
        entries = await git_dir.list_tree(treeish, sub_trees_only=dirs_only, path=path)
        for entry in entries:
            click.echo(f"{entry.mode} {entry.type} {entry.sha}\t{entry.path}")
