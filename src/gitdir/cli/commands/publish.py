from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import click

from gitdir.cli.common import cli_error_handler, open_repository
from gitdir.cli.context import CLIContext, async_command
from gitdir.workflow import Populator


def copy_tree_populator(source: Path) -> Populator:
    """Build a populator that copies ``source`` into the work tree.

    ``.git`` entries in ``source`` are not copied.
    """

    async def populate(directory: Path) -> None:
        await asyncio.to_thread(
            shutil.copytree,
            source,
            directory,
            dirs_exist_ok=True,
            ignore=shutil.ignore_patterns(".git"),
        )

    return populate


@click.command()
@click.argument("branch")
@click.argument(
    "source_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("-m", "--message", required=True, help="Commit message.")
@click.pass_context
@async_command
async def publish(
    ctx: click.Context, branch: str, source_dir: Path, message: str
) -> None:
    """Replace the content of BRANCH with a copy of SOURCE_DIR.

    The repository's own work tree is never touched. Nothing is committed
    when SOURCE_DIR matches the branch already.

    Examples:
        gitdir publish gh-pages build/html -m "Publish docs"
    """
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]

    with cli_error_handler():
        git_dir = await open_repository(cli_ctx)
        commit = await git_dir.update_branch(
            branch, copy_tree_populator(source_dir.absolute()), message
        )
        if commit is None:
            click.echo(f"Branch {branch} is unchanged.")
        else:
            click.echo(commit.sha)
