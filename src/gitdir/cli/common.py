from __future__ import annotations

import contextlib
from collections.abc import Generator

import click

from gitdir.cli.context import CLIContext, ExitCode
from gitdir.cli.output import format_error
from gitdir.exceptions import (
    GitCommandError,
    GitDirError,
    GitError,
    NotARepositoryError,
)
from gitdir.logging import bind_context, get_logger
from gitdir.repository import GitDir


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Context manager for common CLI error handling.

    Handles common error patterns across CLI commands:
    - KeyboardInterrupt: Exit with code 130
    - NotARepositoryError: Suggest -C
    - GitCommandError: Include git's stderr
    - GitError / GitDirError: Format error with message
    - Generic exceptions: Log and format error
    """
    logger = get_logger(__name__)

    try:
        yield
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user.", err=True)
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except NotARepositoryError as e:
        error_msg = format_error(
            e.message,
            suggestion="Run inside a repository or pass -C <repository root>",
        )
        click.echo(error_msg, err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except GitCommandError as e:
        details = [f"Command: {' '.join(e.command)}"] if e.command else []
        details.extend(line for line in e.stderr.strip().splitlines() if line)
        click.echo(format_error(e.message.splitlines()[0], details=details), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except GitError as e:
        error_msg = format_error(
            e.message,
            details=[f"Operation: {e.operation}"] if e.operation else None,
        )
        click.echo(error_msg, err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except GitDirError as e:
        click.echo(format_error(e.message), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:
        logger.exception("Unexpected error in command")
        click.echo(f"Error: {e!s}", err=True)
        raise SystemExit(ExitCode.FAILURE) from e


async def open_repository(cli_ctx: CLIContext) -> GitDir:
    """Open the repository selected by -C, or discover it from the cwd.

    The repository path is bound into the logging context of the running
    command.
    """
    if cli_ctx.repo_path is not None:
        git_dir = await GitDir.from_existing(cli_ctx.repo_path, config=cli_ctx.config)
    else:
        git_dir = await GitDir.from_within_existing(config=cli_ctx.config)
    bind_context(repository=str(git_dir.path))
    return git_dir
