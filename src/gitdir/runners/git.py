"""Validated git invocation on top of CommandRunner.

Every git process gitdir starts goes through ``run_git``. The argument
vector is first turned into a ``GitInvocation``, which rejects anything that
would let a caller redirect git at a different repository or work tree, so
this is the single place that guard lives.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from gitdir.config import GitDirConfig, get_config
from gitdir.exceptions import (
    CommandTimeoutError,
    GitCommandError,
    GitNotFoundError,
    InvalidArgumentError,
    PushRejectedError,
)
from gitdir.logging import get_logger
from gitdir.runners.command import CommandRunner
from gitdir.runners.models import CommandResult

__all__ = [
    "FORBIDDEN_ARG_PREFIXES",
    "GIT_DIR_ARG",
    "GitInvocation",
    "WORK_TREE_ARG",
    "run_git",
]

logger = get_logger(__name__)

WORK_TREE_ARG = "--work-tree="
GIT_DIR_ARG = "--git-dir="

#: Directory-override options only the handle itself may emit
FORBIDDEN_ARG_PREFIXES: tuple[str, ...] = (WORK_TREE_ARG, GIT_DIR_ARG)

#: Fixed locale so stderr text can be matched reliably
_GIT_ENV: dict[str, str] = {
    "LC_ALL": "C",
    "GIT_TERMINAL_PROMPT": "0",
}

#: Status line git prints when the remote ref moved under a non-force push.
#: Hook, permission and checked-out-branch refusals print "[remote rejected]".
_NON_FAST_FORWARD = re.compile(
    r"^\s*!\s+\[rejected\]\s.*\((?:fetch first|non-fast-forward)\)\s*$",
    re.MULTILINE,
)


def _validate_args(args: Sequence[str]) -> tuple[str, ...]:
    if isinstance(args, str):
        raise InvalidArgumentError(
            "args must be a sequence of arguments, not a string", argument="args"
        )
    validated = tuple(args)
    for arg in validated:
        if not isinstance(arg, str) or not arg:
            raise InvalidArgumentError(
                f"Arguments cannot be empty or None: {validated!r}", argument="args"
            )
        for prefix in FORBIDDEN_ARG_PREFIXES:
            if prefix in arg:
                raise InvalidArgumentError(
                    f"Arguments cannot contain {prefix!r}: {arg!r}", argument="args"
                )
    return validated


@dataclass(frozen=True, slots=True)
class GitInvocation:
    """A git command that passed validation and is ready to execute.

    Attributes:
        args: Caller arguments, without the executable.
        cwd: Absolute directory git runs in.
        work_tree: Absolute work-tree override, only for scratch handles.
    """

    args: tuple[str, ...]
    cwd: Path
    work_tree: Path | None = None

    @classmethod
    def build(
        cls,
        args: Sequence[str],
        cwd: Path,
        work_tree: Path | None = None,
    ) -> GitInvocation:
        """Validate ``args`` and return an invocation.

        Raises:
            InvalidArgumentError: If any argument is empty or contains a
                directory-override option.
        """
        if not cwd.is_absolute():
            raise InvalidArgumentError(f"cwd must be absolute: {cwd}", argument="cwd")
        if work_tree is not None and not work_tree.is_absolute():
            raise InvalidArgumentError(
                f"work_tree must be absolute: {work_tree}", argument="work_tree"
            )
        return cls(args=_validate_args(args), cwd=cwd, work_tree=work_tree)

    @property
    def subcommand(self) -> str | None:
        return self.args[0] if self.args else None

    def argv(self, executable: str = "git") -> list[str]:
        """Serialize to the full argument vector."""
        prefix = [f"{WORK_TREE_ARG}{self.work_tree}"] if self.work_tree else []
        return [executable, *prefix, *self.args]


def _command_error(invocation: GitInvocation, result: CommandResult) -> GitCommandError:
    stderr = result.stderr.strip()
    name = " ".join(["git", *invocation.args[:1]])
    message = f"{name} failed with exit code {result.returncode}: {stderr}"
    error_cls = GitCommandError
    if invocation.subcommand == "push" and _NON_FAST_FORWARD.search(stderr):
        error_cls = PushRejectedError
    return error_cls(
        message,
        command=result.command,
        returncode=result.returncode,
        stderr=result.stderr,
    )


async def run_git(
    args: Sequence[str],
    *,
    cwd: Path,
    work_tree: Path | None = None,
    check: bool = True,
    config: GitDirConfig | None = None,
) -> CommandResult:
    """Run git with validated arguments and capture its output.

    Args:
        args: Arguments after the executable, e.g. ``["rev-parse", "HEAD"]``.
        cwd: Absolute directory to run in.
        work_tree: Absolute work-tree override (scratch handles only).
        check: Raise GitCommandError on a nonzero exit. Pass False to
            inspect ``returncode`` yourself.
        config: Settings to use. Defaults to the process-wide config.

    Returns:
        The captured CommandResult.

    Raises:
        InvalidArgumentError: Before spawning, if validation fails.
        GitNotFoundError: If the git executable cannot be found.
        CommandTimeoutError: If git exceeded the configured timeout.
        GitCommandError: On a nonzero exit when ``check`` is True.
    """
    invocation = GitInvocation.build(args, cwd, work_tree)
    config = config or get_config()

    runner = CommandRunner(
        cwd=invocation.cwd,
        timeout=config.git.timeout_seconds,
        env={**_GIT_ENV, **config.git.identity_env()},
    )
    argv = invocation.argv(config.git.executable)
    result = await runner.run(argv, max_retries=config.git.max_retries)

    logger.debug(
        "git_command",
        argv=argv,
        cwd=str(invocation.cwd),
        returncode=result.returncode,
        duration_ms=result.duration_ms,
    )

    if result.timed_out:
        raise CommandTimeoutError(
            f"git {invocation.subcommand} timed out after "
            f"{config.git.timeout_seconds}s",
            timeout_seconds=config.git.timeout_seconds,
            command=argv,
        )
    if result.returncode == 127 and result.stderr.startswith("Command not found"):
        raise GitNotFoundError(
            f"Git CLI not found: {config.git.executable}. Please install git."
        )
    if check and not result.success:
        raise _command_error(invocation, result)
    return result
