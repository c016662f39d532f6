from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from gitdir.exceptions.base import GitDirError


class GitError(GitDirError):
    """Exception for git operation failures.

    Attributes:
        message: Human-readable error message.
        operation: Git operation that failed (e.g., "push", "update_branch").
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        """Initialize the GitError.

        Args:
            message: Human-readable error message.
            operation: Git operation that failed.
        """
        self.operation = operation
        super().__init__(message)


class GitCommandError(GitError):
    """Exception raised when git exits with a status the caller did not expect.

    Attributes:
        message: Human-readable error message.
        command: Full argument vector that was executed.
        returncode: Exit code reported by git.
        stderr: Everything git wrote to standard error.
    """

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        """Initialize the GitCommandError.

        Args:
            message: Human-readable error message.
            command: Full argument vector that was executed.
            returncode: Exit code reported by git.
            stderr: Captured standard error.
        """
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr
        # first positional after any global options is the subcommand
        operation = next(
            (arg for arg in self.command[1:] if not arg.startswith("-")), None
        )
        super().__init__(message, operation=operation)


class PushRejectedError(GitCommandError):
    """Exception raised when the origin rejects a non-fast-forward push.

    This is how a concurrent writer to the same branch surfaces: the origin
    ref moved after the scratch clone was taken, so the non-force push is
    rejected.

    Other refusals (hooks, permissions, a checked-out branch) raise plain
    GitCommandError.
    """


class GitNotFoundError(GitError):
    """Exception raised when the git executable is not installed or not in PATH.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str = "Git CLI not found") -> None:
        """Initialize the GitNotFoundError.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message, operation="git_check")


class NotARepositoryError(GitError):
    """Exception raised when operating outside a git repository.

    Attributes:
        message: Human-readable error message.
        path: Directory that is not a repo.
    """

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
    ) -> None:
        """Initialize the NotARepositoryError.

        Args:
            message: Human-readable error message.
            path: Directory that is not a repo.
        """
        self.path = path
        super().__init__(message, operation="repo_check")


class NoContentError(GitError):
    """Exception raised when a branch update's population step added no files.

    Attributes:
        message: Human-readable error message.
        branch_name: Branch that was being updated.
    """

    def __init__(
        self,
        message: str = "No files were added",
        branch_name: str | None = None,
    ) -> None:
        """Initialize the NoContentError.

        Args:
            message: Human-readable error message.
            branch_name: Branch that was being updated.
        """
        self.branch_name = branch_name
        super().__init__(message, operation="update_branch")
