"""gitdir exception hierarchy.

All exceptions can be imported from this package:
    from gitdir.exceptions import GitError, InvalidArgumentError
"""

from __future__ import annotations

# Base exceptions
from gitdir.exceptions.base import GitDirError, InvalidArgumentError

# Configuration exceptions
from gitdir.exceptions.config import ConfigError

# Git-related exceptions
from gitdir.exceptions.git import (
    GitCommandError,
    GitError,
    GitNotFoundError,
    NoContentError,
    NotARepositoryError,
    PushRejectedError,
)

# Runner-related exceptions
from gitdir.exceptions.runner import (
    CommandTimeoutError,
    RunnerError,
    WorkingDirectoryError,
)

__all__ = [
    # Base
    "GitDirError",
    "InvalidArgumentError",
    # Config
    "ConfigError",
    # Git
    "GitCommandError",
    "GitError",
    "GitNotFoundError",
    "NoContentError",
    "NotARepositoryError",
    "PushRejectedError",
    # Runner
    "CommandTimeoutError",
    "RunnerError",
    "WorkingDirectoryError",
]
