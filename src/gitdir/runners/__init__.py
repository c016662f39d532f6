"""Subprocess runners for gitdir.

``CommandRunner`` executes arbitrary commands asynchronously; ``run_git``
layers argument validation and git-specific error translation on top.
"""

from __future__ import annotations

from gitdir.runners.command import CommandRunner
from gitdir.runners.git import GitInvocation, run_git
from gitdir.runners.models import CommandResult

__all__ = [
    "CommandResult",
    "CommandRunner",
    "GitInvocation",
    "run_git",
]
