"""Click commands for the gitdir CLI."""

from __future__ import annotations

from gitdir.cli.commands.history import log
from gitdir.cli.commands.publish import publish
from gitdir.cli.commands.refs import branches, tags
from gitdir.cli.commands.tree import ls_tree

__all__ = ["branches", "log", "ls_tree", "publish", "tags"]
