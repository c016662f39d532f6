"""gitdir: a typed asyncio interface to git repositories.

gitdir drives the git executable and parses its plumbing output into
immutable records, so tooling can read history and publish content to a
branch without handling git's text output itself.

Usage:
    ```python
    from gitdir import GitDir

    git_dir = await GitDir.from_within_existing()
    print(await git_dir.commit_count())

    async def write_docs(directory: Path) -> None:
        (directory / "index.html").write_text(html)

    commit = await git_dir.update_branch("gh-pages", write_docs, "Publish docs")
    if commit is None:
        print("gh-pages already up to date")
    ```
"""

from __future__ import annotations

from gitdir.models import (
    BranchReference,
    Commit,
    CommitReference,
    Signature,
    Tag,
    TagReference,
    TreeEntry,
)
from gitdir.repository import BaseGitDir, EphemeralGitDir, GitDir, is_git_dir
from gitdir.validation import is_valid_sha
from gitdir.workflow import Populator
from gitdir.workspace import TempWorkspace

__version__ = "0.4.0"

__all__ = [
    "BaseGitDir",
    "BranchReference",
    "Commit",
    "CommitReference",
    "EphemeralGitDir",
    "GitDir",
    "Populator",
    "Signature",
    "Tag",
    "TagReference",
    "TempWorkspace",
    "TreeEntry",
    "__version__",
    "is_git_dir",
    "is_valid_sha",
]
