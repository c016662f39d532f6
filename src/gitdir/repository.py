"""Repository handles driving the git executable.

A handle pairs an absolute repository path with the read and write
operations gitdir supports. There are two variants:

- ``GitDir``: the caller's repository. Obtained through ``GitDir.init``,
  ``GitDir.from_existing`` or ``GitDir.from_within_existing``.
- ``EphemeralGitDir``: a bare scratch clone plus a separate work tree,
  created only by ``TempWorkspace`` for the duration of one branch update.

Both run every command through ``run_git``; the ephemeral variant adds a
work-tree override so git operates on the scratch checkout.

Example:
    ```python
    git_dir = await GitDir.from_within_existing()
    commits = await git_dir.get_commits("main")
    commit = await git_dir.update_branch("gh-pages", write_site, "Publish site")
    ```
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from os import PathLike
from pathlib import Path
from typing import TYPE_CHECKING

from gitdir.config import GitDirConfig, get_config
from gitdir.exceptions import (
    GitCommandError,
    GitError,
    InvalidArgumentError,
    NotARepositoryError,
)
from gitdir.logging import get_logger
from gitdir.models import (
    BRANCH_REF_PREFIX,
    BranchReference,
    Commit,
    CommitReference,
    Tag,
    TreeEntry,
)
from gitdir.parsers import (
    is_tag_object_text,
    parse_commit,
    parse_ls_tree,
    parse_raw_rev_list,
    parse_show_ref,
    parse_tag,
)
from gitdir.runners.git import run_git
from gitdir.runners.models import CommandResult
from gitdir.validation import is_valid_sha, require_not_empty, require_valid_sha

if TYPE_CHECKING:
    from gitdir.workflow import Populator

__all__ = [
    "BaseGitDir",
    "EphemeralGitDir",
    "GitDir",
    "GIT_CONTROL_DIR",
    "is_git_dir",
]

logger = get_logger(__name__)

#: Conventional name of the control directory at a work-tree root
GIT_CONTROL_DIR = ".git"

#: show-ref exits with 1 when no ref matched
_SHOW_REF_NO_MATCH = 1


async def is_git_dir(
    path: Path | str | PathLike[str], *, config: GitDirConfig | None = None
) -> bool:
    """Check whether ``path`` is inside a git repository (or is a bare one).

    Args:
        path: Directory to probe.
        config: Settings to use. Defaults to the process-wide config.

    Returns:
        False if the directory does not exist, otherwise whether
        ``git rev-parse`` succeeds there.
    """
    directory = Path(path).absolute()
    if not directory.is_dir():
        return False
    result = await run_git(["rev-parse"], cwd=directory, check=False, config=config)
    return result.returncode == 0


class BaseGitDir(ABC):
    """Operations shared by origin and scratch repository handles.

    Handles are cheap, immutable and hold no open resources, so they may be
    shared between tasks. Independent reads can be awaited concurrently.
    """

    def __init__(self, path: Path, *, config: GitDirConfig | None = None) -> None:
        if not path.is_absolute():
            raise InvalidArgumentError(
                f"path must be absolute: {path}", argument="path"
            )
        self._path = path
        self._config = config

    @property
    def path(self) -> Path:
        """Absolute directory git runs in."""
        return self._path

    @property
    def config(self) -> GitDirConfig:
        return self._config or get_config()

    @abstractmethod
    def _work_tree_override(self) -> Path | None:
        """Work tree to force on every command, if any."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self._path)!r})"

    async def run_command(
        self, args: Sequence[str], *, check: bool = True
    ) -> CommandResult:
        """Run git in this handle's directory.

        Args:
            args: Arguments after the executable. None may be empty or contain
                ``--work-tree=`` / ``--git-dir=``.
            check: Raise GitCommandError on a nonzero exit.

        Returns:
            Captured stdout, stderr and exit code.

        Raises:
            InvalidArgumentError: If validation fails (before spawning).
            GitCommandError: On a nonzero exit when ``check`` is True.
        """
        return await run_git(
            args,
            cwd=self._path,
            work_tree=self._work_tree_override(),
            check=check,
            config=self._config,
        )

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    async def commit_count(self, branch: str = "HEAD") -> int:
        """Number of commits reachable from ``branch``."""
        require_not_empty(branch, "branch")
        result = await self.run_command(["rev-list", "--count", branch])
        return int(result.stdout.strip())

    async def get_commit(self, rev: str) -> Commit:
        """Get the commit named by any revision expression.

        Args:
            rev: A sha, ref name or expression such as ``HEAD~2``.
                See gitrevisions(7).
        """
        require_not_empty(rev, "rev")
        resolved = await self.run_command(
            ["rev-parse", "--verify", f"{rev}^{{commit}}"]
        )
        sha = resolved.stdout.strip()
        result = await self.run_command(["cat-file", "-p", sha])
        return parse_commit(sha, result.stdout)

    async def get_commits(self, branch: str = "HEAD") -> dict[str, Commit]:
        """Every commit reachable from ``branch``, keyed by sha.

        Uses a single ``rev-list --format=raw`` call.
        """
        require_not_empty(branch, "branch")
        result = await self.run_command(["rev-list", "--format=raw", branch])
        return parse_raw_rev_list(result.stdout)

    # -------------------------------------------------------------------------
    # References
    # -------------------------------------------------------------------------

    async def show_ref(
        self, *, heads: bool = False, tags: bool = False
    ) -> list[CommitReference]:
        """List references, optionally limited to branches and/or tags.

        Returns:
            Matching references; an empty list when nothing matched.

        Raises:
            GitCommandError: On any failure other than "no matching refs".
        """
        args = ["show-ref"]
        if heads:
            args.append("--heads")
        if tags:
            args.append("--tags")

        result = await self.run_command(args, check=False)
        if result.returncode == _SHOW_REF_NO_MATCH:
            return []
        if not result.success:
            raise GitCommandError(
                f"git show-ref failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}",
                command=result.command,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return parse_show_ref(result.stdout)

    async def branch_references(self) -> list[BranchReference]:
        refs = await self.show_ref(heads=True)
        return [ref.to_branch_reference() for ref in refs]

    async def branch_names(self) -> list[str]:
        return [ref.branch_name for ref in await self.branch_references()]

    async def branch_reference(self, branch_name: str) -> BranchReference | None:
        """Look up a branch by short name.

        Returns:
            The branch reference, or None if no such branch exists.
        """
        require_not_empty(branch_name, "branch_name")
        matches = [
            ref
            for ref in await self.branch_references()
            if ref.branch_name == branch_name
        ]
        # ref names are unique
        assert len(matches) <= 1, matches
        return matches[0] if matches else None

    async def tags(self) -> list[Tag]:
        """All annotated tags.

        Tag objects are fetched concurrently, one ``cat-file`` per tag.
        Lightweight tags point directly at a commit and are skipped.
        """
        refs = await self.show_ref(tags=True)

        async def fetch(ref: CommitReference) -> Tag | None:
            result = await self.run_command(["cat-file", "-p", ref.sha])
            if not is_tag_object_text(result.stdout):
                logger.debug("lightweight_tag_skipped", reference=ref.reference)
                return None
            return parse_tag(ref.sha, result.stdout)

        fetched = await asyncio.gather(*(fetch(ref) for ref in refs))
        return [tag for tag in fetched if tag is not None]

    async def current_branch(self) -> BranchReference:
        """The branch HEAD points at.

        Raises:
            GitError: If HEAD is detached.
            GitCommandError: If HEAD cannot be resolved (e.g. no commits yet).
        """
        result = await self.run_command(
            ["rev-parse", "--verify", "--symbolic-full-name", "HEAD"]
        )
        reference = result.stdout.strip()
        if not reference.startswith(BRANCH_REF_PREFIX):
            raise GitError(
                f"HEAD is not on a branch (detached at {reference or 'unknown'})",
                operation="current_branch",
            )

        result = await self.run_command(["show-ref", "--verify", reference])
        refs = parse_show_ref(result.stdout)
        if len(refs) != 1:
            raise GitError(
                f"Expected one ref for {reference}, found {len(refs)}",
                operation="current_branch",
            )
        return refs[0].to_branch_reference()

    # -------------------------------------------------------------------------
    # Trees and objects
    # -------------------------------------------------------------------------

    async def list_tree(
        self,
        treeish: str,
        *,
        sub_trees_only: bool = False,
        path: str | None = None,
    ) -> list[TreeEntry]:
        """List the entries of a tree.

        Args:
            treeish: Tree, commit or ref whose tree to list.
            sub_trees_only: Only list subtrees (``-d``).
            path: Restrict the listing to this path.
        """
        require_not_empty(treeish, "treeish")
        args = ["ls-tree", "-z"]
        if sub_trees_only:
            args.append("-d")
        args.append(treeish)
        if path is not None:
            args.append(require_not_empty(path, "path"))

        result = await self.run_command(args)
        return parse_ls_tree(result.stdout)

    async def write_objects(
        self, paths: Sequence[str | PathLike[str]]
    ) -> dict[str, str]:
        """Store files as blobs in the object database.

        Relative paths resolve against this handle's directory.

        Args:
            paths: Files to hash and write, in one batched call.

        Returns:
            Mapping of each input path (as str) to its blob sha.

        Raises:
            GitError: If git returned an unexpected number of shas or a
                malformed one.
        """
        keys = [str(path) for path in paths]
        if not keys:
            return {}

        result = await self.run_command(
            ["hash-object", "-t", "blob", "-w", "--no-filters", "--", *keys]
        )
        shas = result.stdout.split()
        if len(shas) != len(keys) or not all(is_valid_sha(sha) for sha in shas):
            raise GitError(
                f"hash-object returned {len(shas)} values for {len(keys)} paths: "
                f"{result.stdout!r}",
                operation="write_objects",
            )
        return dict(zip(keys, shas, strict=True))

    async def commit_tree(
        self,
        tree_sha: str,
        message: str,
        parents: Sequence[str] = (),
    ) -> str:
        """Create a commit object for ``tree_sha``. No ref is moved.

        Args:
            tree_sha: Tree the commit records.
            message: Commit message; must not start or end with whitespace.
            parents: Parent commit shas.

        Returns:
            Sha of the new commit.
        """
        require_valid_sha(tree_sha, "tree_sha")
        require_not_empty(message, "message")
        if message.strip() != message:
            raise InvalidArgumentError(
                "message cannot start or end with whitespace", argument="message"
            )

        args = ["commit-tree", tree_sha, "-m", message]
        for parent in parents:
            args.extend(["-p", require_valid_sha(parent, "parents")])

        result = await self.run_command(args)
        sha = result.stdout.strip()
        if not is_valid_sha(sha):
            raise GitError(
                f"commit-tree returned an invalid sha: {sha!r}", operation="commit_tree"
            )
        return sha

    async def create_or_update_branch(
        self, branch_name: str, tree_sha: str, message: str
    ) -> str | None:
        """Point ``branch_name`` at a new commit of ``tree_sha``.

        A missing branch gets a parentless root commit. An existing branch
        whose tip already records ``tree_sha`` is left alone.

        Returns:
            Sha of the new commit, or None if the branch was not updated.
        """
        require_not_empty(branch_name, "branch_name")
        require_valid_sha(tree_sha, "tree_sha")

        target = await self.branch_reference(branch_name)
        if target is None:
            new_sha = await self.commit_tree(tree_sha, message)
        else:
            tip = await self.get_commit(target.sha)
            if tip.tree_sha == tree_sha:
                logger.debug("branch_unchanged", branch=branch_name, sha=target.sha)
                return None
            new_sha = await self.commit_tree(tree_sha, message, parents=[target.sha])

        try:
            await self.run_command(
                ["update-ref", f"{BRANCH_REF_PREFIX}{branch_name}", new_sha]
            )
        except GitCommandError:
            # the commit object exists but nothing references it
            logger.warning("dangling_commit", branch=branch_name, sha=new_sha)
            raise
        logger.info("branch_updated", branch=branch_name, sha=new_sha)
        return new_sha

    # -------------------------------------------------------------------------
    # Working tree
    # -------------------------------------------------------------------------

    async def add_all(self) -> None:
        """Stage every change in the work tree, including deletions."""
        await self.run_command(["add", "--all", "--verbose"])

    async def commit(self, message: str) -> None:
        """Commit the index with ``message``."""
        require_not_empty(message, "message")
        await self.run_command(["commit", "--verbose", "-m", message])

    async def is_working_tree_clean(self) -> bool:
        result = await self.run_command(["status", "--porcelain"])
        return not result.stdout.strip()

    async def untracked_files(self) -> list[str]:
        """Paths git does not track yet (ignored files included)."""
        result = await self.run_command(["ls-files", "--others"])
        return result.stdout.splitlines()


class GitDir(BaseGitDir):
    """Handle for a repository rooted at a work tree.

    Never carries a work-tree override. Construct through the async
    factories, which check that ``path`` really is a repository root.

    Example:
        ```python
        git_dir = await GitDir.from_existing("/srv/site")
        branch = await git_dir.current_branch()
        print(branch.branch_name, branch.sha)
        ```
    """

    def _work_tree_override(self) -> Path | None:
        return None

    @classmethod
    async def init(
        cls,
        source: Path | str | PathLike[str],
        *,
        allow_content: bool = False,
        config: GitDirConfig | None = None,
    ) -> GitDir:
        """Initialize a new repository in an existing directory.

        Args:
            source: Directory to initialize.
            allow_content: Skip the check that ``source`` is empty.
            config: Settings to use. Defaults to the process-wide config.

        Raises:
            InvalidArgumentError: If ``source`` is not a directory, is not
                empty (unless allowed) or is already inside a repository.
        """
        directory = Path(source).absolute()
        if not directory.is_dir():
            raise InvalidArgumentError(
                f"source is not a directory: {directory}", argument="source"
            )
        if not allow_content and any(directory.iterdir()):
            raise InvalidArgumentError(
                f"source directory is not empty: {directory}", argument="source"
            )
        if await is_git_dir(directory, config=config):
            raise InvalidArgumentError(
                f"Cannot init a directory that is already a git directory: {directory}",
                argument="source",
            )

        await run_git(["init", str(directory)], cwd=directory, config=config)
        logger.info("repository_initialized", path=str(directory))
        return await cls.from_existing(directory, config=config)

    @classmethod
    async def from_existing(
        cls,
        root: Path | str | PathLike[str],
        *,
        config: GitDirConfig | None = None,
    ) -> GitDir:
        """Open the repository whose work-tree root is ``root``.

        Raises:
            InvalidArgumentError: If ``root`` is not the root of a work tree
                (a subdirectory, a bare repository or not a repository).
        """
        directory = Path(root).absolute()
        if not directory.is_dir():
            raise InvalidArgumentError(
                f"Not a directory: {directory}", argument="root"
            )

        result = await run_git(
            ["rev-parse", "--git-dir"], cwd=directory, check=False, config=config
        )
        if not result.success or result.stdout.strip() != GIT_CONTROL_DIR:
            raise InvalidArgumentError(
                f'The provided value "{root}" is not the root of a git directory',
                argument="root",
            )
        return cls(directory, config=config)

    @classmethod
    async def from_within_existing(
        cls,
        start: Path | str | PathLike[str] | None = None,
        *,
        config: GitDirConfig | None = None,
    ) -> GitDir:
        """Find the repository containing ``start`` (default: the cwd).

        Walks up from ``start`` to the first directory holding a ``.git``
        entry and opens it with ``from_existing``.

        Raises:
            NotARepositoryError: If ``start`` is not inside a repository.
        """
        origin = Path(start if start is not None else Path.cwd()).absolute()
        directory = origin
        while True:
            if not await is_git_dir(directory, config=config):
                raise NotARepositoryError(
                    f"Not inside a git workspace: {origin}", path=origin
                )
            if (directory / GIT_CONTROL_DIR).exists():
                return await cls.from_existing(directory, config=config)
            if directory.parent == directory:
                raise NotARepositoryError(
                    f"Not inside a git workspace: {origin}", path=origin
                )
            directory = directory.parent

    async def update_branch(
        self,
        branch_name: str,
        populate: Populator,
        message: str,
    ) -> Commit | None:
        """Replace the content of ``branch_name`` with what ``populate`` writes.

        See ``gitdir.workflow.update_branch``.
        """
        from gitdir.workflow import update_branch

        return await update_branch(self, branch_name, populate, message)


class EphemeralGitDir(BaseGitDir):
    """Handle for a bare scratch clone checked out into a separate work tree.

    Every command is prefixed with ``--work-tree=<work_tree>``. Only
    ``TempWorkspace`` creates these.
    """

    def __init__(
        self,
        path: Path,
        work_tree: Path,
        *,
        config: GitDirConfig | None = None,
    ) -> None:
        if not work_tree.is_absolute():
            raise InvalidArgumentError(
                f"work_tree must be absolute: {work_tree}", argument="work_tree"
            )
        super().__init__(path, config=config)
        self._work_tree = work_tree

    @property
    def work_tree(self) -> Path:
        return self._work_tree

    def _work_tree_override(self) -> Path | None:
        return self._work_tree

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self._path)!r}, "
            f"work_tree={str(self._work_tree)!r})"
        )
