"""Branch update: replace a branch's content through a scratch clone.

The caller supplies a ``Populator`` that writes the desired content into a
directory. The update never touches the origin's own work tree or index:

1. Clone the origin into a ``TempWorkspace`` (bare, shared objects). For a
   new branch, check out an orphan branch; otherwise check out the branch.
2. Remove every tracked file so that anything the populator does not write
   shows up as a deletion.
3. Await the populator, then require that it produced at least one file.
4. Stage everything. If nothing changed, return None without committing.
5. Commit and push (never forced) back to the origin. If another writer
   moved the branch since the clone, the push is rejected and the update
   fails with PushRejectedError.
6. Return the new commit, read back from the origin.

The workspace is removed on every exit path.
"""

from __future__ import annotations

from collections.abc import Awaitable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from gitdir.exceptions import NoContentError
from gitdir.logging import get_logger
from gitdir.models import BRANCH_REF_PREFIX, Commit
from gitdir.runners.git import run_git
from gitdir.validation import require_not_empty
from gitdir.workspace import TempWorkspace

if TYPE_CHECKING:
    from gitdir.repository import GitDir

__all__ = ["Populator", "update_branch"]

logger = get_logger(__name__)


@runtime_checkable
class Populator(Protocol):
    """Writes the desired branch content into a directory.

    Any async callable taking the work-tree ``Path`` satisfies this
    protocol. It only ever adds files; removal of stale content is handled
    by the update itself.

    Example:
        ```python
        async def write_site(directory: Path) -> None:
            (directory / "index.html").write_text(render())

        await git_dir.update_branch("gh-pages", write_site, "Publish site")
        ```
    """

    def __call__(self, directory: Path) -> Awaitable[object]: ...


async def _prepare_new_branch(
    origin: GitDir, workspace: TempWorkspace, branch_name: str
) -> None:
    await run_git(
        ["clone", "--shared", "--no-checkout", "--bare", str(origin.path), "."],
        cwd=workspace.host_dir,
        config=origin.config,
    )
    await workspace.git_dir.run_command(["checkout", "--orphan", branch_name])
    await workspace.git_dir.run_command(["rm", "-r", "-f", "--ignore-unmatch", "."])


async def _prepare_existing_branch(
    origin: GitDir, workspace: TempWorkspace, branch_name: str
) -> None:
    await run_git(
        [
            "clone",
            "--shared",
            "--branch",
            branch_name,
            "--bare",
            str(origin.path),
            ".",
        ],
        cwd=workspace.host_dir,
        config=origin.config,
    )
    await workspace.git_dir.run_command(["checkout"])
    await workspace.git_dir.run_command(["rm", "-r", "-f", "--ignore-unmatch", "."])


async def update_branch(
    origin: GitDir,
    branch_name: str,
    populate: Populator,
    message: str,
) -> Commit | None:
    """Replace the content of ``branch_name`` with what ``populate`` writes.

    Args:
        origin: Repository whose branch is updated.
        branch_name: Short branch name; created if missing.
        populate: Async callable writing the content into the given directory.
        message: Commit message.

    Returns:
        The new commit, or None if the content is identical to the branch tip.

    Raises:
        InvalidArgumentError: If ``branch_name`` or ``message`` is empty.
        NoContentError: If ``populate`` wrote no files.
        PushRejectedError: If the branch moved on the origin during the update.
        GitCommandError: If any other git step fails.
    """
    require_not_empty(branch_name, "branch_name")
    require_not_empty(message, "message")

    log = logger.bind(repository=str(origin.path), branch=branch_name)
    existing = await origin.branch_reference(branch_name)

    async with TempWorkspace.allocate(origin.config) as workspace:
        scratch = workspace.git_dir
        if existing is None:
            await _prepare_new_branch(origin, workspace, branch_name)
        else:
            await _prepare_existing_branch(origin, workspace, branch_name)

        log.debug("populate_started", work_tree=str(workspace.work_tree_dir))
        await populate(workspace.work_tree_dir)

        if not await scratch.untracked_files():
            raise NoContentError(
                f"No files were added for branch {branch_name!r}",
                branch_name=branch_name,
            )

        await scratch.add_all()
        if await scratch.is_working_tree_clean():
            log.info("branch_unchanged", tip=existing.sha if existing else None)
            return None

        await scratch.commit(message)
        await scratch.run_command(
            ["push", "--verbose", "--progress", str(origin.path), branch_name]
        )
        log.info("branch_pushed", created=existing is None)

    return await origin.get_commit(f"{BRANCH_REF_PREFIX}{branch_name}")
