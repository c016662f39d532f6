"""Scratch directories for a single branch update.

A ``TempWorkspace`` owns two fresh temporary directories: one hosts a bare
clone of the origin, the other is that clone's work tree. Both are removed
when the workspace is disposed, whatever happened in between.
"""

from __future__ import annotations

import asyncio
import contextlib
import shutil
import tempfile
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

from gitdir.config import GitDirConfig, get_config
from gitdir.logging import get_logger
from gitdir.repository import EphemeralGitDir

__all__ = ["TempWorkspace"]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TempWorkspace:
    """A bare scratch repository and its checked-out work tree.

    Attributes:
        git_dir: Handle running git in ``host_dir`` against ``work_tree_dir``.
        host_dir: Directory holding the bare clone.
        work_tree_dir: Directory the clone is checked out into.

    Example:
        ```python
        async with TempWorkspace.allocate() as workspace:
            await run_git(["clone", "--bare", origin, "."], cwd=workspace.host_dir)
            await workspace.git_dir.run_command(["checkout"])
        # both directories are gone here
        ```
    """

    git_dir: EphemeralGitDir
    host_dir: Path
    work_tree_dir: Path

    @classmethod
    async def create(cls, config: GitDirConfig | None = None) -> TempWorkspace:
        """Create both directories. The caller must call ``dispose``."""
        settings = (config or get_config()).workspace
        root = str(settings.temp_root) if settings.temp_root is not None else None

        host = Path(
            await asyncio.to_thread(
                tempfile.mkdtemp, prefix=settings.temp_prefix, dir=root
            )
        ).absolute()
        try:
            work = Path(
                await asyncio.to_thread(
                    tempfile.mkdtemp, prefix=settings.temp_prefix, dir=root
                )
            ).absolute()
        except BaseException:
            await asyncio.to_thread(shutil.rmtree, host, True)
            raise

        workspace = cls(
            git_dir=EphemeralGitDir(host, work, config=config),
            host_dir=host,
            work_tree_dir=work,
        )
        logger.debug("workspace_created", host_dir=str(host), work_tree_dir=str(work))
        return workspace

    @classmethod
    @contextlib.asynccontextmanager
    async def allocate(
        cls, config: GitDirConfig | None = None
    ) -> AsyncIterator[TempWorkspace]:
        """Create a workspace and dispose of it when the block exits."""
        workspace = await cls.create(config)
        try:
            yield workspace
        finally:
            await workspace.dispose()

    async def dispose(self) -> None:
        """Recursively delete both directories."""
        for directory in (self.host_dir, self.work_tree_dir):
            if directory.exists():
                await asyncio.to_thread(shutil.rmtree, directory)
        logger.debug(
            "workspace_disposed",
            host_dir=str(self.host_dir),
            work_tree_dir=str(self.work_tree_dir),
        )
