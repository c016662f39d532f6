from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Generator, Iterator
from pathlib import Path

import pytest
from git import Repo

from gitdir.config import GitDirConfig, GitConfig, WorkspaceConfig, get_config

TEST_AUTHOR_NAME = "Test User"
TEST_AUTHOR_EMAIL = "test@example.com"


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test environment.

    Runs automatically so log output goes to stderr at WARNING level and
    never mixes with CLI stdout under test.
    """
    from gitdir.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture(autouse=True)
def isolated_git_env(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep git and gitdir away from the developer's own configuration.

    HOME points at an empty directory (no ~/.gitconfig and no
    ~/.config/gitdir/config.yaml), system config is skipped, and a fixed
    identity plus default branch name are exported.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "init.defaultBranch")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "main")
    for prefix in ("GIT_AUTHOR", "GIT_COMMITTER"):
        monkeypatch.setenv(f"{prefix}_NAME", TEST_AUTHOR_NAME)
        monkeypatch.setenv(f"{prefix}_EMAIL", TEST_AUTHOR_EMAIL)
    for key in list(os.environ):
        if key.startswith("GITDIR_"):
            monkeypatch.delenv(key)

    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory to prevent
    tests that use os.chdir() from affecting other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()
    os.chdir(original_cwd)


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    """Directory that receives every scratch workspace of a test."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def gitdir_config(scratch_root: Path) -> GitDirConfig:
    """Config with a short timeout and workspaces kept under ``scratch_root``."""
    return GitDirConfig(
        git=GitConfig(timeout_seconds=30.0),
        workspace=WorkspaceConfig(temp_root=scratch_root),
    )


def _commit_file(repo: Repo, name: str, content: str, message: str) -> str:
    assert repo.working_tree_dir is not None
    target = Path(repo.working_tree_dir) / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message).hexsha


@pytest.fixture
def commit_file() -> Callable[[Repo, str, str, str], str]:
    """Write ``name`` with ``content`` into a repo and commit it.

    Returns the new commit's sha.
    """
    return _commit_file


@pytest.fixture
def empty_repo(tmp_path: Path) -> Path:
    """An initialized repository without commits."""
    repo_path = (tmp_path / "empty").resolve()
    repo_path.mkdir()
    repo = Repo.init(repo_path)
    repo.close()
    return repo_path


@pytest.fixture
def origin_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """A repository on ``main`` with a single commit adding README.md.

    Yields:
        Absolute path to the repository root.
    """
    repo_path = (tmp_path / "origin").resolve()
    repo_path.mkdir()

    repo = Repo.init(repo_path)
    repo.config_writer().set_value("user", "email", TEST_AUTHOR_EMAIL).release()
    repo.config_writer().set_value("user", "name", TEST_AUTHOR_NAME).release()
    _commit_file(repo, "README.md", "# Origin\n", "Initial commit")
    repo.close()

    yield repo_path
