"""Tests for GitDir against real repositories.

Fixture repositories are built with GitPython; every assertion goes through
the gitdir handle.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest
from git import Repo

from gitdir import GitDir, is_git_dir
from gitdir.exceptions import (
    GitCommandError,
    GitError,
    InvalidArgumentError,
    NotARepositoryError,
)
from gitdir.models import BranchReference, Commit

TEST_AUTHOR_NAME = "Test User"

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def git_dir(origin_repo: Path) -> GitDir:
    return GitDir(origin_repo)


@pytest.fixture
def linear_repo(origin_repo: Path, commit_file: Callable[..., str]) -> list[str]:
    """Add two commits on top of the initial one.

    Returns:
        Shas of all three commits, oldest first.
    """
    repo = Repo(origin_repo)
    shas = [repo.head.commit.hexsha]
    shas.append(commit_file(repo, "a.txt", "one\n", "Add a"))
    shas.append(commit_file(repo, "docs/guide.md", "# Guide\n", "Add guide"))
    repo.close()
    return shas


@pytest.fixture
def non_git_dir(tmp_path: Path) -> Path:
    dir_path = tmp_path / "not_a_repo"
    dir_path.mkdir()
    return dir_path


# =============================================================================
# Construction and discovery
# =============================================================================


class TestInit:
    @pytest.mark.asyncio
    async def test_init_then_first_commit(self, tmp_path: Path) -> None:
        directory = tmp_path / "fresh"
        directory.mkdir()

        git_dir = await GitDir.init(directory)
        (directory / "a.txt").write_text("hi")
        await git_dir.add_all()
        await git_dir.commit("Initial commit")

        assert await git_dir.commit_count("HEAD") == 1
        head = await git_dir.get_commit("HEAD")
        assert head.parents == ()
        assert head.is_root
        assert head.message == "Initial commit"
        assert head.author.name == TEST_AUTHOR_NAME

    @pytest.mark.asyncio
    async def test_init_rejects_content(self, tmp_path: Path) -> None:
        directory = tmp_path / "content"
        directory.mkdir()
        (directory / "file.txt").write_text("x")

        with pytest.raises(InvalidArgumentError, match="not empty"):
            await GitDir.init(directory)

        assert not (directory / ".git").exists()

    @pytest.mark.asyncio
    async def test_init_allow_content(self, tmp_path: Path) -> None:
        directory = tmp_path / "content"
        directory.mkdir()
        (directory / "file.txt").write_text("x")

        git_dir = await GitDir.init(directory, allow_content=True)

        assert git_dir.path == directory.absolute()
        assert await git_dir.untracked_files() == ["file.txt"]

    @pytest.mark.asyncio
    async def test_init_rejects_existing_repository(self, origin_repo: Path) -> None:
        with pytest.raises(InvalidArgumentError, match="already a git directory"):
            await GitDir.init(origin_repo, allow_content=True)

    @pytest.mark.asyncio
    async def test_init_rejects_nested_directory(self, origin_repo: Path) -> None:
        nested = origin_repo / "nested"
        nested.mkdir()

        with pytest.raises(InvalidArgumentError, match="already a git directory"):
            await GitDir.init(nested)

    @pytest.mark.asyncio
    async def test_init_rejects_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidArgumentError, match="not a directory"):
            await GitDir.init(tmp_path / "missing")


class TestFromExisting:
    @pytest.mark.asyncio
    async def test_opens_root(self, origin_repo: Path) -> None:
        git_dir = await GitDir.from_existing(origin_repo)

        assert git_dir.path == origin_repo

    @pytest.mark.asyncio
    async def test_accepts_str(self, origin_repo: Path) -> None:
        git_dir = await GitDir.from_existing(str(origin_repo))

        assert git_dir.path == origin_repo

    @pytest.mark.asyncio
    async def test_rejects_subdirectory(self, origin_repo: Path) -> None:
        sub = origin_repo / "sub"
        sub.mkdir()

        with pytest.raises(InvalidArgumentError, match="not the root"):
            await GitDir.from_existing(sub)

    @pytest.mark.asyncio
    async def test_rejects_non_repository(self, non_git_dir: Path) -> None:
        with pytest.raises(InvalidArgumentError, match="not the root"):
            await GitDir.from_existing(non_git_dir)

    @pytest.mark.asyncio
    async def test_rejects_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidArgumentError, match="Not a directory"):
            await GitDir.from_existing(tmp_path / "missing")

    def test_constructor_requires_absolute_path(self) -> None:
        with pytest.raises(InvalidArgumentError, match="absolute"):
            GitDir(Path("relative/repo"))


class TestFromWithinExisting:
    @pytest.mark.asyncio
    async def test_walks_up_to_root(self, origin_repo: Path) -> None:
        deep = origin_repo / "a" / "b"
        deep.mkdir(parents=True)

        git_dir = await GitDir.from_within_existing(deep)

        assert git_dir.path == origin_repo

    @pytest.mark.asyncio
    async def test_defaults_to_cwd(
        self, origin_repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(origin_repo)

        git_dir = await GitDir.from_within_existing()

        assert git_dir.path == origin_repo

    @pytest.mark.asyncio
    async def test_outside_repository(self, non_git_dir: Path) -> None:
        with pytest.raises(NotARepositoryError) as exc_info:
            await GitDir.from_within_existing(non_git_dir)

        assert exc_info.value.path == non_git_dir


class TestIsGitDir:
    @pytest.mark.asyncio
    async def test_detects_repository(
        self, origin_repo: Path, non_git_dir: Path, tmp_path: Path
    ) -> None:
        assert await is_git_dir(origin_repo) is True
        assert await is_git_dir(non_git_dir) is False
        assert await is_git_dir(tmp_path / "missing") is False


# =============================================================================
# History
# =============================================================================


class TestHistory:
    @pytest.mark.asyncio
    async def test_commit_count(self, git_dir: GitDir, linear_repo: list[str]) -> None:
        assert await git_dir.commit_count() == 3
        assert await git_dir.commit_count("main") == 3
        assert await git_dir.commit_count(linear_repo[0]) == 1

    @pytest.mark.asyncio
    async def test_get_commits_linear_chain(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        commits = await git_dir.get_commits("HEAD")

        assert len(commits) == 3
        assert set(commits) == set(linear_repo)
        for sha, commit in commits.items():
            assert commit.sha == sha

        # walk parents back from the tip to the root
        chain = []
        current: Commit | None = commits[linear_repo[-1]]
        while current is not None:
            chain.append(current.sha)
            current = commits[current.parents[0]] if current.parents else None
        assert chain == list(reversed(linear_repo))
        assert commits[linear_repo[0]].parents == ()

    @pytest.mark.asyncio
    async def test_get_commits_matches_get_commit(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        commits = await git_dir.get_commits()
        head = await git_dir.get_commit("HEAD")

        assert commits[head.sha] == head

    @pytest.mark.asyncio
    async def test_get_commit_revision_expressions(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        assert (await git_dir.get_commit("HEAD~1")).sha == linear_repo[1]
        assert (await git_dir.get_commit("main")).sha == linear_repo[2]
        assert (await git_dir.get_commit(linear_repo[0])).summary == "Initial commit"

    @pytest.mark.asyncio
    async def test_get_commit_unknown_revision(self, git_dir: GitDir) -> None:
        with pytest.raises(GitCommandError) as exc_info:
            await git_dir.get_commit("no-such-branch")

        assert exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_get_commit_empty_revision(self, git_dir: GitDir) -> None:
        with pytest.raises(InvalidArgumentError):
            await git_dir.get_commit("")


# =============================================================================
# References
# =============================================================================


class TestReferences:
    @pytest.mark.asyncio
    async def test_show_ref_on_empty_repository(self, empty_repo: Path) -> None:
        git_dir = GitDir(empty_repo)

        assert await git_dir.show_ref() == []
        assert await git_dir.show_ref(heads=True) == []
        assert await git_dir.branch_names() == []
        assert await git_dir.tags() == []

    @pytest.mark.asyncio
    async def test_show_ref_outside_repository_is_an_error(
        self, non_git_dir: Path
    ) -> None:
        with pytest.raises(GitCommandError):
            await GitDir(non_git_dir).show_ref()

    @pytest.mark.asyncio
    async def test_branches(self, git_dir: GitDir, origin_repo: Path) -> None:
        repo = Repo(origin_repo)
        repo.create_head("feature/x")
        repo.close()

        assert sorted(await git_dir.branch_names()) == ["feature/x", "main"]
        refs = await git_dir.branch_references()
        assert all(isinstance(ref, BranchReference) for ref in refs)

    @pytest.mark.asyncio
    async def test_branch_reference(self, git_dir: GitDir) -> None:
        head = await git_dir.get_commit("HEAD")

        main = await git_dir.branch_reference("main")

        assert main is not None
        assert main.reference == "refs/heads/main"
        assert main.sha == head.sha
        assert await git_dir.branch_reference("missing") is None

    @pytest.mark.asyncio
    async def test_tags_skip_lightweight(
        self, git_dir: GitDir, origin_repo: Path
    ) -> None:
        repo = Repo(origin_repo)
        head_sha = repo.head.commit.hexsha
        repo.create_tag("v1.0", message="Release 1.0")
        repo.create_tag("light")
        repo.close()

        all_tags = await git_dir.show_ref(tags=True)
        tags = await git_dir.tags()

        assert sorted(ref.reference for ref in all_tags) == [
            "refs/tags/light",
            "refs/tags/v1.0",
        ]
        assert len(tags) == 1
        tag = tags[0]
        assert tag.tag == "v1.0"
        assert tag.object_sha == head_sha
        assert tag.type == "commit"
        assert tag.message == "Release 1.0"
        assert tag.tagger is not None
        assert tag.tagger.name == TEST_AUTHOR_NAME

    @pytest.mark.asyncio
    async def test_current_branch(self, git_dir: GitDir) -> None:
        branch = await git_dir.current_branch()

        assert branch.branch_name == "main"
        assert branch.sha == (await git_dir.get_commit("HEAD")).sha

    @pytest.mark.asyncio
    async def test_current_branch_detached(
        self, git_dir: GitDir, origin_repo: Path
    ) -> None:
        repo = Repo(origin_repo)
        repo.git.checkout("--detach")
        repo.close()

        with pytest.raises(GitError, match="not on a branch"):
            await git_dir.current_branch()

    @pytest.mark.asyncio
    async def test_concurrent_reads(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        head, names, count = await asyncio.gather(
            git_dir.get_commit("HEAD"),
            git_dir.branch_names(),
            git_dir.commit_count(),
        )

        assert head.sha == linear_repo[-1]
        assert names == ["main"]
        assert count == 3


# =============================================================================
# Trees and objects
# =============================================================================


class TestListTree:
    @pytest.mark.asyncio
    async def test_root_listing(self, git_dir: GitDir, linear_repo: list[str]) -> None:
        entries = await git_dir.list_tree("HEAD")

        assert [(e.type, e.path) for e in entries] == [
            ("blob", "README.md"),
            ("blob", "a.txt"),
            ("tree", "docs"),
        ]

    @pytest.mark.asyncio
    async def test_sub_trees_only(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        entries = await git_dir.list_tree("HEAD", sub_trees_only=True)

        assert [e.path for e in entries] == ["docs"]
        assert entries[0].is_tree

    @pytest.mark.asyncio
    async def test_path_restriction(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        entries = await git_dir.list_tree("HEAD", path="docs/")

        assert [e.path for e in entries] == ["docs/guide.md"]

    @pytest.mark.asyncio
    async def test_tree_sha_from_commit(
        self, git_dir: GitDir, linear_repo: list[str]
    ) -> None:
        head = await git_dir.get_commit("HEAD")

        by_tree = await git_dir.list_tree(head.tree_sha)

        assert by_tree == await git_dir.list_tree("HEAD")

    @pytest.mark.asyncio
    async def test_empty_treeish(self, git_dir: GitDir) -> None:
        with pytest.raises(InvalidArgumentError):
            await git_dir.list_tree("")


class TestWriteObjects:
    @pytest.mark.asyncio
    async def test_empty_input(self, git_dir: GitDir) -> None:
        assert await git_dir.write_objects([]) == {}

    @pytest.mark.asyncio
    async def test_hashes_files(
        self, git_dir: GitDir, origin_repo: Path, tmp_path: Path
    ) -> None:
        (origin_repo / "local.txt").write_text("hi")
        outside = tmp_path / "outside.txt"
        outside.write_text("there\n")

        shas = await git_dir.write_objects(["local.txt", outside])

        repo = Repo(origin_repo)
        try:
            assert shas == {
                "local.txt": repo.git.hash_object("local.txt"),
                str(outside): repo.git.hash_object(str(outside)),
            }
            # written, not only hashed
            assert repo.git.cat_file("-t", shas["local.txt"]) == "blob"
        finally:
            repo.close()

    @pytest.mark.asyncio
    async def test_identical_content_identical_address(
        self, git_dir: GitDir, origin_repo: Path
    ) -> None:
        (origin_repo / "one.txt").write_text("same\n")
        (origin_repo / "two.txt").write_text("same\n")
        (origin_repo / "three.txt").write_text("different\n")

        shas = await git_dir.write_objects(["one.txt", "two.txt", "three.txt"])

        assert len(shas) == 3
        assert shas["one.txt"] == shas["two.txt"]
        assert shas["three.txt"] != shas["one.txt"]

    @pytest.mark.asyncio
    async def test_missing_file(self, git_dir: GitDir) -> None:
        with pytest.raises(GitCommandError):
            await git_dir.write_objects(["does-not-exist.txt"])


class TestCommitTree:
    @pytest.mark.asyncio
    async def test_creates_commit_without_moving_refs(self, git_dir: GitDir) -> None:
        head = await git_dir.get_commit("HEAD")

        sha = await git_dir.commit_tree(head.tree_sha, "Same tree", parents=[head.sha])

        commit = await git_dir.get_commit(sha)
        assert commit.tree_sha == head.tree_sha
        assert commit.parents == (head.sha,)
        assert commit.message == "Same tree"
        assert (await git_dir.get_commit("HEAD")).sha == head.sha

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["", " leading", "trailing\n", "\tboth "])
    async def test_rejects_bad_message(self, git_dir: GitDir, message: str) -> None:
        head = await git_dir.get_commit("HEAD")

        with pytest.raises(InvalidArgumentError):
            await git_dir.commit_tree(head.tree_sha, message)

    @pytest.mark.asyncio
    async def test_rejects_bad_shas(self, git_dir: GitDir) -> None:
        head = await git_dir.get_commit("HEAD")

        with pytest.raises(InvalidArgumentError, match="tree_sha"):
            await git_dir.commit_tree("HEAD", "msg")
        with pytest.raises(InvalidArgumentError, match="parents"):
            await git_dir.commit_tree(head.tree_sha, "msg", parents=["main"])


class TestCreateOrUpdateBranch:
    @pytest.mark.asyncio
    async def test_create_then_update(
        self, git_dir: GitDir, linear_repo: list[str], origin_repo: Path
    ) -> None:
        first = await git_dir.get_commit(linear_repo[0])
        last = await git_dir.get_commit(linear_repo[-1])

        created = await git_dir.create_or_update_branch(
            "pages", first.tree_sha, "Publish 1"
        )
        assert created is not None
        created_commit = await git_dir.get_commit("refs/heads/pages")
        assert created_commit.sha == created
        assert created_commit.parents == ()
        assert created_commit.tree_sha == first.tree_sha

        unchanged = await git_dir.create_or_update_branch(
            "pages", first.tree_sha, "Publish again"
        )
        assert unchanged is None
        assert (await git_dir.get_commit("pages")).sha == created

        updated = await git_dir.create_or_update_branch(
            "pages", last.tree_sha, "Publish 2"
        )
        assert updated is not None
        updated_commit = await git_dir.get_commit("pages")
        assert updated_commit.parents == (created,)
        assert updated_commit.tree_sha == last.tree_sha

        # the caller's checkout is untouched
        assert (await git_dir.current_branch()).branch_name == "main"
        assert await git_dir.is_working_tree_clean()

    @pytest.mark.asyncio
    async def test_rejects_bad_tree_sha(self, git_dir: GitDir) -> None:
        with pytest.raises(InvalidArgumentError):
            await git_dir.create_or_update_branch("pages", "not-a-sha", "msg")


# =============================================================================
# Working tree
# =============================================================================


class TestWorkingTree:
    @pytest.mark.asyncio
    async def test_add_and_commit(self, git_dir: GitDir, origin_repo: Path) -> None:
        assert await git_dir.is_working_tree_clean()
        (origin_repo / "new.txt").write_text("new\n")

        assert await git_dir.untracked_files() == ["new.txt"]
        assert not await git_dir.is_working_tree_clean()

        await git_dir.add_all()
        await git_dir.commit("Add new file")

        assert await git_dir.untracked_files() == []
        assert await git_dir.is_working_tree_clean()
        assert await git_dir.commit_count() == 2
        assert (await git_dir.get_commit("HEAD")).summary == "Add new file"

    @pytest.mark.asyncio
    async def test_add_all_stages_deletions(
        self, git_dir: GitDir, origin_repo: Path
    ) -> None:
        (origin_repo / "README.md").unlink()

        await git_dir.add_all()
        await git_dir.commit("Remove readme")

        assert await git_dir.list_tree("HEAD") == []

    @pytest.mark.asyncio
    async def test_commit_nothing_staged(self, git_dir: GitDir) -> None:
        with pytest.raises(GitCommandError):
            await git_dir.commit("Nothing to commit")

    def test_repr(self, git_dir: GitDir, origin_repo: Path) -> None:
        assert repr(git_dir) == f"GitDir({str(origin_repo)!r})"
