"""Immutable records built from git plumbing output.

Every query returns fresh snapshots; nothing here is ever mutated in place.
References are weak pointers: a ``CommitReference`` only carries a sha, and
the commit itself is fetched on demand with ``get_commit``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from gitdir.exceptions import InvalidArgumentError

__all__ = [
    "BRANCH_REF_PREFIX",
    "BranchReference",
    "Commit",
    "CommitReference",
    "ObjectType",
    "SHORT_SHA_LEN",
    "Signature",
    "TAG_REF_PREFIX",
    "Tag",
    "TagReference",
    "TreeEntry",
]

BRANCH_REF_PREFIX = "refs/heads/"
TAG_REF_PREFIX = "refs/tags/"

SHORT_SHA_LEN = 7

ObjectType = Literal["blob", "tree", "commit", "tag"]


@dataclass(frozen=True, slots=True)
class Signature:
    """Identity and time recorded in an author, committer or tagger header.

    Attributes:
        name: Person's name.
        email: Email address, without angle brackets.
        timestamp: Time of the action, in the recorded UTC offset.
    """

    name: str
    email: str
    timestamp: datetime

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True, slots=True)
class Commit:
    """A commit object.

    Attributes:
        sha: Full 40-character sha of the commit.
        tree_sha: Sha of the commit's root tree.
        parents: Parent shas in recorded order; empty for a root commit.
        author: Author signature.
        committer: Committer signature.
        message: Full commit message without trailing newlines.
    """

    sha: str
    tree_sha: str
    parents: tuple[str, ...]
    author: Signature
    committer: Signature
    message: str

    @property
    def short_sha(self) -> str:
        return self.sha[:SHORT_SHA_LEN]

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True, slots=True)
class CommitReference:
    """A fully qualified ref name and the sha it points at.

    Attributes:
        sha: Object the ref points to (a tag object for annotated tags).
        reference: Fully qualified name, e.g. ``refs/heads/main``.
    """

    sha: str
    reference: str

    def to_branch_reference(self) -> BranchReference:
        """Narrow to a BranchReference.

        Raises:
            InvalidArgumentError: If the ref is not under ``refs/heads/``.
        """
        return BranchReference(self.sha, self.reference)

    def to_tag_reference(self) -> TagReference:
        """Narrow to a TagReference.

        Raises:
            InvalidArgumentError: If the ref is not under ``refs/tags/``.
        """
        return TagReference(self.sha, self.reference)


@dataclass(frozen=True, slots=True)
class BranchReference(CommitReference):
    """A reference under ``refs/heads/``."""

    def __post_init__(self) -> None:
        if not self.reference.startswith(BRANCH_REF_PREFIX):
            raise InvalidArgumentError(
                f"Not a branch reference: {self.reference}", argument="reference"
            )

    @property
    def branch_name(self) -> str:
        return self.reference[len(BRANCH_REF_PREFIX) :]


@dataclass(frozen=True, slots=True)
class TagReference(CommitReference):
    """A reference under ``refs/tags/``."""

    def __post_init__(self) -> None:
        if not self.reference.startswith(TAG_REF_PREFIX):
            raise InvalidArgumentError(
                f"Not a tag reference: {self.reference}", argument="reference"
            )

    @property
    def tag_name(self) -> str:
        return self.reference[len(TAG_REF_PREFIX) :]


@dataclass(frozen=True, slots=True)
class Tag:
    """An annotated tag object.

    Attributes:
        sha: Sha of the tag object itself.
        object_sha: Sha of the tagged object.
        type: Kind of the tagged object (usually ``commit``).
        tag: Tag name.
        tagger: Tagger signature; absent on some very old tags.
        message: Tag message without trailing newlines.
    """

    sha: str
    object_sha: str
    type: ObjectType
    tag: str
    tagger: Signature | None
    message: str


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """One row of a tree listing.

    Attributes:
        mode: Octal file mode as printed by git (e.g. ``100644``).
        type: ``blob``, ``tree`` or ``commit`` (submodule).
        sha: Sha of the entry's object.
        path: Path relative to the listed tree.
    """

    mode: str
    type: ObjectType
    sha: str
    path: str

    @property
    def is_tree(self) -> bool:
        return self.type == "tree"
