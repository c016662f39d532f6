"""Pure parsers for git plumbing output.

Each function turns the text of one plumbing command into records from
``gitdir.models``. None of them spawn processes, so they can be tested
against captured output directly.

Supported formats:
- ``git cat-file -p <commit>`` / ``<tag>``: header lines, blank line, message
- ``git rev-list --format=raw``: ``commit <sha>`` records with the message
  indented by four spaces
- ``git show-ref``: ``<sha> <refname>`` per line
- ``git ls-tree [-z]``: ``<mode> <type> <sha>\\t<path>`` per entry
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone
from typing import Final, cast

from gitdir.exceptions import InvalidArgumentError
from gitdir.models import (
    Commit,
    CommitReference,
    ObjectType,
    Signature,
    Tag,
    TreeEntry,
)
from gitdir.validation import is_valid_sha, require_valid_sha

__all__ = [
    "is_tag_object_text",
    "parse_commit",
    "parse_ls_tree",
    "parse_raw_rev_list",
    "parse_show_ref",
    "parse_signature",
    "parse_tag",
]

_SIGNATURE_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?P<name>.*?) ?<(?P<email>[^>]*)> (?P<seconds>-?\d+) (?P<offset>[+-]\d{4})$"
)

_RAW_COMMIT_HEADER_RE: Final[re.Pattern[str]] = re.compile(r"^commit ([0-9a-f]{40})$")

_LS_TREE_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?P<mode>\d{6}) (?P<type>blob|tree|commit) (?P<sha>[0-9a-f]{40})\t(?P<path>.+)$",
    re.DOTALL,
)

#: Indentation rev-list --format=raw applies to every message line
_RAW_MESSAGE_INDENT = "    "

_OBJECT_TYPES: Final[frozenset[str]] = frozenset({"blob", "tree", "commit", "tag"})


class _ObjectText:
    """Header/message split of a commit or tag object's text form."""

    __slots__ = ("headers", "message")

    def __init__(self, headers: list[tuple[str, str]], message: str) -> None:
        self.headers = headers
        self.message = message

    def all(self, key: str) -> list[str]:
        return [value for k, value in self.headers if k == key]

    def one(self, key: str, kind: str) -> str:
        values = self.all(key)
        if len(values) != 1:
            raise InvalidArgumentError(
                f"Expected exactly one {key!r} header in {kind}, found {len(values)}",
                argument="text",
            )
        return values[0]

    def optional(self, key: str) -> str | None:
        values = self.all(key)
        return values[0] if values else None


def _split_object_text(lines: list[str]) -> _ObjectText:
    """Split header lines from the message at the first blank line.

    A header line starting with a space continues the previous header
    (multi-line values such as ``gpgsig``).
    """
    headers: list[tuple[str, str]] = []
    index = 0
    for index, line in enumerate(lines):
        if line == "":
            break
        if line.startswith(" ") and headers:
            key, value = headers[-1]
            headers[-1] = (key, f"{value}\n{line[1:]}")
            continue
        key, _, value = line.partition(" ")
        headers.append((key, value))
    else:
        index = len(lines)

    message = "\n".join(lines[index + 1 :]).rstrip("\n")
    return _ObjectText(headers, message)


def parse_signature(value: str) -> Signature:
    """Parse ``Name <email> <epoch-seconds> <+hhmm>``.

    Raises:
        InvalidArgumentError: If the value does not have that shape.
    """
    match = _SIGNATURE_RE.match(value)
    if match is None:
        raise InvalidArgumentError(f"Invalid signature: {value!r}", argument="value")

    offset = match.group("offset")
    sign = -1 if offset[0] == "-" else 1
    delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
    tz = timezone(sign * delta) if delta else UTC
    timestamp = datetime.fromtimestamp(int(match.group("seconds")), tz=tz)
    return Signature(
        name=match.group("name"),
        email=match.group("email"),
        timestamp=timestamp,
    )


def _commit_from_text(sha: str, text: _ObjectText) -> Commit:
    tree_sha = require_valid_sha(text.one("tree", "commit"), "tree")
    parents = tuple(require_valid_sha(p, "parent") for p in text.all("parent"))
    return Commit(
        sha=sha,
        tree_sha=tree_sha,
        parents=parents,
        author=parse_signature(text.one("author", "commit")),
        committer=parse_signature(text.one("committer", "commit")),
        message=text.message,
    )


def parse_commit(sha: str, content: str) -> Commit:
    """Parse the text form of a commit object (``git cat-file -p``).

    The text form does not contain the commit's own sha, so the caller
    supplies it.

    Raises:
        InvalidArgumentError: On an invalid sha or malformed content.
    """
    require_valid_sha(sha, "sha")
    return _commit_from_text(sha, _split_object_text(content.split("\n")))


def parse_raw_rev_list(content: str) -> dict[str, Commit]:
    """Parse ``git rev-list --format=raw`` output into commits keyed by sha.

    Insertion order follows git's output order (newest first by default).

    Raises:
        InvalidArgumentError: On malformed records.
    """
    commits: dict[str, Commit] = {}
    records: list[tuple[str, list[str]]] = []

    for line in content.split("\n"):
        header = _RAW_COMMIT_HEADER_RE.match(line)
        if header is not None:
            records.append((header.group(1), []))
        elif records:
            records[-1][1].append(line)
        elif line.strip():
            raise InvalidArgumentError(
                f"Unexpected rev-list output before first commit: {line!r}",
                argument="content",
            )

    for sha, lines in records:
        text = _split_object_text(lines)
        message_lines = [
            line[len(_RAW_MESSAGE_INDENT) :]
            if line.startswith(_RAW_MESSAGE_INDENT)
            else line
            for line in text.message.split("\n")
        ]
        text.message = "\n".join(message_lines).rstrip("\n")
        commits[sha] = _commit_from_text(sha, text)

    return commits


def parse_tag(sha: str, content: str) -> Tag:
    """Parse the text form of an annotated tag object (``git cat-file -p``).

    Raises:
        InvalidArgumentError: On an invalid sha or malformed content.
    """
    require_valid_sha(sha, "sha")
    text = _split_object_text(content.split("\n"))

    object_type = text.one("type", "tag")
    if object_type not in _OBJECT_TYPES:
        raise InvalidArgumentError(
            f"Unknown tagged object type: {object_type!r}", argument="content"
        )
    tagger = text.optional("tagger")
    return Tag(
        sha=sha,
        object_sha=require_valid_sha(text.one("object", "tag"), "object"),
        type=cast(ObjectType, object_type),
        tag=text.one("tag", "tag"),
        tagger=parse_signature(tagger) if tagger is not None else None,
        message=text.message,
    )


def is_tag_object_text(content: str) -> bool:
    """True if ``content`` is the text form of a tag rather than a commit."""
    return content.startswith("object ")


def parse_show_ref(content: str) -> list[CommitReference]:
    """Parse ``git show-ref`` output.

    Raises:
        InvalidArgumentError: On a line that is not ``<sha> <refname>``.
    """
    references: list[CommitReference] = []
    for line in content.splitlines():
        if not line.strip():
            continue
        sha, _, reference = line.partition(" ")
        if not is_valid_sha(sha) or not reference:
            raise InvalidArgumentError(
                f"Invalid show-ref line: {line!r}", argument="content"
            )
        references.append(CommitReference(sha=sha, reference=reference))
    return references


def parse_ls_tree(content: str) -> list[TreeEntry]:
    """Parse ``git ls-tree`` output, NUL-terminated (``-z``) or line-based.

    Raises:
        InvalidArgumentError: On a malformed entry.
    """
    rows = content.split("\0") if "\0" in content else content.splitlines()
    entries: list[TreeEntry] = []
    for row in rows:
        if not row:
            continue
        match = _LS_TREE_RE.match(row)
        if match is None:
            raise InvalidArgumentError(
                f"Invalid ls-tree entry: {row!r}", argument="content"
            )
        entries.append(
            TreeEntry(
                mode=match.group("mode"),
                type=cast(ObjectType, match.group("type")),
                sha=match.group("sha"),
                path=match.group("path"),
            )
        )
    return entries
