"""Output formatting utilities for the gitdir CLI."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from gitdir.models import Commit, Signature, Tag, TreeEntry

__all__ = [
    "OutputFormat",
    "commit_to_dict",
    "format_error",
    "format_json",
    "format_table",
    "tag_to_dict",
    "tree_entry_to_dict",
]


class OutputFormat(str, Enum):
    """Supported output formats for CLI commands."""

    TEXT = "text"
    JSON = "json"


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Example:
        >>> print(format_error("Not inside a git workspace", details=["/tmp"]))
        Error: Not inside a git workspace
          /tmp
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def format_json(data: Any) -> str:
    """Format data as JSON with 2-space indentation."""
    return json.dumps(data, indent=2)


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format rows as a plain text table with pipe separators.

    Example:
        >>> print(format_table(["Branch", "Sha"], [["main", "abc1234"]]))
        Branch | Sha
        main   | abc1234
    """
    if not headers:
        return ""

    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < len(col_widths):
                col_widths[i] = max(col_widths[i], len(cell))

    lines = [" | ".join(h.ljust(col_widths[i]) for i, h in enumerate(headers))]
    for row in rows:
        lines.append(
            " | ".join(
                cell.ljust(col_widths[i]) if i < len(col_widths) else cell
                for i, cell in enumerate(row)
            )
        )
    return "\n".join(line.rstrip() for line in lines)


def _signature_to_dict(signature: Signature) -> dict[str, str]:
    return {
        "name": signature.name,
        "email": signature.email,
        "timestamp": signature.timestamp.isoformat(),
    }


def commit_to_dict(commit: Commit) -> dict[str, Any]:
    return {
        "sha": commit.sha,
        "tree": commit.tree_sha,
        "parents": list(commit.parents),
        "author": _signature_to_dict(commit.author),
        "committer": _signature_to_dict(commit.committer),
        "message": commit.message,
    }


def tag_to_dict(tag: Tag) -> dict[str, Any]:
    return {
        "sha": tag.sha,
        "object": tag.object_sha,
        "type": tag.type,
        "tag": tag.tag,
        "tagger": _signature_to_dict(tag.tagger) if tag.tagger else None,
        "message": tag.message,
    }


def tree_entry_to_dict(entry: TreeEntry) -> dict[str, str]:
    return {
        "mode": entry.mode,
        "type": entry.type,
        "sha": entry.sha,
        "path": entry.path,
    }
