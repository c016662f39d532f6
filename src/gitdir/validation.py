"""Argument validation shared by records and repository operations.

All checks raise InvalidArgumentError so bad input is rejected before a git
process is spawned.
"""

from __future__ import annotations

import re
from typing import Final

from gitdir.exceptions import InvalidArgumentError

__all__ = [
    "SHA_PATTERN",
    "is_valid_sha",
    "require_not_empty",
    "require_valid_sha",
]

#: A full content address: 40 lowercase hexadecimal characters
SHA_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9a-f]{40}")


def is_valid_sha(value: object) -> bool:
    """Check if ``value`` is a full 40-character lowercase hex sha."""
    return isinstance(value, str) and SHA_PATTERN.fullmatch(value) is not None


def require_valid_sha(value: object, argument: str) -> str:
    """Return ``value`` if it is a valid sha.

    Raises:
        InvalidArgumentError: If it is not.
    """
    if not is_valid_sha(value):
        raise InvalidArgumentError(
            f"{argument} is not a valid sha: {value!r}", argument=argument
        )
    assert isinstance(value, str)
    return value


def require_not_empty(value: object, argument: str) -> str:
    """Return ``value`` if it is a non-empty string.

    Raises:
        InvalidArgumentError: If it is None, not a string, or empty.
    """
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(
            f"{argument} cannot be empty", argument=argument
        )
    return value
