from __future__ import annotations


class GitDirError(Exception):
    """Base exception class for all gitdir-specific errors.

    This is the root of the gitdir exception hierarchy. Catching it at a tool
    boundary handles every failure raised by this package while letting
    system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            await git_dir.update_branch("gh-pages", populate, "Publish docs")
        except GitDirError as e:
            logger.error("publish_failed", error=e.message)
            sys.exit(1)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the GitDirError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class InvalidArgumentError(GitDirError, ValueError):
    """A caller-supplied argument was rejected before any git process ran.

    Subclasses ``ValueError`` so callers that only know about the builtin
    still catch it.

    Attributes:
        message: Human-readable error message.
        argument: Name of the offending argument.
    """

    def __init__(self, message: str, argument: str | None = None) -> None:
        """Initialize the InvalidArgumentError.

        Args:
            message: Human-readable error message.
            argument: Name of the offending argument.
        """
        self.argument = argument
        super().__init__(message)
