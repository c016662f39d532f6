"""Data models for subprocess runners.

Frozen, slotted dataclass describing one executed command.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

__all__ = ["CommandResult"]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of executing a single command.

    Attributes:
        returncode: Exit code from the command (0 = success).
        stdout: Standard output captured from the command.
        stderr: Standard error captured from the command.
        duration_ms: Execution time in milliseconds.
        timed_out: True if the command exceeded its timeout limit.
        command: Argument vector that was executed.
        cwd: Working directory the command ran in.
    """

    returncode: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    command: tuple[str, ...] = ()
    cwd: Path | None = None

    @property
    def success(self) -> bool:
        """True if command completed successfully (returncode 0, no timeout)."""
        return self.returncode == 0 and not self.timed_out
