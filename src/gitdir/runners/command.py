"""Command runner for safe async subprocess execution.

This module provides the CommandRunner class for executing external commands
with timeout handling, retry of transient failures and proper error
management. It knows nothing about git; the git layer in
``gitdir.runners.git`` builds the argument vectors and interprets results.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    RetryError,
    stop_after_attempt,
    wait_exponential,
)

from gitdir.exceptions import WorkingDirectoryError
from gitdir.runners.models import CommandResult

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["CommandRunner", "RetryableCommandError", "decode_output"]

TERMINATION_GRACE_PERIOD: float = 2.0


def decode_output(data: bytes) -> str:
    """Decode captured process output without losing undecodable bytes.

    Bytes that are not valid UTF-8 (legacy file names, commit messages in
    other encodings) map to lone surrogates, the same way ``os.fsdecode``
    treats file names. Passing such a string back as an argument re-encodes
    the original bytes, so paths read from git can be handed back to git.
    """
    return data.decode("utf-8", errors="surrogateescape")


class RetryableCommandError(Exception):
    """Raised internally to make tenacity retry a transient failure.

    Wraps the CommandResult so the last attempt is available once retries
    are exhausted.
    """

    def __init__(self, result: CommandResult, message: str = "Command failed") -> None:
        super().__init__(message)
        self.result = result


class CommandRunner:
    """Execute commands safely with timeout and environment control.

    Provides async command execution with:
    - Timeout handling with graceful termination (SIGTERM + grace period + SIGKILL)
    - Working directory validation
    - Environment variable inheritance and override
    - Retry with exponential backoff for timed-out commands
    - Duration measurement

    Attributes:
        cwd: Working directory for command execution.
        timeout: Default timeout in seconds (None for no timeout).

    Example:
        ```python
        runner = CommandRunner(cwd=Path("/project"), timeout=30.0)
        result = await runner.run(["git", "rev-parse", "HEAD"])
        if result.success:
            print(result.stdout.strip())
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        timeout: float | None = 120.0,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the CommandRunner.

        Args:
            cwd: Working directory for commands. If None, uses current directory.
            timeout: Default timeout in seconds. Use None for no timeout.
            env: Additional environment variables to merge with os.environ.
        """
        self._cwd = cwd
        self._timeout = timeout
        self._extra_env = env or {}

    @property
    def cwd(self) -> Path | None:
        """Working directory for command execution."""
        return self._cwd

    @property
    def timeout(self) -> float | None:
        """Default timeout in seconds."""
        return self._timeout

    def _validate_cwd(self, cwd: Path | None) -> None:
        """Validate working directory exists.

        Raises:
            WorkingDirectoryError: If directory does not exist.
        """
        if cwd is not None and not cwd.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {cwd}",
                path=cwd,
            )

    def _build_env(self, extra_env: dict[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    def is_retryable(self, result: CommandResult) -> bool:
        """Determine if a command failure should be retried.

        Only timeouts are considered transient. A nonzero exit from git is a
        real answer (missing ref, rejected push) and is returned as-is.
        """
        return result.timed_out

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
        max_retries: int = 0,
        retry_delay: float = 1.0,
    ) -> CommandResult:
        """Execute a command and return the result.

        Never raises for a nonzero exit code; inspect ``CommandResult``.

        Args:
            command: Command and arguments as a sequence (no shell expansion).
            cwd: Override working directory for this command.
            timeout: Override timeout. Use 0 or negative for no timeout.
            env: Additional environment variables for this command.
            max_retries: Maximum number of retry attempts (default 0 = no retries).
            retry_delay: Initial delay between retries in seconds (default 1.0).

        Returns:
            CommandResult with returncode, stdout, stderr, duration_ms, timed_out.

        Raises:
            WorkingDirectoryError: If working directory does not exist.
        """
        effective_cwd = cwd if cwd is not None else self._cwd
        self._validate_cwd(effective_cwd)

        effective_timeout = timeout if timeout is not None else self._timeout
        if effective_timeout is not None and effective_timeout <= 0:
            effective_timeout = None

        effective_env = self._build_env(env)

        # stop_after_attempt(1) = no retries, (2) = 1 retry, etc.
        last_result: CommandResult | None = None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_retries + 1),
                wait=wait_exponential(multiplier=retry_delay, min=retry_delay, max=10),
                reraise=True,
            ):
                with attempt:
                    result = await self._execute_once(
                        command, effective_cwd, effective_timeout, effective_env
                    )
                    last_result = result

                    if result.success or not self.is_retryable(result):
                        return result

                    raise RetryableCommandError(result, "Command failed, retrying...")

        except RetryError as e:
            if last_result is not None:
                return last_result
            raise RuntimeError("Retry exhausted with no result") from e
        except RetryableCommandError:
            # reraise=True surfaces the last attempt's exception
            if last_result is not None:
                return last_result
            raise

        assert last_result is not None
        return last_result

    async def _execute_once(
        self,
        command: Sequence[str],
        cwd: Path | None,
        timeout: float | None,
        env: dict[str, str],
    ) -> CommandResult:
        """Execute a command once without retries."""
        start_time = time.monotonic()
        timed_out = False
        returncode = 0
        stdout = ""
        stderr = ""

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )
            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(), timeout=timeout
                )
            except TimeoutError:
                timed_out = True
                returncode = -1
                await self._stop(process)
            else:
                returncode = process.returncode or 0
                stdout = decode_output(stdout_bytes)
                stderr = decode_output(stderr_bytes)
        except FileNotFoundError:
            returncode = 127
            stderr = f"Command not found: {command[0]}"
        except PermissionError:
            returncode = 126
            stderr = f"Permission denied: {command[0]}"

        return CommandResult(
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=int((time.monotonic() - start_time) * 1000),
            timed_out=timed_out,
            command=tuple(command),
            cwd=cwd,
        )

    async def _stop(self, process: asyncio.subprocess.Process) -> None:
        """Terminate a timed-out process, killing it after the grace period."""
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=TERMINATION_GRACE_PERIOD)
        except TimeoutError:
            process.kill()
            await process.wait()
