"""External command rendering and execution.

This module handles:
- Rendering command declarations (literal, sequence, or generator) to a
  single shell string
- Executing rendered commands through the shell with subprocess
- Translating non-zero exits, stderr output, and timeouts into errors
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from typing import Any

from unibuild.types import CommandLike

logger = logging.getLogger(__name__)

COMMAND_SEPARATOR = " && "


class CommandError(Exception):
    """Raised when an external command fails."""

    def __init__(
        self,
        message: str,
        command: str,
        exit_code: int | None = None,
        stderr: str | None = None,
        code: str = "command_failed",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.code = code


def _stringify(command: str | list[str] | tuple[str, ...]) -> str:
    if isinstance(command, str):
        return command
    return COMMAND_SEPARATOR.join(command)


def render_command(command: CommandLike, owner: Any = None) -> str:
    """Render a command declaration to a literal shell string.

    Args:
        command: Literal string, sequence of strings, or a callable that
            receives ``owner`` and returns either.
        owner: Entity passed to generator callables (asset, linter, tester).

    Returns:
        Command string; sequences are joined with ``&&``.

    Raises:
        TypeError: If the declaration (or generator result) is not a string
            or a sequence of strings.
    """
    if callable(command):
        command = command(owner)

    if isinstance(command, str):
        return command
    if isinstance(command, (list, tuple)) and all(isinstance(c, str) for c in command):
        return _stringify(command)

    raise TypeError(
        f"command must be a string or a sequence of strings, got {type(command).__name__}"
    )


def run_command(
    command: str,
    cwd: str | None = None,
    timeout: int | None = None,
    fail_on_stderr: bool = True,
    shell: str | None = None,
) -> str:
    """Run a command through the shell and return its stdout.

    Args:
        command: Rendered command string.
        cwd: Working directory (current directory if None).
        timeout: Timeout in seconds (None = no timeout).
        fail_on_stderr: Treat any stderr output as a failure.
        shell: Shell executable (system default if None).

    Returns:
        Captured standard output.

    Raises:
        CommandError: If the command exits non-zero, writes to stderr while
            ``fail_on_stderr`` is set, times out, or cannot be started.
    """
    logger.debug("Executing command: %s", command)

    try:
        result = subprocess.run(
            command,
            shell=True,
            executable=shell,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            f'Command "{command}" timed out after {timeout}s',
            command=command,
            exit_code=-1,
            code="command_timeout",
        ) from e
    except OSError as e:
        raise CommandError(
            f'Failed to execute command "{command}": {e}',
            command=command,
            code="execution_error",
        ) from e

    if result.returncode != 0:
        raise CommandError(
            f'Command "{command}" failed with exit code {result.returncode}: '
            f"{result.stderr.strip()}",
            command=command,
            exit_code=result.returncode,
            stderr=result.stderr,
        )

    if fail_on_stderr and result.stderr:
        raise CommandError(
            f'Command "{command}" failed with error: {result.stderr.strip()}',
            command=command,
            exit_code=result.returncode,
            stderr=result.stderr,
        )

    return result.stdout


CommandExecutor = Callable[[str], str]


__all__ = [
    "COMMAND_SEPARATOR",
    "CommandError",
    "CommandExecutor",
    "render_command",
    "run_command",
]
