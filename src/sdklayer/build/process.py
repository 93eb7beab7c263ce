# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shell-free wrapper around external ``dotnet`` command execution."""

from __future__ import annotations

import shutil

# Bandit: commands are built from fixed argument lists and never run through a shell.
import subprocess  # nosec B404
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol, cast

from ..errors import BuildInvocationError

EXIT_NOT_FOUND = 127

OutputCallback = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Execution options shared by every build command."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    output: str


class CommandRunner(Protocol):
    """Callable compatible with :func:`run_command`."""

    def __call__(
        self,
        args: Sequence[str],
        options: CommandOptions | None = None,
        *,
        on_output: OutputCallback | None = None,
    ) -> CommandResult:
        """Run ``args`` and return its result."""


def _resolve_executable(args: Sequence[str], env: Mapping[str, str] | None) -> list[str]:
    """Resolve ``args[0]`` against the ``PATH`` of ``env``.

    Raises:
        ValueError: If ``args`` is empty.
        BuildInvocationError: If the executable cannot be found.
    """

    if not args:
        raise ValueError("subprocess command requires at least one argument")
    head, *rest = args
    if Path(head).is_absolute():
        return [head, *rest]
    search_path = env.get("PATH") if env is not None else None
    resolved = shutil.which(head, path=search_path)
    if resolved is None:
        raise BuildInvocationError(args, EXIT_NOT_FOUND, f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    options: CommandOptions | None = None,
    *,
    on_output: OutputCallback | None = None,
) -> CommandResult:
    """Run ``args`` streaming combined stdout/stderr lines to ``on_output``.

    Args:
        args: Command and arguments.
        options: Working directory and environment.
        on_output: Optional callback receiving each output line without its newline.

    Returns:
        CommandResult: Exit status and the combined output.

    Raises:
        BuildInvocationError: If the executable is missing or exits non-zero. The
            error carries the command output verbatim.
    """

    resolved_options = options or CommandOptions()
    normalized = _resolve_executable(args, resolved_options.env)
    lines: list[str] = []
    # Bandit: argument list is passed directly without shell expansion.
    with subprocess.Popen(  # nosec B603
        normalized,
        cwd=str(resolved_options.cwd) if resolved_options.cwd is not None else None,
        env=dict(resolved_options.env) if resolved_options.env is not None else None,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    ) as process:
        stdout = cast(IO[str], process.stdout)
        for line in stdout:
            stripped = line.rstrip("\n")
            lines.append(stripped)
            if on_output is not None:
                on_output(stripped)
        returncode = process.wait()

    output = "\n".join(lines)
    if returncode != 0:
        raise BuildInvocationError(list(args), returncode, output)
    return CommandResult(args=tuple(args), returncode=returncode, output=output)


__all__ = [
    "CommandOptions",
    "CommandResult",
    "CommandRunner",
    "OutputCallback",
    "run_command",
]
