"""Command execution abstraction with protocol-based swappable implementations.

Production code uses ``SubprocessRunner`` which runs each command as an
argument list (never through a shell) inside an explicit working directory.
Tests use ``InMemoryCommandRunner`` which records commands and returns
scripted results without touching git.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class CommandResult:
    """Exit status and combined stdout/stderr of a finished command."""

    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(Protocol):
    """Protocol for running a command to completion."""

    def run(
        self, command: Sequence[str], cwd: Path, timeout: float | None = None
    ) -> CommandResult:
        """Run ``command`` in ``cwd`` and block until it exits."""
        ...


class SubprocessRunner:
    """Production implementation backed by ``subprocess.run``.

    A missing executable or an expired timeout is reported as a failed
    result (exit codes 127 and 124, as a shell would) instead of raising, so
    callers only ever branch on ``CommandResult.ok``.
    """

    def run(
        self, command: Sequence[str], cwd: Path, timeout: float | None = None
    ) -> CommandResult:
        try:
            completed = subprocess.run(
                list(command),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            return CommandResult(exit_code=127, output=str(exc))
        except subprocess.TimeoutExpired as exc:
            output = exc.output or ""
            if isinstance(output, bytes):
                output = output.decode(errors="replace")
            return CommandResult(exit_code=124, output=f"{output}timed out after {timeout}s")
        return CommandResult(exit_code=completed.returncode, output=completed.stdout or "")


class InMemoryCommandRunner:
    """Test double that records commands and returns scripted results.

    Results are matched by command prefix, so ``fail(["git", "rev-parse"])``
    covers ``git rev-parse`` with any trailing arguments. Unmatched commands
    succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self._results: list[tuple[tuple[str, ...], CommandResult]] = []

    def respond(self, prefix: Sequence[str], result: CommandResult) -> None:
        """Return ``result`` for every command starting with ``prefix``."""
        self._results.append((tuple(prefix), result))

    def fail(self, prefix: Sequence[str], exit_code: int = 1, output: str = "") -> None:
        """Shortcut for a non-zero result."""
        self.respond(prefix, CommandResult(exit_code=exit_code, output=output))

    @property
    def commands(self) -> list[list[str]]:
        return [call["command"] for call in self.calls]

    def run(
        self, command: Sequence[str], cwd: Path, timeout: float | None = None
    ) -> CommandResult:
        """Append call details and return the first matching scripted result."""
        self.calls.append({"command": list(command), "cwd": cwd, "timeout": timeout})
        for prefix, result in self._results:
            if tuple(command[: len(prefix)]) == prefix:
                return result
        return CommandResult(exit_code=0)
