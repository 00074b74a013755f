"""Centralized FastAPI dependencies for use with Depends()."""

from deployer.services.command_runner import CommandRunner, SubprocessRunner

_command_runner: CommandRunner = SubprocessRunner()


def get_command_runner() -> CommandRunner:
    """Return the application command runner instance.

    Defaults to SubprocessRunner. Tests override it with
    ``InMemoryCommandRunner`` through ``app.dependency_overrides``.
    """
    return _command_runner


__all__ = [
    "get_command_runner",
]
