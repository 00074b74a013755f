"""Exception hierarchy for the deploy pipeline.

The webhook router maps each subclass to an HTTP status. ``DeployError``
keeps the failing command and its captured output so the log entry and
the response share the same diagnostics.
"""


class DeployerError(Exception):
    """Base exception for all deployer failures."""


class ValidationError(DeployerError):
    """The webhook payload is incomplete or from an unexpected origin."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class AccessDenied(DeployerError):
    """The requesting address is not in the configured allow-list."""

    def __init__(self, remote_ip: str) -> None:
        self.remote_ip = remote_ip
        super().__init__(f"Client IP {remote_ip} not in valid range")


class UnknownProviderError(DeployerError):
    """No provider adapter is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unsupported provider: {name}")


class DeployError(DeployerError):
    """A git command exited with a non-zero status."""

    def __init__(self, command: str, exit_code: int, output: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.output = output
        super().__init__(f'Failed to run command "{command}" (exit {exit_code}). Output: {output}')
