"""Deploy orchestrator: brings a target directory to the selected commit.

A ``Deployer`` serves one webhook delivery. It owns the deploy options,
optional HTTPS credentials and IP filtering, and runs the git protocol:

1. resolve the clone URL and the commit to deploy (no-op if either is empty)
2. create the target directory when missing
3. probe ``git rev-parse``; on failure ``git init`` and add ``origin``
4. ``git pull origin <branch>``
5. ``git checkout <commit>``

Every command runs with the target as its explicit working directory, so
the process-wide current directory is never changed. Deploys to the same
target are serialized by a per-path lock.
"""

from __future__ import annotations

import ipaddress
import re
import shlex
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import structlog

from deployer.errors import AccessDenied, DeployError
from deployer.logging_config import log_to_file
from deployer.schemas.deploy import DeployResult, DeployStatus
from deployer.schemas.options import Credentials, DeployOptions
from deployer.schemas.payload import Payload
from deployer.services.command_runner import CommandRunner, SubprocessRunner
from deployer.services.commit_selector import select_commit
from deployer.services.providers import ProviderAdapter

logger = structlog.get_logger()

# userinfo password of a URL, e.g. the ``:pw`` in ``https://bob:pw@host/``
_URL_PASSWORD = re.compile(r"(://[^:/@\s]+):[^@\s]+@")

# One lock per resolved target, kept for the life of the process. Targets
# come from configuration, so the map stays small.
_target_locks: dict[str, threading.Lock] = {}
_target_locks_guard = threading.Lock()


def target_lock(target: Path) -> threading.Lock:
    """Return the lock shared by every deploy into ``target``."""
    key = str(target.resolve())
    with _target_locks_guard:
        return _target_locks.setdefault(key, threading.Lock())


def ip_allowed(remote_ip: str, allow_list: Sequence[str]) -> bool:
    """Check ``remote_ip`` against exact entries and CIDR networks."""
    if remote_ip in allow_list:
        return True
    try:
        address = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    for entry in allow_list:
        try:
            network = ipaddress.ip_network(entry, strict=False)
        except ValueError:
            continue
        if address.version == network.version and address in network:
            return True
    return False


class Deployer:
    """Sequences one deployment for a validated payload."""

    def __init__(
        self,
        payload: Payload,
        provider: ProviderAdapter,
        options: Mapping[str, Any] | None = None,
        runner: CommandRunner | None = None,
        command_timeout: float | None = None,
    ) -> None:
        self.payload = payload
        self.provider = provider
        self.runner: CommandRunner = runner or SubprocessRunner()
        self.command_timeout = command_timeout
        self.credentials: Credentials | None = None
        self.options = DeployOptions(ip_allow_list=provider.default_ip_allow_list)
        if options:
            self.configure(options)

    def configure(self, options: Mapping[str, Any]) -> None:
        """Overwrite recognized option keys; unknown keys are ignored."""
        recognized = {k: v for k, v in options.items() if k in DeployOptions.model_fields}
        self.options = DeployOptions.model_validate({**self.options.model_dump(), **recognized})

    def login(self, username: str, password: str | None = None) -> None:
        """Store HTTPS credentials; forces ``use_https``."""
        self.credentials = Credentials(username=username, password=password)
        self.configure({"use_https": True})
        logger.info("signing_in", username=username)

    def authorize_request(self, remote_ip: str) -> None:
        """Reject ``remote_ip`` unless it passes the configured allow-list.

        Raises:
            AccessDenied: If an allow-list is configured and the address is
                not covered by it.
        """
        allow_list = self.options.ip_allow_list
        if allow_list and not ip_allowed(remote_ip, allow_list):
            logger.info("ip_address_rejected", remote_ip=remote_ip)
            raise AccessDenied(remote_ip)
        logger.info("ip_address_filtered", remote_ip=remote_ip)

    def build_url(self) -> str:
        return self.provider.build_url(self.payload, self.options.use_https, self.credentials)

    def find_commit(self) -> str | None:
        return select_commit(self.payload.commits, self.options.auto_deploy)

    def execute(self, command: Sequence[str], cwd: Path) -> str:
        """Run one command in ``cwd`` and return its output.

        Raises:
            DeployError: If the command exits non-zero. Credentials are
                redacted from the recorded command and output.
        """
        display = self._redact(shlex.join(command))
        logger.info("executing_command", command=display, cwd=str(cwd))
        result = self.runner.run(command, cwd, self.command_timeout)
        output = self._redact(result.output)
        if not result.ok:
            raise DeployError(display, result.exit_code, output)
        if output:
            logger.info("command_output", command=display, output=output)
        return output

    def deploy(self) -> DeployResult:
        """Bring the target directory to the selected commit.

        Returns a ``skipped`` result when no URL or commit resolves.

        Raises:
            DeployError: If a git step after the repository probe fails.
        """
        with log_to_file(self.options.log_destination):
            url = self.build_url()
            node = self.find_commit()
            target = self.options.target_directory

            if url and node:
                logger.info("commit_selected", commit=node, target=str(target))
                with target_lock(target):
                    self._sync(target, url, node)
                result = DeployResult(
                    status=DeployStatus.DEPLOYED, commit=node, target=str(target)
                )
            else:
                logger.info("no_node_found_to_deploy")
                result = DeployResult(status=DeployStatus.SKIPPED, target=str(target))

            logger.info("deploy_completed", status=result.status.value, commit=result.commit)
        return result

    def _sync(self, target: Path, url: str, node: str) -> None:
        if not target.is_dir():
            logger.info("target_directory_created", path=str(target))
            target.mkdir(parents=True, exist_ok=True)

        try:
            self.execute(["git", "rev-parse"], target)
        except DeployError:
            logger.info("repository_not_found", path=str(target))
            self.execute(["git", "init"], target)
            self.execute(["git", "remote", "add", "origin", url], target)

        logger.info("checking_out_repository", commit=node, branch=self.options.branch)
        self.execute(["git", "pull", "origin", self.options.branch], target)
        self.execute(["git", "checkout", node], target)

    @staticmethod
    def _redact(text: str) -> str:
        return _URL_PASSWORD.sub(r"\1:***@", text)
