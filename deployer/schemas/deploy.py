"""Pydantic models describing the outcome of a deploy."""

from enum import Enum

from pydantic import BaseModel


class DeployStatus(str, Enum):
    """Terminal state of a deploy run."""

    DEPLOYED = "deployed"
    SKIPPED = "skipped"


class DeployResult(BaseModel):
    """Returned by ``Deployer.deploy`` and echoed by the webhook endpoint."""

    status: DeployStatus
    commit: str | None = None
    target: str
