"""Pydantic models for deployer configuration and credentials."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class DeployOptions(BaseModel):
    """Recognized deployment options with their defaults.

    Relative paths are resolved against the working directory at the time
    the options are built, so later directory changes do not move them.
    """

    use_https: bool = True
    target_directory: Path = Field(default_factory=Path.cwd)
    auto_deploy: bool = True
    branch: str = "master"
    ip_allow_list: list[str] | None = None
    log_destination: Path = Path("deploy.log")

    @field_validator("target_directory", "log_destination")
    @classmethod
    def _make_absolute(cls, value: Path) -> Path:
        return value if value.is_absolute() else Path.cwd() / value


class Credentials(BaseModel):
    """HTTPS credentials embedded in the clone URL."""

    username: str
    password: str | None = None
