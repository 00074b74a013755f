"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from deployer.schemas.options import DeployOptions


class Settings(BaseSettings):
    """Application settings with environment variable loading and sensible defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "git-deployer"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    # Deployment defaults, mapped onto DeployOptions for every webhook
    deploy_target: str = ""
    deploy_branch: str = "master"
    deploy_auto: bool = True
    deploy_https: bool = True
    # None keeps the provider's published webhook addresses; [] disables filtering
    deploy_ip_allow_list: list[str] | None = None
    deploy_log_file: str = "deploy.log"
    deploy_username: str = ""
    deploy_password: str = ""
    deploy_command_timeout: float | None = None

    def deploy_options(self) -> dict:
        """Return the recognized DeployOptions keys that these settings define.

        ``ip_allow_list`` is only included when explicitly set, so the
        provider default stays in effect otherwise.
        """
        options: dict = {
            "use_https": self.deploy_https,
            "auto_deploy": self.deploy_auto,
            "branch": self.deploy_branch,
            "log_destination": self.deploy_log_file,
        }
        if self.deploy_target:
            options["target_directory"] = self.deploy_target
        if self.deploy_ip_allow_list is not None:
            options["ip_allow_list"] = self.deploy_ip_allow_list
        return options

    def log_destination(self) -> str:
        """Absolute path of the deploy log file."""
        return str(DeployOptions(log_destination=self.deploy_log_file).log_destination)


settings = Settings()
