"""Tests for settings-to-options mapping and option validation."""

from pathlib import Path

import pytest

from deployer.config import Settings
from deployer.schemas.options import DeployOptions


def test_deploy_options_defaults_keep_provider_allow_list() -> None:
    options = Settings(_env_file=None).deploy_options()

    assert options == {
        "use_https": True,
        "auto_deploy": True,
        "branch": "master",
        "log_destination": "deploy.log",
    }


def test_deploy_options_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPLOY_TARGET", "/srv/www")
    monkeypatch.setenv("DEPLOY_BRANCH", "production")
    monkeypatch.setenv("DEPLOY_AUTO", "false")
    monkeypatch.setenv("DEPLOY_IP_ALLOW_LIST", '["1.2.3.4", "10.0.0.0/8"]')

    options = Settings(_env_file=None).deploy_options()

    assert options["target_directory"] == "/srv/www"
    assert options["branch"] == "production"
    assert options["auto_deploy"] is False
    assert options["ip_allow_list"] == ["1.2.3.4", "10.0.0.0/8"]


def test_empty_allow_list_disables_filtering(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPLOY_IP_ALLOW_LIST", "[]")

    assert Settings(_env_file=None).deploy_options()["ip_allow_list"] == []


def test_log_destination_is_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    settings = Settings(_env_file=None, deploy_log_file="logs/deploy.log")

    assert settings.log_destination() == str(Path.cwd() / "logs" / "deploy.log")


def test_options_keep_absolute_paths() -> None:
    options = DeployOptions(target_directory="/srv/www", log_destination="/var/log/deploy.log")

    assert options.target_directory == Path("/srv/www")
    assert options.log_destination == Path("/var/log/deploy.log")
