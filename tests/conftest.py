"""Shared test fixtures for the command runner double and FastAPI test client."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from deployer.config import settings
from deployer.dependencies import get_command_runner
from deployer.main import app
from deployer.services.command_runner import InMemoryCommandRunner


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only; the app relies on asyncio.to_thread."""
    return "asyncio"


@pytest.fixture
def command_runner() -> InMemoryCommandRunner:
    """Create a fresh in-memory command runner for test inspection."""
    return InMemoryCommandRunner()


@pytest.fixture
def deploy_target(tmp_path: Path) -> Path:
    """A target directory path that does not exist yet."""
    return tmp_path / "site"


@pytest.fixture
def deploy_settings(monkeypatch: pytest.MonkeyPatch, deploy_target: Path):
    """Point the deploy settings at a temporary target with IP filtering off.

    Tests that need an allow-list or credentials patch the returned
    settings object further.
    """
    monkeypatch.setattr(settings, "deploy_target", str(deploy_target))
    monkeypatch.setattr(settings, "deploy_ip_allow_list", [])
    monkeypatch.setattr(settings, "deploy_auto", True)
    monkeypatch.setattr(settings, "deploy_username", "")
    monkeypatch.setattr(settings, "deploy_password", "")
    return settings


@pytest.fixture
async def client(
    command_runner: InMemoryCommandRunner,
    deploy_settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient with the command runner overridden.

    No git command ever runs; every call is recorded on ``command_runner``.
    Requests arrive from 127.0.0.1.
    """
    app.dependency_overrides[get_command_runner] = lambda: command_runner
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
