#!/usr/bin/env python
"""
tests/conftest.py – test harness bootstrap.
Isolates every test from the host environment and provides fake backends.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from dependency_injector import providers

from deckhand.core import probe as probe_module
from deckhand.core.containers import Container
from deckhand.core.logger_setup import setup_logging
from deckhand.core.settings import DeploymentConfig
from tests.fakes import FakeContainerEngine, FakeDependencyInstaller, FakeSourceFetcher

# ------------------------------------------------------------------+
# Global logging setup                                              +
# ------------------------------------------------------------------+
setup_logging({"root": {"level": "WARNING"}})

# Variables the platform probe looks at, on top of every settings field.
_PLATFORM_VARS = ("DYNO", "RAILWAY_ENVIRONMENT", "RENDER", "HEROKU_DOCKER", "HEROKU_SLUG_COMMIT")


@pytest.fixture(autouse=True)
def _isolated_host(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Hide the real environment, any .env file and the host's container markers."""
    for name in DeploymentConfig.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    for name in _PLATFORM_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(probe_module, "DOCKERENV_MARKER", tmp_path / "no-dockerenv")
    monkeypatch.setattr(probe_module, "CGROUP_MARKER", tmp_path / "no-cgroup")


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    root.mkdir()
    return root


@pytest.fixture
def make_config(app_root: Path) -> Callable[..., DeploymentConfig]:
    """Build a DeploymentConfig with identity values and fast retries."""

    def _make(**overrides: Any) -> DeploymentConfig:
        values: dict[str, Any] = {
            "session_id": "abc",
            "owner_number": "123",
            "app_root": app_root,
            "retry_delay": 0,
            # The supervisor runs Python scripts named like the bot's entry file.
            "interpreter": sys.executable,
        }
        values.update(overrides)
        return DeploymentConfig(**values)

    return _make


@pytest.fixture
def engine() -> FakeContainerEngine:
    return FakeContainerEngine()


@pytest.fixture
def fetcher() -> FakeSourceFetcher:
    return FakeSourceFetcher()


@pytest.fixture
def installer() -> FakeDependencyInstaller:
    return FakeDependencyInstaller()


@pytest.fixture
def make_container(
    engine: FakeContainerEngine,
    fetcher: FakeSourceFetcher,
    installer: FakeDependencyInstaller,
) -> Callable[[DeploymentConfig], Container]:
    """DI container wired to the fake backends."""

    def _make(config: DeploymentConfig) -> Container:
        container = Container(config=config)
        container.engine.override(providers.Object(engine))
        container.fetcher.override(providers.Object(fetcher))
        container.installer.override(providers.Object(installer))
        return container

    return _make
