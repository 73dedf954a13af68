"""
Tests for the container acquisition path against the fake engine.
"""

from __future__ import annotations

import asyncio
import io
import signal
from collections.abc import Callable

import pytest

from deckhand.acquisition import ContainerAcquisition
from deckhand.core.exceptions import AcquisitionFailed
from deckhand.core.settings import DeploymentConfig
from deckhand.types import LaunchSpec, RetryPolicy, Strategy
from deckhand.utils.signals import ShutdownToken
from tests.fakes import FakeContainerEngine


async def no_sleep(_: float) -> None:
    return None


@pytest.fixture
def acquisition(
    engine: FakeContainerEngine, make_config: Callable[..., DeploymentConfig]
) -> ContainerAcquisition:
    config = make_config(prefix=".", mongo_uri="mongodb://db")
    return ContainerAcquisition(
        engine, config, RetryPolicy(3, 0), sink=io.BytesIO(), sleep=no_sleep
    )


def test_launch_spec(acquisition: ContainerAcquisition) -> None:
    spec = acquisition.launch_spec()
    assert spec.name == "wasi-md-v7-bot"
    assert spec.volume == "wasi_session"
    assert spec.mount_path == "/app/session"
    assert spec.restart_policy == "unless-stopped"
    assert spec.environment == {
        "SESSION_ID": "abc",
        "OWNER_NUMBER": "123",
        "PREFIX": ".",
        "MONGO_URI": "mongodb://db",
    }


@pytest.mark.asyncio
async def test_happy_path_replaces_old_container(
    acquisition: ContainerAcquisition, engine: FakeContainerEngine
) -> None:
    engine.containers["wasi-md-v7-bot"] = LaunchSpec("old", "wasi-md-v7-bot", {}, "wasi_session", "/app/session")
    engine.log_lines = [b"bot connected\n"]

    outcome = await acquisition.acquire(ShutdownToken())

    assert outcome.success
    assert outcome.strategy is Strategy.CONTAINER
    assert engine.pulls == [acquisition.config.docker_image]
    assert engine.removed == ["wasi-md-v7-bot"]
    assert engine.containers["wasi-md-v7-bot"].image == acquisition.config.docker_image
    assert engine.followed == ["wasi-md-v7-bot"]
    assert isinstance(acquisition.sink, io.BytesIO)
    assert acquisition.sink.getvalue() == b"bot connected\n"


@pytest.mark.asyncio
async def test_pull_is_retried(acquisition: ContainerAcquisition, engine: FakeContainerEngine) -> None:
    engine.pull_failures = 2
    outcome = await acquisition.acquire(ShutdownToken())
    assert outcome.success
    assert len(engine.pulls) == 3


@pytest.mark.asyncio
async def test_pull_exhaustion_fails_without_touching_containers(
    acquisition: ContainerAcquisition, engine: FakeContainerEngine
) -> None:
    engine.pull_failures = 10
    outcome = await acquisition.acquire(ShutdownToken())

    assert not outcome.success
    assert "3 attempts" in (outcome.message or "")
    assert len(engine.pulls) == 3
    assert engine.containers == {}
    assert engine.followed == []


@pytest.mark.asyncio
async def test_cleanup_is_idempotent(
    acquisition: ContainerAcquisition, engine: FakeContainerEngine
) -> None:
    await acquisition.cleanup()
    await acquisition.cleanup()
    assert engine.removed == []


@pytest.mark.asyncio
async def test_cleanup_failure_is_only_a_warning(
    acquisition: ContainerAcquisition, caplog: pytest.LogCaptureFixture
) -> None:
    class BrokenRemove:
        async def remove(self, name: str) -> bool:
            raise RuntimeError("daemon hiccup")

    acquisition.engine = BrokenRemove()  # type: ignore[assignment]
    await acquisition.cleanup()
    assert "daemon hiccup" in caplog.text


@pytest.mark.asyncio
async def test_launch_failure_reports_engine_text(
    acquisition: ContainerAcquisition, engine: FakeContainerEngine
) -> None:
    engine.run_error = "port is already allocated"
    with pytest.raises(AcquisitionFailed, match="port is already allocated"):
        await acquisition.acquire(ShutdownToken())


@pytest.mark.asyncio
async def test_attach_ends_on_termination_signal_and_leaves_container_running(
    acquisition: ContainerAcquisition, engine: FakeContainerEngine
) -> None:
    engine.wait_for_stop = True
    token = ShutdownToken()
    task = asyncio.ensure_future(acquisition.acquire(token))

    while not engine.followed:
        await asyncio.sleep(0.01)
    assert not task.done()

    token.trigger(signal.SIGTERM)
    outcome = await asyncio.wait_for(task, timeout=5)

    assert outcome.success
    assert "wasi-md-v7-bot" in engine.containers
