"""
Docker API Engine
=================

Container lifecycle for the bot image through the Docker SDK. Every SDK call
blocks, so each one runs in the default executor. Image pulls go through the
``docker`` CLI instead, whose process can be killed when it overruns.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from concurrent.futures import Future as ConcurrentFuture
from typing import Any

import docker
from docker.errors import DockerException, NotFound

from deckhand.backends.base import LogSink
from deckhand.backends.process import run_command
from deckhand.core.exceptions import BackendError
from deckhand.types import LaunchSpec
from deckhand.utils.signals import ShutdownToken

logger = logging.getLogger(__name__)


class DockerApiEngine:
    """ContainerEngine backed by the local Docker daemon."""

    def __init__(
        self, pull_timeout: float = 300.0, client: Any | None = None, docker_cli: str = "docker"
    ):
        """
        Args:
            pull_timeout: Upper bound in seconds for a single image pull.
            client: Pre-built ``docker.DockerClient``; created lazily from the environment if None.
            docker_cli: Executable used for image pulls.
        """
        self.pull_timeout = pull_timeout
        self._client = client
        self.docker = docker_cli

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    async def _call(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    async def is_available(self) -> bool:
        try:
            await self._call(lambda: self.client.ping())
            return True
        except Exception as e:  # docker.from_env and ping raise a mix of SDK and requests errors
            logger.debug("Docker engine not available: %s", e)
            return False

    async def pull(self, image: str) -> bool:
        # The CLI process is killed on timeout, so at most one pull is ever in flight.
        await run_command(
            [self.docker, "pull", image],
            display=f"docker pull {image}",
            timeout=self.pull_timeout,
        )
        logger.info("Pulled image %s", image)
        return True

    async def remove(self, name: str) -> bool:
        try:
            container = await self._call(self.client.containers.get, name)
        except NotFound:
            logger.debug("No existing container named %s", name)
            return False

        try:
            await self._call(container.stop)
            await self._call(container.remove)
        except NotFound:
            logger.debug("Container already removed: %s", name)
        logger.info("Removed container: %s", name)
        return True

    async def run(self, spec: LaunchSpec) -> str:
        config: dict[str, Any] = {
            "image": spec.image,
            "name": spec.name,
            "detach": True,
            "environment": spec.environment,
            "restart_policy": {"Name": spec.restart_policy},
            "volumes": {
                # Named volume: outlives the container, never removed here.
                spec.volume: {"bind": spec.mount_path, "mode": "rw"},
            },
        }
        try:
            container = await self._call(lambda: self.client.containers.run(**config))
        except DockerException as e:
            raise BackendError(_docker_error_text(e)) from e
        container_id: str = str(getattr(container, "id", "") or spec.name)
        logger.info("Started container %s (%s)", spec.name, container_id[:12])
        return container_id

    async def follow_logs(self, name: str, sink: LogSink, stop: ShutdownToken) -> None:
        container = await self._call(self.client.containers.get, name)
        stream = await self._call(lambda: container.logs(stream=True, follow=True))

        loop = asyncio.get_running_loop()
        pump = loop.run_in_executor(None, _pump, stream, sink)
        pump.add_done_callback(_log_pump_exit)
        stopper = asyncio.ensure_future(stop.wait())
        try:
            done, _ = await asyncio.wait({pump, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopper.cancel()

        if pump not in done:
            logger.info("Detaching from %s logs; the container keeps running", name)
            close = getattr(stream, "close", None)
            if close is not None:
                close()


def _pump(stream: Iterator[bytes], sink: LogSink) -> None:
    for chunk in stream:
        sink.write(chunk)
        sink.flush()


def _log_pump_exit(fut: asyncio.Future[None] | ConcurrentFuture[None]) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        # Closing the stream on detach ends the reader thread with an error.
        logger.debug("Log stream ended: %s", exc)


def _docker_error_text(e: DockerException) -> str:
    explanation = getattr(e, "explanation", None)
    return str(explanation or e)
