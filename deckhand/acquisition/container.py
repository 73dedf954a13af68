"""
Container acquisition
=====================

Pull the bot image, replace any previous container, start a new one and
follow its logs until we are asked to stop. The container and its session
volume are left running when we detach.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from deckhand.backends.base import ContainerEngine, LogSink
from deckhand.core.exceptions import AcquisitionFailed, BackendError
from deckhand.core.retry import Sleeper, retry
from deckhand.core.settings import DeploymentConfig
from deckhand.types import AcquisitionOutcome, LaunchSpec, RetryPolicy, Strategy
from deckhand.utils.signals import ShutdownToken, SignalHandlers

logger = logging.getLogger(__name__)


class ContainerAcquisition:
    def __init__(
        self,
        engine: ContainerEngine,
        config: DeploymentConfig,
        policy: RetryPolicy,
        *,
        sink: LogSink | None = None,
        sleep: Sleeper | None = None,
    ):
        self.engine = engine
        self.config = config
        self.policy = policy
        self.sink: LogSink = sink if sink is not None else sys.stdout.buffer
        self._sleep: Sleeper = sleep if sleep is not None else asyncio.sleep

    def launch_spec(self) -> LaunchSpec:
        return LaunchSpec(
            image=self.config.docker_image,
            name=self.config.container_name,
            environment=self.config.forwarded_environment(),
            volume=self.config.session_volume,
            mount_path=self.config.session_mount,
        )

    async def pull(self) -> bool:
        return await retry(
            lambda: self.engine.pull(self.config.docker_image),
            self.policy,
            label="Pulling Docker image",
            sleep=self._sleep,
        )

    async def cleanup(self) -> None:
        """Stop and remove the previous container. Safe to call repeatedly."""
        name = self.config.container_name
        logger.info("Cleaning up existing container %s...", name)
        try:
            removed = await self.engine.remove(name)
        except Exception as e:
            logger.warning("Could not remove old container %s: %s", name, e)
            return
        if removed:
            logger.info("Old container removed")

    async def launch(self) -> str:
        spec = self.launch_spec()
        logger.info("Starting container %s from %s", spec.name, spec.image)
        try:
            return await self.engine.run(spec)
        except BackendError as e:
            raise AcquisitionFailed(f"Failed to start container: {e.detail}") from e

    async def acquire(self, stop: ShutdownToken) -> AcquisitionOutcome:
        logger.info("Docker mode enabled, image: %s", self.config.docker_image)

        if not await self.pull():
            return AcquisitionOutcome.failed(
                Strategy.CONTAINER,
                f"Failed to pull Docker image {self.config.docker_image} "
                f"after {self.policy.max_attempts} attempts",
            )
        logger.info("Docker image pulled successfully")

        await self.cleanup()
        await self.launch()
        logger.info("Container started, following logs (Ctrl+C to detach)")

        loop = asyncio.get_running_loop()
        async with SignalHandlers(loop, stop):
            await self.engine.follow_logs(self.config.container_name, self.sink, stop)
        return AcquisitionOutcome.ok(Strategy.CONTAINER, "detached from container logs")
