"""
Starter
-------
Run the loader when the bot is not installed yet, then hand over to the
process supervisor.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from deckhand.core.containers import Container
from deckhand.core.loader import probe_host, run_loader
from deckhand.core.retry import Sleeper
from deckhand.core.settings import DeploymentConfig
from deckhand.types import Strategy
from deckhand.utils.signals import ShutdownToken

logger = logging.getLogger(__name__)


async def run_starter(
    config: DeploymentConfig,
    environ: Mapping[str, str],
    container: Container,
    token: ShutdownToken,
    *,
    sleep: Sleeper | None = None,
) -> int:
    """Returns the process exit code."""
    supervisor = container.supervisor()

    if not (config.artifact_dir / config.entry_file).is_file():
        # Also covers images that ship the bot at the root: the probe short-circuits there.
        logger.info("Core not found, running loader...")
        probe = probe_host(config, environ)
        outcome = await run_loader(config, probe, container, token, sleep=sleep)
        if outcome.strategy is Strategy.CONTAINER:
            # The bot runs inside its own container; there is nothing to supervise here.
            return 0

    return await supervisor.run(token)
