"""
Loader
------
Probe the host, pick an acquisition path and run it. Shared by the
``deckhand-load`` command and by the starter when no entry point exists yet.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from deckhand.acquisition import ContainerAcquisition, SourceAcquisition
from deckhand.core import hints
from deckhand.core.containers import Container
from deckhand.core.exceptions import AcquisitionFailed
from deckhand.core.probe import ProbeResult, probe_environment
from deckhand.core.retry import Sleeper
from deckhand.core.settings import DeploymentConfig, require_identity
from deckhand.core.strategy import select_strategy
from deckhand.types import AcquisitionOutcome, Strategy
from deckhand.utils.signals import ShutdownToken

logger = logging.getLogger(__name__)


def probe_host(config: DeploymentConfig, environ: Mapping[str, str]) -> ProbeResult:
    probe = probe_environment(environ, config.app_root, config.entry_file)
    if probe.platform is not None:
        logger.info("%s platform detected", probe.platform.label)
    return probe


async def run_loader(
    config: DeploymentConfig,
    probe: ProbeResult,
    container: Container,
    token: ShutdownToken,
    *,
    sleep: Sleeper | None = None,
) -> AcquisitionOutcome:
    """Make the artifact available. Raises a ``DeployError`` on every fatal condition."""
    if probe.artifact_present:
        logger.info("Bot code is already present (%s)", probe.reason)
        return AcquisitionOutcome.ok(Strategy.NONE, probe.reason)

    require_identity(config, probe.platform)

    engine = container.engine()
    # Only ask the engine when its answer can change the decision.
    engine_available = False if config.use_docker is False else await engine.is_available()
    strategy = select_strategy(probe, config, engine_available=engine_available)
    logger.info("Acquisition strategy: %s", strategy.value)

    policy = container.retry_policy()
    if strategy is Strategy.CONTAINER:
        outcome = await ContainerAcquisition(engine, config, policy, sleep=sleep).acquire(token)
        if not outcome.success:
            raise AcquisitionFailed(outcome.message or "image pull failed", hints.pull_failed_hint())
        return outcome

    outcome = await SourceAcquisition(
        container.fetcher(),
        container.installer(),
        config,
        policy,
        platform=probe.platform,
        sleep=sleep,
    ).acquire()
    if not outcome.success:
        raise AcquisitionFailed(
            outcome.message or "clone failed", hints.clone_failed_hint(probe.platform)
        )
    logger.info("Bot loaded successfully")
    return outcome
