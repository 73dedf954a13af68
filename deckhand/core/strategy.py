"""Pick exactly one acquisition path for this run."""

from __future__ import annotations

from deckhand.core import hints
from deckhand.core.exceptions import MisconfiguredStrategy
from deckhand.core.probe import ProbeResult
from deckhand.core.settings import DeploymentConfig
from deckhand.types import Strategy


def select_strategy(
    probe: ProbeResult, config: DeploymentConfig, *, engine_available: bool
) -> Strategy:
    """Decide between no-op, container path and source path.

    Pure function of its inputs. Raises ``MisconfiguredStrategy`` when
    USE_DOCKER forces the container path on a host without a working engine.
    Forcing never falls back to the source path.
    """
    if probe.artifact_present:
        return Strategy.NONE

    if config.use_docker is True:
        if not engine_available:
            raise MisconfiguredStrategy(
                "Docker mode requested (USE_DOCKER=true) but no working container engine was found",
                hints.no_engine_hint(probe.platform),
            )
        return Strategy.CONTAINER

    if config.use_docker is False:
        return Strategy.SOURCE

    if probe.container_default and engine_available:
        return Strategy.CONTAINER
    return Strategy.SOURCE
