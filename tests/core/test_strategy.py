"""
Tests for the acquisition strategy selector.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable

import pytest

from deckhand.core.exceptions import MisconfiguredStrategy
from deckhand.core.probe import HostingPlatform, ProbeKind, ProbeResult
from deckhand.core.settings import DeploymentConfig
from deckhand.core.strategy import select_strategy
from deckhand.types import Strategy

PROBES = [
    ProbeResult(ProbeKind.ARTIFACT_PRESENT, None, "marker"),
    ProbeResult(ProbeKind.BARE_HOST),
    ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.HEROKU),
    ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.HEROKU, heroku_container_stack=True),
    ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.RAILWAY),
    ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.RENDER),
]
USE_DOCKER = [True, False, None]
ENGINE = [True, False]


@pytest.mark.parametrize("probe,use_docker,engine", list(itertools.product(PROBES, USE_DOCKER, ENGINE)))
def test_selector_is_total_and_exclusive(
    make_config: Callable[..., DeploymentConfig],
    probe: ProbeResult,
    use_docker: bool | None,
    engine: bool,
) -> None:
    config = make_config(use_docker=use_docker)
    try:
        strategy = select_strategy(probe, config, engine_available=engine)
    except MisconfiguredStrategy:
        # Only a forced container path on a host without an engine is fatal.
        assert use_docker is True and not engine and not probe.artifact_present
        return

    assert strategy in (Strategy.NONE, Strategy.CONTAINER, Strategy.SOURCE)
    if probe.artifact_present:
        assert strategy is Strategy.NONE
    else:
        assert strategy is not Strategy.NONE
    if strategy is Strategy.CONTAINER:
        assert engine or use_docker is True


def test_forced_container_without_engine_is_fatal(
    make_config: Callable[..., DeploymentConfig],
) -> None:
    with pytest.raises(MisconfiguredStrategy) as excinfo:
        select_strategy(
            ProbeResult(ProbeKind.BARE_HOST), make_config(use_docker=True), engine_available=False
        )
    assert "USE_DOCKER=false" in (excinfo.value.hint or "")


@pytest.mark.parametrize(
    "probe,use_docker,engine,expected",
    [
        (ProbeResult(ProbeKind.BARE_HOST), None, True, Strategy.CONTAINER),
        (ProbeResult(ProbeKind.BARE_HOST), None, False, Strategy.SOURCE),
        (ProbeResult(ProbeKind.BARE_HOST), False, True, Strategy.SOURCE),
        (ProbeResult(ProbeKind.BARE_HOST), True, True, Strategy.CONTAINER),
        (ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.HEROKU), None, True, Strategy.SOURCE),
        (ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.HEROKU), True, True, Strategy.CONTAINER),
        (ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.RENDER), None, True, Strategy.CONTAINER),
        (ProbeResult(ProbeKind.PLATFORM_HINT, HostingPlatform.RAILWAY), None, False, Strategy.SOURCE),
        (ProbeResult(ProbeKind.ARTIFACT_PRESENT), True, False, Strategy.NONE),
    ],
)
def test_selection_table(
    make_config: Callable[..., DeploymentConfig],
    probe: ProbeResult,
    use_docker: bool | None,
    engine: bool,
    expected: Strategy,
) -> None:
    config = make_config(use_docker=use_docker)
    assert select_strategy(probe, config, engine_available=engine) is expected
