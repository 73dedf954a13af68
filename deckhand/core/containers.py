"""Dependency injection container wiring the configuration to the real backends."""

from __future__ import annotations

from dependency_injector import containers, providers

from deckhand.backends.docker_api import DockerApiEngine
from deckhand.backends.git_cli import GitCliFetcher
from deckhand.backends.npm import NpmInstaller
from deckhand.core.settings import DeploymentConfig
from deckhand.core.supervisor import ProcessSupervisor
from deckhand.types import RetryPolicy


def _retry_policy(config: DeploymentConfig) -> RetryPolicy:
    return config.retry_policy()


class Container(containers.DeclarativeContainer):
    """Providers for the configuration and the capability backends.

    ``config`` must be supplied by the caller, e.g. ``Container(config=cfg)``.
    Tests override ``engine``, ``fetcher`` and ``installer`` with fakes.
    """

    config = providers.Dependency(instance_of=DeploymentConfig)

    retry_policy = providers.Callable(_retry_policy, config)

    engine = providers.Singleton(DockerApiEngine, pull_timeout=config.provided.pull_timeout)

    fetcher = providers.Singleton(GitCliFetcher, timeout=config.provided.clone_timeout)

    installer = providers.Singleton(
        NpmInstaller,
        command=config.provided.install_command,
        timeout=config.provided.install_timeout,
    )

    # Environment the bot inherits; None means our own.
    environ = providers.Object(None)

    supervisor = providers.Factory(ProcessSupervisor, config, environ=environ)
