"""
Source acquisition
==================

Clone the private bot repository with a token-authenticated URL, strip the
git metadata and install production dependencies.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from deckhand.backends.base import DependencyInstaller, SourceFetcher
from deckhand.core import hints
from deckhand.core.exceptions import MissingCredential
from deckhand.core.probe import HostingPlatform
from deckhand.core.retry import Sleeper, retry
from deckhand.core.settings import DeploymentConfig
from deckhand.types import AcquisitionOutcome, RetryPolicy, Strategy
from deckhand.utils.masking import mask_token

logger = logging.getLogger(__name__)


def build_clone_url(token: str, host: str, repository: str) -> str:
    return f"https://oauth2:{token}@{host}/{repository}.git"


class SourceAcquisition:
    def __init__(
        self,
        fetcher: SourceFetcher,
        installer: DependencyInstaller,
        config: DeploymentConfig,
        policy: RetryPolicy,
        *,
        platform: HostingPlatform | None = None,
        sleep: Sleeper | None = None,
    ):
        self.fetcher = fetcher
        self.installer = installer
        self.config = config
        self.policy = policy
        self.platform = platform
        self._sleep: Sleeper = sleep if sleep is not None else asyncio.sleep

    @property
    def target_dir(self) -> Path:
        return self.config.artifact_dir

    def require_token(self) -> str:
        token = self.config.gitlab_token
        if not token:
            raise MissingCredential(
                "GITLAB_TOKEN environment variable is not set", hints.missing_token_hint(self.platform)
            )
        return token

    def clean_slate(self) -> None:
        if not self.target_dir.exists():
            return
        logger.info("Cleaning existing installation at %s...", self.target_dir)
        try:
            shutil.rmtree(self.target_dir)
        except OSError as e:
            logger.warning("Could not fully clean %s: %s", self.target_dir, e)
            return
        logger.info("Old installation removed")

    async def clone(self, token: str) -> bool:
        url = build_clone_url(token, self.config.git_host, self.config.repository)
        branch = self.config.branch

        async def attempt() -> bool:
            # A failed attempt can leave a partial checkout that git refuses to clone over.
            if self.target_dir.exists():
                shutil.rmtree(self.target_dir, ignore_errors=True)
            return await self.fetcher.clone(url, branch, self.target_dir)

        return await retry(
            attempt,
            self.policy,
            label=f"Cloning {self.config.repository}@{branch}",
            secrets=(token, url),
            sleep=self._sleep,
        )

    def strip_vcs_metadata(self) -> None:
        git_dir = self.target_dir / ".git"
        if git_dir.exists():
            logger.info("Securing installation...")
            shutil.rmtree(git_dir)
            logger.info("Git history removed")

    async def install_dependencies(self) -> None:
        manifest = self.target_dir / self.config.dependency_manifest
        if not manifest.exists():
            logger.info("No %s found, skipping dependency install", manifest.name)
            return
        logger.info("Installing core dependencies...")
        try:
            await self.installer.install(self.target_dir)
        except Exception as e:
            logger.warning("Some dependencies may have failed (%s). Bot might still work.", e)
            return
        logger.info("Dependencies installed")

    async def acquire(self) -> AcquisitionOutcome:
        if self.platform is HostingPlatform.HEROKU:
            logger.info("Heroku source mode (optimized for Heroku dynos)")
        else:
            logger.info("Source clone mode enabled")

        token = self.require_token()
        logger.info("Token detected: %s", mask_token(token))
        logger.info("Target branch: %s", self.config.branch)

        self.clean_slate()

        if not await self.clone(token):
            return AcquisitionOutcome.failed(
                Strategy.SOURCE,
                f"Failed to clone {self.config.repository} after {self.policy.max_attempts} attempts",
            )
        logger.info("Repository cloned successfully")

        self.strip_vcs_metadata()
        await self.install_dependencies()
        return AcquisitionOutcome.ok(Strategy.SOURCE, f"source installed in {self.target_dir}")
