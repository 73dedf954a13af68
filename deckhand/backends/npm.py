"""Production dependency install for the cloned bot."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from deckhand.backends.process import run_command

logger = logging.getLogger(__name__)


class NpmInstaller:
    def __init__(
        self,
        command: str = "npm install --production --legacy-peer-deps",
        timeout: float = 300.0,
    ):
        self.argv = shlex.split(command)
        self.timeout = timeout

    async def install(self, directory: Path) -> None:
        logger.debug("Running %s in %s", self.argv, directory)
        # Output goes straight to the console so long installs show progress.
        await run_command(
            self.argv,
            display=" ".join(self.argv[:2]),
            cwd=directory,
            timeout=self.timeout,
            capture=False,
        )
