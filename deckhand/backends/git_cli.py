"""Shallow, non-interactive git clones through the ``git`` CLI."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from deckhand.backends.process import run_command

logger = logging.getLogger(__name__)


class GitCliFetcher:
    def __init__(self, timeout: float = 120.0, git: str = "git", env: Mapping[str, str] | None = None):
        self.timeout = timeout
        self.git = git
        self._env = dict(env) if env is not None else dict(os.environ)
        # Never hang on a credential prompt.
        self._env["GIT_TERMINAL_PROMPT"] = "0"

    async def clone(self, url: str, branch: str, dest: Path) -> bool:
        logger.debug("Cloning branch %s into %s", branch, dest)
        await run_command(
            [self.git, "clone", "--depth", "1", "--branch", branch, url, str(dest)],
            display=f"git clone --branch {branch}",
            env=self._env,
            timeout=self.timeout,
        )
        return True
