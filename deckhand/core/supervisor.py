"""
Process supervisor
------------------
Runs the bot's entry file as a child process, relays SIGINT/SIGTERM to it
and turns its exit status into ours.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from deckhand.core.exceptions import ChildSpawnFailed, EntryPointNotFound
from deckhand.core.settings import DeploymentConfig
from deckhand.utils.signals import ShutdownToken, SignalHandlers

logger = logging.getLogger(__name__)

# Relayed and then we leave without waiting; every other signal waits for the child.
EXIT_IMMEDIATELY_ON: frozenset[signal.Signals] = frozenset({signal.SIGINT})


@dataclass
class SupervisedProcess:
    workdir: Path
    entry: Path
    env: dict[str, str]
    process: asyncio.subprocess.Process | None = field(default=None, repr=False)

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None


def exit_code_of(returncode: int | None) -> int:
    """The child's exit code, or 0 when it is indeterminate (killed by a signal)."""
    if returncode is None or returncode < 0:
        return 0
    return returncode


class ProcessSupervisor:
    def __init__(self, config: DeploymentConfig, environ: Mapping[str, str] | None = None):
        self.config = config
        # The bot sees our environment plus the identity values resolved from it and .env.
        self._environ = config.child_environment(os.environ if environ is None else environ)
        self.child: SupervisedProcess | None = None

    def candidates(self) -> list[Path]:
        """The artifact directory first, then the root for images that ship the bot there."""
        entry = self.config.entry_file
        return [self.config.artifact_dir / entry, self.config.app_root / entry]

    def locate_entry_point(self) -> Path | None:
        for path in self.candidates():
            if path.is_file():
                return path
        return None

    def resolve_entry_point(self) -> Path:
        entry = self.locate_entry_point()
        if entry is None:
            raise EntryPointNotFound(self.config.entry_file, [str(p.parent) for p in self.candidates()])
        return entry

    async def spawn(self) -> SupervisedProcess:
        entry = self.resolve_entry_point()
        child = SupervisedProcess(workdir=entry.parent, entry=entry, env=self._environ)
        logger.info("Launching bot: %s %s", self.config.interpreter, entry.name)
        try:
            # stdin/stdout/stderr are inherited from us.
            child.process = await asyncio.create_subprocess_exec(
                self.config.interpreter,
                str(entry),
                cwd=str(child.workdir),
                env=child.env,
            )
        except OSError as e:
            raise ChildSpawnFailed(
                f"Failed to start bot with {self.config.interpreter!r}: {e}",
                f"Make sure {self.config.interpreter!r} is installed and on PATH.",
            ) from e
        self.child = child
        logger.debug("Bot running with pid %s", child.pid)
        return child

    def relay(self, sig: signal.Signals) -> None:
        proc = self.child.process if self.child is not None else None
        if proc is None or proc.returncode is not None:
            return
        try:
            proc.send_signal(sig)
        except ProcessLookupError:
            logger.debug("Child already gone, %s not delivered", sig.name)

    async def supervise(self, token: ShutdownToken) -> int:
        """Wait for the child, relaying shutdown requests. Returns our exit code."""
        if self.child is None or self.child.process is None:
            raise RuntimeError("supervise() called before spawn()")
        proc = self.child.process

        exited = asyncio.ensure_future(proc.wait())
        try:
            while True:
                requested = asyncio.ensure_future(token.wait())
                done, _ = await asyncio.wait({exited, requested}, return_when=asyncio.FIRST_COMPLETED)
                if exited in done:
                    requested.cancel()
                    break

                sig = requested.result()
                token.clear()
                if sig is None:
                    continue
                logger.warning("Received %s, forwarding to bot...", sig.name)
                self.relay(sig)
                if sig in EXIT_IMMEDIATELY_ON:
                    return 0
        finally:
            if not exited.done():
                exited.cancel()

        code = exit_code_of(proc.returncode)
        logger.info("Bot exited with code: %s", proc.returncode)
        return code

    async def run(self, token: ShutdownToken) -> int:
        await self.spawn()
        loop = asyncio.get_running_loop()
        async with SignalHandlers(loop, token):
            return await self.supervise(token)
