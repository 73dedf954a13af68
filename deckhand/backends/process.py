"""Run external commands on the event loop with a hard timeout."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from deckhand.core.exceptions import CommandFailedError, OperationTimeoutError

logger = logging.getLogger(__name__)


async def run_command(
    argv: Sequence[str],
    *,
    display: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    capture: bool = True,
) -> str:
    """Run *argv* and return its stdout.

    *display* is the only form of the command that ever reaches logs or
    exceptions, so argv may safely contain credentials. With ``capture=False``
    the command writes straight to our own stdout/stderr.
    """
    pipe = asyncio.subprocess.PIPE if capture else None
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        stdout=pipe,
        stderr=pipe,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        await _kill(proc)
        raise OperationTimeoutError(display, timeout) from None
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    if proc.returncode != 0:
        raise CommandFailedError(
            display, proc.returncode, stderr.decode(errors="replace") if stderr else ""
        )
    return stdout.decode(errors="replace") if stdout else ""


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
