#!/usr/bin/env python
"""Console entry points: ``deckhand`` (load if needed, then supervise) and ``deckhand-load``.

Neither takes flags; behaviour is driven entirely by the environment.
Exit codes: 0 on hand-off or clean shutdown, 1 on any fatal error, otherwise
the bot's own exit code.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from typing import Any

from deckhand import __version__
from deckhand.core.containers import Container
from deckhand.core.exceptions import DeployError
from deckhand.core.loader import probe_host, run_loader
from deckhand.core.logger_setup import (
    auto_detect_deployment_context,
    bind_deployment_context,
    bind_log_context,
    setup_logging,
)
from deckhand.core.probe import detect_platform
from deckhand.core.settings import DeploymentConfig
from deckhand.core.starter import run_starter
from deckhand.utils.signals import ShutdownToken

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1

Runner = Callable[[DeploymentConfig, Mapping[str, str], Container, ShutdownToken], Awaitable[int]]


async def run_guarded(coro: Coroutine[Any, Any, int]) -> int:
    """Await *coro*, aborting if any background task fails unhandled.

    Errors that only reach the loop's exception handler would otherwise be
    logged and ignored while we keep running in an unknown state.
    """
    loop = asyncio.get_running_loop()
    fatal: asyncio.Future[int] = loop.create_future()

    def _on_unhandled(_loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.error("Unhandled error: %s", context.get("message"), exc_info=exc)
        if not fatal.done():
            fatal.set_exception(exc or RuntimeError(str(context.get("message"))))

    previous = loop.get_exception_handler()
    loop.set_exception_handler(_on_unhandled)
    task = asyncio.ensure_future(coro)
    try:
        done, _ = await asyncio.wait({task, fatal}, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return task.result()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return fatal.result()  # re-raises the unhandled error
    finally:
        if not fatal.done():
            fatal.cancel()
        loop.set_exception_handler(previous)


async def _start(
    config: DeploymentConfig, environ: Mapping[str, str], container: Container, token: ShutdownToken
) -> int:
    return await run_starter(config, environ, container, token)


async def _load(
    config: DeploymentConfig, environ: Mapping[str, str], container: Container, token: ShutdownToken
) -> int:
    await run_loader(config, probe_host(config, environ), container, token)
    return EXIT_OK


def report_fatal(error: DeployError) -> None:
    logger.critical("%s", error.detail)
    if error.hint:
        logger.critical("%s", error.hint)


def run(
    runner: Runner,
    *,
    service: str,
    container_factory: Callable[[DeploymentConfig], Container] | None = None,
) -> int:
    """Configure logging, build the configuration and run *runner*. Returns the exit code."""
    # Probe, log context and settings all read the same process environment.
    env = dict(os.environ)

    setup_logging()
    bind_deployment_context(context=auto_detect_deployment_context(env))
    platform = detect_platform(env)
    bind_log_context(service=service, platform_name=platform.value if platform else None)
    logger.info("deckhand %s starting (%s)", __version__, service)

    try:
        config = DeploymentConfig()
        container = (
            container_factory(config)
            if container_factory is not None
            else Container(config=config, environ=env)
        )

        async def _main() -> int:
            # The token needs the running loop, so it is created inside it.
            return await run_guarded(runner(config, env, container, ShutdownToken()))

        return asyncio.run(_main())
    except DeployError as e:
        report_fatal(e)
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.warning("Interrupted before the bot was handed off")
        return EXIT_FATAL
    except Exception as e:
        logger.critical("Fatal error: %s", e, exc_info=True)
        return EXIT_FATAL


def start_cli() -> None:
    sys.exit(run(_start, service="starter"))


def load_cli() -> None:
    sys.exit(run(_load, service="loader"))


if __name__ == "__main__":
    start_cli()
