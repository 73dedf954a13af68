"""Cross-platform helper to install OS signal handlers on an asyncio loop.

deckhand reacts to ``SIGINT`` and ``SIGTERM`` while it follows container logs
or supervises the bot process.  Instead of wiring global callbacks, the
handlers only *trigger* a :class:`ShutdownToken`; whoever is waiting on the
token (log attachment, process supervisor) decides what the signal means.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    "ShutdownToken",
    "install_handlers",
    "SignalHandlers",
]


class ShutdownToken:
    """Explicit cancellation token carrying the signal that requested shutdown."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._signal: signal.Signals | None = None

    @property
    def signal(self) -> signal.Signals | None:
        return self._signal

    def is_set(self) -> bool:
        return self._event.is_set()

    def trigger(self, sig: signal.Signals) -> None:
        self._signal = sig
        self._event.set()

    def clear(self) -> None:
        """Re-arm the token once the current request has been handled."""
        self._signal = None
        self._event.clear()

    async def wait(self) -> signal.Signals | None:
        await self._event.wait()
        return self._signal


def default_signals() -> list[signal.Signals]:
    sigs: list[signal.Signals] = [signal.SIGINT]
    if os.name != "nt":  # SIGTERM is a no-op on Windows consoles
        sigs.append(signal.SIGTERM)
    return sigs


def install_handlers(
    loop: asyncio.AbstractEventLoop,
    token: ShutdownToken,
    *,
    signals: Iterable[signal.Signals] | None = None,
) -> list[signal.Signals]:
    """Register *signals* on *loop* and forward them to *token*.

    Parameters
    ----------
    loop:
        The running asyncio event loop.  Typically obtained via
        ``asyncio.get_running_loop()``.
    token:
        The :class:`ShutdownToken` to trigger.
    signals:
        Optional iterable of :class:`signal.Signals` to hook up.  When *None*, a
        platform-appropriate default is used (``SIGINT`` + ``SIGTERM`` on
        POSIX, only ``SIGINT`` on Windows).

    Returns
    -------
    list[signal.Signals]
        The list of signals that were successfully installed.
    """
    sigs = list(signals) if signals is not None else default_signals()

    def _make_handler(sig_to_use: signal.Signals) -> Any:
        def _handler() -> None:  # pragma: no cover – real signal path
            logger.info("Received %s, shutting down gracefully…", sig_to_use.name)
            token.trigger(sig_to_use)

        return _handler

    installed: list[signal.Signals] = []
    for sig in sigs:
        try:
            loop.add_signal_handler(sig, _make_handler(sig))
            logger.debug("Registered handler for %s", sig.name)
            installed.append(sig)
        except (NotImplementedError, AttributeError, ValueError, RuntimeError) as e:
            logger.warning("Could not set %s handler: %s", sig.name, e)

    return installed


class SignalHandlers:
    """Async context-manager that installs OS signal handlers and cleans up automatically."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        token: ShutdownToken,
        *,
        signals: Iterable[signal.Signals] | None = None,
    ) -> None:
        self._loop = loop
        self._token = token
        self._signals = signals
        self._installed: list[signal.Signals] = []

    @property
    def installed(self) -> list[signal.Signals]:
        return list(self._installed)

    async def __aenter__(self) -> SignalHandlers:  # noqa: D401 – context manager
        self._installed = install_handlers(self._loop, self._token, signals=self._signals)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any | None,
    ) -> bool:
        for sig in self._installed:
            try:
                self._loop.remove_signal_handler(sig)
                logger.debug("Removed signal handler for %s", sig.name)
            except (
                NotImplementedError,
                AttributeError,
                ValueError,
                RuntimeError,
            ) as e:  # pragma: no cover
                logger.debug("Could not remove %s handler during cleanup: %s", sig.name, e)
        # Do not suppress exceptions
        return False
