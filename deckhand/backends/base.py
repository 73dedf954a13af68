"""
Capability interfaces
=====================

The acquisition paths only talk to these protocols, so tests can swap the
real container engine, git and npm for in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from deckhand.types import LaunchSpec
from deckhand.utils.signals import ShutdownToken


class LogSink(Protocol):
    def write(self, data: bytes, /) -> object: ...

    def flush(self) -> object: ...


@runtime_checkable
class ContainerEngine(Protocol):
    async def is_available(self) -> bool:
        """True when the engine answers; never raises."""
        ...

    async def pull(self, image: str) -> bool: ...

    async def remove(self, name: str) -> bool:
        """Stop and remove *name*. False when no such container exists."""
        ...

    async def run(self, spec: LaunchSpec) -> str:
        """Start a detached container and return its id."""
        ...

    async def follow_logs(self, name: str, sink: LogSink, stop: ShutdownToken) -> None:
        """Copy the container output into *sink* until *stop* fires or the stream ends."""
        ...


@runtime_checkable
class SourceFetcher(Protocol):
    async def clone(self, url: str, branch: str, dest: Path) -> bool: ...


@runtime_checkable
class DependencyInstaller(Protocol):
    async def install(self, directory: Path) -> None: ...
