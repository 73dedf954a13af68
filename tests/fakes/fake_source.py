"""
Fake git and npm backends
=========================

The fetcher "clones" by writing a small checkout to disk, so the rest of the
source path (hygiene, dependency install, supervision) runs for real.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from deckhand.core.exceptions import CommandFailedError

# Runs under the Python interpreter the tests configure as the bot interpreter.
DEFAULT_ENTRY = "import sys\nsys.exit(0)\n"


@dataclass(frozen=True)
class CloneCall:
    url: str
    branch: str
    dest: Path


class FakeSourceFetcher:
    def __init__(self, entry_file: str = "index.js", entry_source: str = DEFAULT_ENTRY):
        self.entry_file = entry_file
        self.entry_source = entry_source
        self.fail_times = 0
        self.with_manifest = True
        self.calls: list[CloneCall] = []

    async def clone(self, url: str, branch: str, dest: Path) -> bool:
        self.calls.append(CloneCall(url, branch, dest))
        if dest.exists():
            raise CommandFailedError("git clone", 128, f"destination path '{dest}' already exists")
        if self.fail_times > 0:
            self.fail_times -= 1
            # Leave a partial checkout behind, like an interrupted clone.
            dest.mkdir(parents=True)
            raise CommandFailedError(
                "git clone", 128, f"fatal: Authentication failed for '{url}'"
            )
        (dest / ".git").mkdir(parents=True)
        (dest / ".git" / "HEAD").write_text("ref: refs/heads/master\n")
        (dest / self.entry_file).write_text(self.entry_source)
        if self.with_manifest:
            (dest / "package.json").write_text('{"name": "bot"}')
        return True


class FakeDependencyInstaller:
    def __init__(self) -> None:
        self.calls: list[Path] = []
        self.error: Exception | None = None

    async def install(self, directory: Path) -> None:
        self.calls.append(directory)
        if self.error is not None:
            raise self.error
