"""
Environment probe
-----------------
Read-only classification of the host: does it already contain the bot
artifact, is it a known hosting platform, or is it a bare host?
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


DOCKERENV_MARKER = Path("/.dockerenv")
CGROUP_MARKER = Path("/proc/1/cgroup")
CGROUP_KEYWORDS: tuple[str, ...] = ("docker", "containerd")
# Strings that only appear in the real bot entry file, never in a placeholder.
CONTENT_MARKERS: tuple[str, ...] = ("WASI-MD", "baileys", "makeWASocket")


class HostingPlatform(Enum):
    HEROKU = "heroku"
    RAILWAY = "railway"
    RENDER = "render"

    @property
    def label(self) -> str:
        return self.name.capitalize()


# Env var whose presence identifies each platform, checked in this order.
PLATFORM_ENV_VARS: tuple[tuple[HostingPlatform, str], ...] = (
    (HostingPlatform.HEROKU, "DYNO"),
    (HostingPlatform.RAILWAY, "RAILWAY_ENVIRONMENT"),
    (HostingPlatform.RENDER, "RENDER"),
)


class ProbeKind(Enum):
    ARTIFACT_PRESENT = "artifact_present"
    PLATFORM_HINT = "platform_hint"
    BARE_HOST = "bare_host"


@dataclass(frozen=True)
class ProbeResult:
    kind: ProbeKind
    platform: HostingPlatform | None = None
    reason: str = ""
    # Heroku only runs containers when the app uses the container stack.
    heroku_container_stack: bool = field(default=False, compare=False)

    @property
    def artifact_present(self) -> bool:
        return self.kind is ProbeKind.ARTIFACT_PRESENT

    @property
    def container_default(self) -> bool:
        """Whether the container path is allowed when USE_DOCKER is unset.

        Standard Heroku dynos cannot run Docker, so Heroku defaults to the source path.
        """
        if self.platform is HostingPlatform.HEROKU:
            return self.heroku_container_stack
        return True


def detect_platform(environ: Mapping[str, str]) -> HostingPlatform | None:
    for platform, var in PLATFORM_ENV_VARS:
        if var in environ:
            return platform
    return None


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def _artifact_marker(
    app_root: Path,
    entry_file: str,
    *,
    dockerenv: Path,
    cgroup: Path,
    content_markers: Sequence[str],
) -> str | None:
    """Return a description of the first marker found, or None."""
    if dockerenv.exists():
        return f"{dockerenv} exists"

    cgroup_text = _read_text(cgroup)
    if cgroup_text and any(word in cgroup_text for word in CGROUP_KEYWORDS):
        return f"{cgroup} reports container isolation"

    entry = app_root / entry_file
    content = _read_text(entry) if entry.is_file() else None
    if content:
        for marker in content_markers:
            if marker in content:
                return f"{entry} contains {marker!r}"
    return None


def probe_environment(
    environ: Mapping[str, str],
    app_root: Path,
    entry_file: str = "index.js",
    *,
    dockerenv: Path | None = None,
    cgroup: Path | None = None,
    content_markers: Sequence[str] = CONTENT_MARKERS,
) -> ProbeResult:
    """Classify the host. Has no side effects."""
    dockerenv = DOCKERENV_MARKER if dockerenv is None else dockerenv
    cgroup = CGROUP_MARKER if cgroup is None else cgroup
    platform = detect_platform(environ)
    heroku_stack = environ.get("HEROKU_DOCKER", "").strip().lower() == "true"

    marker = _artifact_marker(
        app_root,
        entry_file,
        dockerenv=dockerenv,
        cgroup=cgroup,
        content_markers=content_markers,
    )
    if marker:
        return ProbeResult(ProbeKind.ARTIFACT_PRESENT, platform, marker, heroku_stack)
    if platform is not None:
        return ProbeResult(
            ProbeKind.PLATFORM_HINT,
            platform,
            f"{platform.label} platform detected",
            heroku_stack,
        )
    return ProbeResult(ProbeKind.BARE_HOST, None, "no platform markers")
