"""
Deployment settings. Every component receives a DeploymentConfig instead of reading os.environ.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

from deckhand.core import hints
from deckhand.core.exceptions import MissingRequiredConfig
from deckhand.core.probe import HostingPlatform
from deckhand.types import RetryPolicy

DEFAULT_IMAGE = (
    "mrwasi/wasimdv7@sha256:8df63829675926a5eab84237702623ef2365f82a3e3eb4060b883677f2db707e"
)

# Forwarded to the bot verbatim. Optional ones only when set.
REQUIRED_VARS: tuple[str, ...] = ("SESSION_ID", "OWNER_NUMBER")
OPTIONAL_VARS: tuple[str, ...] = (
    "PREFIX",
    "BOT_NAME",
    "MODE",
    "AUTO_READ",
    "ANTI_DELETE",
    "MONGO_URI",
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class DeploymentConfig(BaseSettings):
    if TYPE_CHECKING:  # pragma: no cover

        def __init__(self, **data: Any) -> None: ...

    """
    Immutable snapshot of the deployment settings, built once at startup.

    Identity (forwarded to the bot):
        session_id, owner_number (required)
        prefix, bot_name, mode, auto_read, anti_delete, mongo_uri (optional)
    Container path:
        docker_image, use_docker, container_name, session_volume, session_mount
    Source path:
        gitlab_token, branch, repository, git_host, install_command
    """

    session_id: str | None = None
    owner_number: str | None = None

    prefix: str | None = None
    bot_name: str | None = None
    mode: str | None = None
    auto_read: str | None = None
    anti_delete: str | None = None
    mongo_uri: str | None = None

    # --- container path ---
    docker_image: str = DEFAULT_IMAGE
    use_docker: bool | None = None  # None = decide from the host
    container_name: str = "wasi-md-v7-bot"
    session_volume: str = "wasi_session"  # survives container re-creation
    session_mount: str = "/app/session"

    # --- source path ---
    gitlab_token: str | None = None
    branch: str = "master"
    repository: str = "itxxwasi-group/WASI-MD-V7"
    git_host: str = "gitlab.com"
    install_command: str = "npm install --production --legacy-peer-deps"

    # --- artifact layout ---
    app_root: Path = Field(default_factory=Path.cwd)
    artifact_dir_name: str = "core"
    entry_file: str = "index.js"
    interpreter: str = "node"
    dependency_manifest: str = "package.json"

    # --- retries and timeouts (seconds) ---
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=5.0, ge=0)
    pull_timeout: float = 300.0
    clone_timeout: float = 120.0
    install_timeout: float = 300.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_absent(cls, v: Any, info: ValidationInfo) -> Any:
        """Treat ``FOO=`` the same as an unset variable."""
        if isinstance(v, str) and not v.strip():
            if info.field_name is None:
                return None
            field = cls.model_fields[info.field_name]
            if field.default_factory is not None:
                return field.default_factory()  # type: ignore[call-arg]
            return field.default
        return v

    @field_validator("use_docker", mode="before")
    @classmethod
    def _tri_state(cls, v: Any) -> bool | None:
        """``true`` forces the container path, ``false`` forbids it, anything else defers."""
        if v is None or isinstance(v, bool):
            return v
        text = str(v).strip().lower()
        if text in _TRUTHY:
            return True
        if text in _FALSY:
            return False
        return None

    @property
    def artifact_dir(self) -> Path:
        return self.app_root / self.artifact_dir_name

    def missing_required(self) -> list[str]:
        return [name for name in REQUIRED_VARS if not getattr(self, name.lower())]

    def forwarded_environment(self) -> dict[str, str]:
        """Environment handed to the bot: required values plus optional ones that are set."""
        env: dict[str, str] = {}
        for name in (*REQUIRED_VARS, *OPTIONAL_VARS):
            value = getattr(self, name.lower())
            if value:
                env[name] = value
        return env

    def child_environment(self, base: Mapping[str, str]) -> dict[str, str]:
        """*base* with the resolved identity values laid over it.

        Blank identity variables in *base* are dropped so they never reach the bot
        as empty-string overrides, and values that only came from ``.env`` are added.
        """
        names = {*REQUIRED_VARS, *OPTIONAL_VARS}
        env = {k: v for k, v in base.items() if k.upper() not in names or v.strip()}
        env.update(self.forwarded_environment())
        return env

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, delay=self.retry_delay)


def require_identity(
    config: DeploymentConfig, platform: HostingPlatform | None = None
) -> DeploymentConfig:
    """Fail fast when mandatory values are absent, reporting all of them at once."""
    missing = config.missing_required()
    if missing:
        raise MissingRequiredConfig(missing, hints.missing_config_hint(missing, platform))
    return config


def resolve_config(platform: HostingPlatform | None = None, **overrides: Any) -> DeploymentConfig:
    """Build the configuration from the environment and validate it."""
    return require_identity(DeploymentConfig(**overrides), platform)


__all__ = [
    "DEFAULT_IMAGE",
    "OPTIONAL_VARS",
    "REQUIRED_VARS",
    "DeploymentConfig",
    "require_identity",
    "resolve_config",
]
