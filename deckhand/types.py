"""Shared value types passed between the loader, the acquisition paths and the supervisor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Strategy(Enum):
    """Which acquisition path a run takes."""

    NONE = "none"  # artifact already present
    CONTAINER = "container"
    SOURCE = "source"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay: float = 5.0  # seconds between failed attempts

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay cannot be negative")


@dataclass(frozen=True)
class AcquisitionOutcome:
    success: bool
    strategy: Strategy
    message: str | None = None

    @classmethod
    def ok(cls, strategy: Strategy, message: str | None = None) -> AcquisitionOutcome:
        return cls(success=True, strategy=strategy, message=message)

    @classmethod
    def failed(cls, strategy: Strategy, message: str) -> AcquisitionOutcome:
        return cls(success=False, strategy=strategy, message=message)


@dataclass(frozen=True)
class LaunchSpec:
    """Everything the container engine needs to start the bot container."""

    image: str
    name: str
    environment: dict[str, str]
    volume: str
    mount_path: str
    restart_policy: str = "unless-stopped"
