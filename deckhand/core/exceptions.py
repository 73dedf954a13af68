#!/usr/bin/env python
"""
core/exceptions.py - Central module for custom exception classes.
"""

from __future__ import annotations

from collections.abc import Sequence


class DomainError(Exception):
    """
    Base class for domain-specific exceptions with a unified error message format.
    """

    def __init__(self, message: str):
        super().__init__(f"[DomainError] {message}")
        self.detail = message


class DeployError(DomainError):
    """Fatal deployment condition. Reported with a remediation hint, then exit status 1."""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint


class MissingRequiredConfig(DeployError):
    """Raised when one or more mandatory environment variables are absent."""

    def __init__(self, names: Sequence[str], hint: str | None = None):
        self.names = list(names)
        super().__init__(
            f"Required environment variables missing: {', '.join(self.names)}",
            hint
            or "Set them before starting, e.g. "
            + " ".join(f"export {name}=..." for name in self.names),
        )


class AcquisitionFailed(DeployError):
    """Raised when an image pull, a clone or a container launch gives up."""

    pass


class MisconfiguredStrategy(DeployError):
    """Raised when the container path is forced on a host without a working engine."""

    pass


class MissingCredential(DeployError):
    """Raised when the source path is selected but no access token is configured."""

    pass


class EntryPointNotFound(DeployError):
    """Raised when the bot's entry file cannot be found in any known location."""

    def __init__(self, entry_file: str, searched: Sequence[str]):
        self.entry_file = entry_file
        self.searched = list(searched)
        super().__init__(
            f'Entry file "{entry_file}" not found (searched: {", ".join(self.searched)})',
            "Check the repository structure, or delete the artifact directory to force a fresh load.",
        )


class ChildSpawnFailed(DeployError):
    """Raised when the bot process cannot be started at all."""

    pass


class BackendError(DomainError):
    """Generic failure reported by an external tool (container engine, git, npm)."""

    pass


class CommandFailedError(BackendError):
    """Raised when an external command exits non-zero."""

    def __init__(self, command: str, returncode: int | None, stderr: str = ""):
        message = f"{command} exited with code {returncode}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class OperationTimeoutError(BackendError):
    """Raised when operations exceed expected duration."""

    def __init__(self, operation: str = "operation", timeout: float | None = None):
        suffix = f" after {timeout:g}s" if timeout is not None else ""
        super().__init__(f"{operation} timed out{suffix}")
        self.operation = operation
        self.timeout = timeout
