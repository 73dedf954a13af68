"""
Backends
========

Real implementations of the capability interfaces used by the acquisition paths.
"""

from .base import ContainerEngine, DependencyInstaller, LogSink, SourceFetcher
from .docker_api import DockerApiEngine
from .git_cli import GitCliFetcher
from .npm import NpmInstaller

__all__ = [
    "ContainerEngine",
    "DependencyInstaller",
    "DockerApiEngine",
    "GitCliFetcher",
    "LogSink",
    "NpmInstaller",
    "SourceFetcher",
]
