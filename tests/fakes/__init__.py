"""
Test Fakes Module
=================

In-memory implementations of the capability interfaces so the acquisition
paths can be exercised without Docker, git or npm.
"""

from .fake_engine import FakeContainerEngine
from .fake_source import CloneCall, FakeDependencyInstaller, FakeSourceFetcher

__all__ = [
    "CloneCall",
    "FakeContainerEngine",
    "FakeDependencyInstaller",
    "FakeSourceFetcher",
]
