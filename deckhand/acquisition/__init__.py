"""The two mutually exclusive ways of making the bot artifact available."""

from .container import ContainerAcquisition
from .source import SourceAcquisition, build_clone_url

__all__ = ["ContainerAcquisition", "SourceAcquisition", "build_clone_url"]
