"""
Utility helpers shared across deckhand.
"""

from .masking import mask_token, redact
from .signals import ShutdownToken, SignalHandlers, install_handlers

__all__ = ["mask_token", "redact", "ShutdownToken", "SignalHandlers", "install_handlers"]
