"""deckhand - fetch a bot artifact and keep it running."""

__version__ = "0.3.0"
