"""Allow ``python -m deckhand`` to run the starter."""

from deckhand.core.main import start_cli

if __name__ == "__main__":
    start_cli()
