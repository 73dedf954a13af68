"""Helpers for keeping credentials out of log output."""

from __future__ import annotations

from collections.abc import Iterable

MASK_CHAR = "*"
_VISIBLE = 4


def mask_token(token: str) -> str:
    """Return *token* with everything but the first and last four characters masked.

    Tokens shorter than eight characters are masked completely.
    """
    if len(token) < 2 * _VISIBLE:
        return MASK_CHAR * len(token)
    middle = MASK_CHAR * (len(token) - 2 * _VISIBLE)
    return f"{token[:_VISIBLE]}{middle}{token[-_VISIBLE:]}"


def redact(text: str, secrets: Iterable[str | None]) -> str:
    """Replace every occurrence of each secret in *text* with its masked form."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, mask_token(secret))
    return text
