"""Bounded retry with a fixed delay, shared by the image pull and the repository clone."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from deckhand.types import RetryPolicy
from deckhand.utils.masking import redact

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[bool]]
Sleeper = Callable[[float], Awaitable[object]]


async def retry(
    operation: Operation,
    policy: RetryPolicy,
    *,
    label: str = "operation",
    secrets: Iterable[str | None] = (),
    sleep: Sleeper = asyncio.sleep,
) -> bool:
    """Run *operation* up to ``policy.max_attempts`` times.

    An attempt fails when the operation returns a falsy value or raises. The
    cause is not inspected. Returns True on the first success, False once
    every attempt failed. ``sleep`` runs between failed attempts only.
    """
    secrets = tuple(secrets)
    for attempt in range(1, policy.max_attempts + 1):
        logger.info("%s (attempt %d/%d)…", label, attempt, policy.max_attempts)
        try:
            if await operation():
                return True
            reason = "operation reported failure"
        except asyncio.CancelledError:
            raise
        except Exception as e:
            reason = redact(str(e) or type(e).__name__, secrets)

        logger.warning("%s attempt %d failed: %s", label, attempt, reason)
        if attempt < policy.max_attempts:
            logger.info("Waiting %gs before attempt %d...", policy.delay, attempt + 1)
            await sleep(policy.delay)
    return False
