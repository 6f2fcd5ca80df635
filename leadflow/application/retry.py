"""Bounded retry for transactions that lose a race on the rotation cursor."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from leadflow.domain.errors import RotationBusy, RotationConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 0.05,
    attempt_timeout: float | None = None,
    label: str = "transaction",
) -> T:
    """Run ``operation`` until it stops raising RotationConflict.

    Each attempt must open its own transaction. An attempt that exceeds
    ``attempt_timeout`` is cancelled, which rolls its transaction back, and
    counts as a conflict. Backoff doubles after every failed attempt.

    Raises:
        RotationBusy: after ``max_attempts`` failed attempts.
    """
    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            if attempt_timeout is None:
                return await operation()
            return await asyncio.wait_for(operation(), timeout=attempt_timeout)
        except (RotationConflict, asyncio.TimeoutError) as e:
            last_error = e
            if attempt == max_attempts:
                break
            delay = backoff_seconds * 2 ** (attempt - 1)
            logger.warning(
                "%s: attempt %d/%d failed (%s), retrying in %.3fs",
                label, attempt, max_attempts, type(e).__name__, delay,
            )
            await asyncio.sleep(delay)

    logger.warning("%s: giving up after %d attempts", label, max_attempts)
    raise RotationBusy() from last_error
