"""Screenshot oracle — polls captures until they match the expected bitmap."""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from filtercheck.errors import ComparisonTimeout
from filtercheck.models.bitmap import Bitmap

from .compare import compare_bitmaps

logger = logging.getLogger(__name__)

CaptureFn = Callable[[], Awaitable[Bitmap]]
ReloadFn = Callable[[], Awaitable[object]]


class VerificationState(enum.Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    COMPARING = "comparing"
    RETRY_PENDING = "retry_pending"
    RELOADING = "reloading"
    SUCCESS = "success"
    FAIL = "fail"


@dataclass
class VerificationOutcome:
    title: str
    state: VerificationState = VerificationState.IDLE
    attempts: int = 0
    reloaded: bool = False
    last_actual: Optional[Bitmap] = None

    @property
    def passed(self) -> bool:
        return self.state is VerificationState.SUCCESS


async def _poll(
    outcome: VerificationOutcome,
    capture: CaptureFn,
    expected: Bitmap,
    timeout_ms: int,
    poll_interval_ms: int,
) -> bool:
    deadline = time.monotonic() + timeout_ms / 1000
    while True:
        outcome.state = VerificationState.CAPTURING
        # An in-flight capture always completes, the deadline is checked after
        actual = await capture()
        outcome.attempts += 1
        outcome.last_actual = actual

        outcome.state = VerificationState.COMPARING
        if compare_bitmaps(expected, actual):
            return True
        if time.monotonic() >= deadline:
            return False
        await asyncio.sleep(poll_interval_ms / 1000)


async def verify_with_retry(
    capture: CaptureFn,
    expected: Bitmap,
    title: str,
    reload: ReloadFn,
    timeout_ms: int = 1000,
    poll_interval_ms: int = 50,
) -> VerificationOutcome:
    """Wait until ``capture()`` matches ``expected``, reloading the page once.

    Filters can take a moment to become effective after they were added
    (notably on Firefox), so a mismatch after the first timeout triggers one
    page reload and a second polling round. Raises ComparisonTimeout naming
    ``title`` if the second round also times out.
    """
    outcome = VerificationOutcome(title=title)

    if await _poll(outcome, capture, expected, timeout_ms, poll_interval_ms):
        outcome.state = VerificationState.SUCCESS
        return outcome

    outcome.state = VerificationState.RETRY_PENDING
    logger.info("No match for '%s' after %d captures, reloading once", title, outcome.attempts)
    outcome.state = VerificationState.RELOADING
    await reload()
    outcome.reloaded = True

    if await _poll(outcome, capture, expected, timeout_ms, poll_interval_ms):
        outcome.state = VerificationState.SUCCESS
        logger.debug("'%s' matched after reload", title)
        return outcome

    outcome.state = VerificationState.FAIL
    raise ComparisonTimeout(title, attempts=outcome.attempts, last_actual=outcome.last_actual)
