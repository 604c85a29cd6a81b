"""Capture queue — serializes screenshot captures within one browser session."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class CaptureQueue:
    """FIFO token guarding the viewport's scroll position and screenshots.

    Every capture scrolls the page, so only one may be in flight at a time.
    asyncio.Lock wakes waiters in the order they arrived, which gives the
    queue its FIFO ordering.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.completed = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._lock:
            try:
                yield
            finally:
                self.completed += 1
                logger.debug("Capture %d released", self.completed)
