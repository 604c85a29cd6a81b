"""Element capture — screenshots of exactly one element's screen region.

Playwright's ElementHandle.screenshot() scrolls and clips on its own, but its
output is not stable across repeated calls on every engine. Instead we scroll
the element's top-left corner to the viewport origin, screenshot the viewport
and crop to the element's rectangle, all inside one CaptureQueue slot.
"""

from __future__ import annotations

import logging

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from filtercheck.errors import CaptureFailure, ElementNotFound
from filtercheck.models.bitmap import Bitmap, Region

from .capture_queue import CaptureQueue

logger = logging.getLogger(__name__)

_READ_RECT_SCRIPT = """
(element) => {
    if (!element.isConnected)
        return null;
    const rect = element.getBoundingClientRect();
    return {
        x: rect.left + window.scrollX,
        y: rect.top + window.scrollY,
        width: rect.width,
        height: rect.height,
    };
}
"""

_SCROLL_SCRIPT = """
([x, y]) => {
    window.scrollTo(x, y);
    return [window.scrollX, window.scrollY];
}
"""


async def read_region(element: ElementHandle) -> Region:
    """Read the element's bounding box in page coordinates."""
    try:
        rect = await element.evaluate(_READ_RECT_SCRIPT)
    except PlaywrightError as e:
        raise ElementNotFound(f"Cannot read element rect: {e}") from e
    if not rect:
        raise ElementNotFound("Element is not attached to the document")
    return Region.from_rect(rect)


async def capture_element(page: Page, element: ElementHandle, queue: CaptureQueue) -> Bitmap:
    """Capture the element's region as a bitmap of exactly its width and height."""
    async with queue.slot():
        # Read fresh every time, scrolling may have moved it since the last capture
        region = await read_region(element)

        try:
            scroll_x, scroll_y = await page.evaluate(_SCROLL_SCRIPT, [region.x, region.y])
        except PlaywrightError as e:
            raise CaptureFailure(f"Scrolling to element failed: {e}") from e

        # Scrolling clamps near the page edges
        x = region.x - round(scroll_x)
        y = region.y - round(scroll_y)

        try:
            png = await page.screenshot(type="png")
        except PlaywrightError as e:
            raise CaptureFailure(f"Screenshot failed: {e}") from e

        bitmap = Bitmap.from_screenshot(png, Region(x, y, region.width, region.height))
        logger.debug("Captured %r at %s (viewport offset %d,%d)", bitmap, region, x, y)
        return bitmap
