"""Element count and visibility checks across a page and its iframes."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


async def assert_items_in_frame(
    frame: Frame,
    selectors: str,
    number_of_items: int,
    displayed: bool,
    timeout_ms: int = 1000,
) -> None:
    elements = await frame.query_selector_all(selectors)
    if len(elements) != number_of_items:
        raise AssertionError(
            f"number of elements found in page does not match expected when "
            f"using selector '{selectors}': {len(elements)} != {number_of_items}"
        )

    state = "visible" if displayed else "hidden"
    locator = frame.locator(selectors)

    async def _wait(index: int) -> None:
        try:
            await locator.nth(index).wait_for(state=state, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise AssertionError(
                f"elements in page do not match the expected display state of "
                f"'{displayed}' when using {selectors}"
            ) from e

    await asyncio.gather(*(_wait(i) for i in range(len(elements))))


async def assert_items_in_page(
    page: Page,
    selectors: str,
    number_of_items: int,
    displayed: bool,
    number_of_iframes: int = 0,
    timeout_ms: int = 1000,
) -> None:
    """Check the items in the main frame and in each of its iframes."""
    await assert_items_in_frame(page.main_frame, selectors, number_of_items, displayed, timeout_ms)

    iframes = await page.query_selector_all("iframe")
    if len(iframes) != number_of_iframes:
        raise AssertionError(f"expected {number_of_iframes} iframe(s), found {len(iframes)}")

    for iframe in iframes:
        frame = await iframe.content_frame()
        if frame is None:
            raise AssertionError(f"iframe has no content frame when checking {selectors}")
        await assert_items_in_frame(frame, selectors, number_of_items, displayed, timeout_ms)
    logger.debug("'%s': %d item(s) %s in page and %d iframe(s)",
                 selectors, number_of_items, "shown" if displayed else "hidden", len(iframes))
