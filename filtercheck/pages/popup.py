"""Counts the pages a click in a popup demo opens."""

from __future__ import annotations

import logging

from playwright.async_api import BrowserContext, ElementHandle, Page

logger = logging.getLogger(__name__)

POPUP_EXCEPTION_PAGE = "$popup - Exception"


def is_popup_page(page_title: str) -> bool:
    return page_title.startswith("$popup")


async def check_popup(
    context: BrowserContext,
    page: Page,
    demo: ElementHandle,
    page_title: str,
    title: str,
    settle_ms: int = 100,
) -> None:
    """Click the demo's link and check whether a popup survived the filters.

    On the exception page the popup must open (it is closed again right away);
    on every other popup page the extension must have blocked it.
    """
    before = list(context.pages)
    trigger = await demo.query_selector("a[href],button")
    if trigger is None:
        raise AssertionError(f"{title}: no link or button in demo")
    await trigger.click()
    await page.wait_for_timeout(settle_ms)

    opened = [p for p in context.pages if p not in before]
    expected = 1 if page_title == POPUP_EXCEPTION_PAGE else 0
    logger.debug("%s: %d popup(s) opened, expected %d", title, len(opened), expected)
    try:
        if len(opened) != expected:
            raise AssertionError(f"{title}: expected {expected} popup(s), got {len(opened)}")
    finally:
        for popup in opened:
            await popup.close()
