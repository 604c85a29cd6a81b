"""Subscribe link test: a link on the index page adds a subscription via the dialog."""

from __future__ import annotations

import logging
import re

from playwright.async_api import BrowserContext, Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from filtercheck.extension.messaging import ExtensionBridge

logger = logging.getLogger(__name__)

DIALOG_TITLE = "ABP Testcase Subscription"
_DIALOG_TITLE_PATTERN = re.compile(rf"^\s*{re.escape(DIALOG_TITLE)}\s*$")


async def _wait_for_dialog_title(dialog: Locator, timeout_ms: int) -> None:
    heading = dialog.locator("h3").filter(has_text=_DIALOG_TITLE_PATTERN)
    try:
        await heading.first.wait_for(state="visible", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise AssertionError(f"dialog shown: no visible heading {DIALOG_TITLE!r}") from e


async def check_subscribe_link(
    context: BrowserContext,
    page: Page,
    bridge: ExtensionBridge,
    index_url: str,
    subscription_url: str,
    wait_ms: int = 3000,
    element_wait_ms: int = 1000,
) -> None:
    """Click the index page's subscribe button and confirm the extension dialog."""
    await page.goto(index_url)
    async with context.expect_page(timeout=wait_ms) as page_info:
        await page.click("#subscribe-button")
    dialog_page = await page_info.value
    logger.debug("Subscription dialog opened at %s", dialog_page.url)

    try:
        iframe = await dialog_page.wait_for_selector("iframe", timeout=element_wait_ms)
        frame = await iframe.content_frame()
        if frame is None:
            raise AssertionError("subscription dialog has no frame")
        await frame.wait_for_selector("#dialog-content-predefined", timeout=element_wait_ms)
        dialog = frame.locator("#dialog-content-predefined")
        await _wait_for_dialog_title(dialog, element_wait_ms)
        await dialog.locator("button").first.click()
    finally:
        await dialog_page.close()

    if not await bridge.has_subscription(subscription_url):
        raise AssertionError(f"subscription added: {subscription_url} not found")
    logger.info("Subscription %s added through the dialog", subscription_url)
