"""Browser launch with the extension under test loaded."""

from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path

from playwright.async_api import BrowserContext, Playwright

from filtercheck.models.config import RunnerConfig

logger = logging.getLogger(__name__)

EXTENSION_SCHEME = "chrome-extension://"


async def launch_extension_context(playwright: Playwright, config: RunnerConfig) -> BrowserContext:
    """Launch a persistent Chromium context with only the extension enabled.

    Extensions can only be loaded into persistent contexts. When no
    user_data_dir is configured a fresh temporary profile is used.
    """
    extension_path = str(Path(config.extension_path).expanduser().absolute())
    user_data_dir = config.user_data_dir or tempfile.mkdtemp(prefix="filtercheck-profile-")
    logger.debug("Launching %s with extension %s (profile %s)",
                 config.browser, extension_path, user_data_dir)

    context = await playwright.chromium.launch_persistent_context(
        user_data_dir,
        headless=config.headless,
        viewport={"width": config.viewport.width, "height": config.viewport.height},
        args=[
            f"--disable-extensions-except={extension_path}",
            f"--load-extension={extension_path}",
        ],
    )
    context.set_default_navigation_timeout(config.navigation_timeout_ms)
    return context


def _is_extension_target(target) -> bool:
    return target.url.startswith(EXTENSION_SCHEME)


def _origin_from_url(url: str) -> str:
    return EXTENSION_SCHEME + url[len(EXTENSION_SCHEME):].split("/", 1)[0]


async def discover_extension_origin(context: BrowserContext, timeout_ms: int = 30000) -> str:
    """Return the extension's origin (``chrome-extension://<id>``).

    Manifest V3 extensions run in a service worker, V2 ones in a background
    page; whichever shows up first identifies the extension.
    """
    for worker in context.service_workers:
        if _is_extension_target(worker):
            return _origin_from_url(worker.url)
    for page in context.background_pages:
        if _is_extension_target(page):
            return _origin_from_url(page.url)

    logger.debug("Waiting up to %dms for the extension to start...", timeout_ms)
    waiters = [
        asyncio.ensure_future(context.wait_for_event(
            event, predicate=_is_extension_target, timeout=timeout_ms,
        ))
        for event in ("serviceworker", "backgroundpage")
    ]
    try:
        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
        await asyncio.gather(*waiters, return_exceptions=True)
    target = done.pop().result()
    origin = _origin_from_url(target.url)
    logger.info("Extension origin: %s", origin)
    return origin
