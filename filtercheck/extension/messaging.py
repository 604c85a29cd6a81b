"""Extension messaging bridge — talks to the extension from its options page."""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Page

from filtercheck.errors import MessagingError

logger = logging.getLogger(__name__)

OPTIONS_PAGE = "options.html"

# Every script resolves to [result, error] so that failures inside the
# extension come back as a value instead of a rejected evaluation.
_SEND_MESSAGES_SCRIPT = """
async (messages) => {
    const api = globalThis.browser || globalThis.chrome;
    try {
        let result = null;
        for (const message of messages)
            result = await api.runtime.sendMessage(message);
        return [result, null];
    } catch (e) {
        return [null, String(e && e.message || e)];
    }
}
"""

_IMPORT_FILTERS_SCRIPT = """
async (text) => {
    const api = globalThis.browser || globalThis.chrome;
    try {
        const subs = await api.runtime.sendMessage({type: "subscriptions.get",
                                                    downloadable: true,
                                                    special: true});
        for (const subscription of subs)
            await api.runtime.sendMessage({type: "subscriptions.remove",
                                           url: subscription.url});
        const errors = await api.runtime.sendMessage({type: "filters.importRaw",
                                                      text});
        if (errors && errors.length)
            return [null, errors.map(String).join("\\n")];
        return [true, null];
    } catch (e) {
        return [null, String(e && e.message || e)];
    }
}
"""


class ExtensionBridge:
    """Sends runtime messages to the extension and awaits their settled result."""

    def __init__(self, page: Page, origin: str):
        self.page = page
        self.origin = origin.rstrip("/")

    @property
    def options_url(self) -> str:
        return f"{self.origin}/{OPTIONS_PAGE}"

    async def open(self) -> None:
        """Navigate the bridge page to the extension's options page."""
        if self.page.url != self.options_url:
            await self.page.goto(self.options_url)

    async def _evaluate(self, script: str, arg: Any) -> Any:
        await self.open()
        result, error = await self.page.evaluate(script, arg)
        if error:
            raise MessagingError(f"Extension returned an error: {error}", payload=error)
        return result

    async def send(self, *messages: dict) -> Any:
        """Send messages in order and return the last response."""
        logger.debug("Sending %d message(s): %s", len(messages),
                     ", ".join(m.get("type", "?") for m in messages))
        return await self._evaluate(_SEND_MESSAGES_SCRIPT, list(messages))

    async def list_subscriptions(self, **filters: Any) -> list[dict]:
        subs = await self.send({"type": "subscriptions.get", **filters})
        return subs or []

    async def import_filters(self, filters: list[str]) -> None:
        """Replace all subscriptions with the given filter rules."""
        logger.debug("Importing %d filter(s)", len(filters))
        await self._evaluate(_IMPORT_FILTERS_SCRIPT, "\n".join(filters))

    async def has_subscription(self, url: str) -> bool:
        subs = await self.list_subscriptions(ignoreDisabled=True, downloadable=True)
        return any(s.get("url") == url for s in subs)
