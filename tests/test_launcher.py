"""Tests for launching the browser with the extension loaded."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from filtercheck.extension.launcher import discover_extension_origin, launch_extension_context


def _with_url(url: str) -> Mock:
    item = Mock()
    item.url = url
    return item


def _starting_context(event: str, url: str) -> Mock:
    """A context where nothing runs yet and only ``event`` fires, with ``url``."""
    async def wait_for_event(name, predicate=None, timeout=None):
        if name != event:
            await asyncio.sleep(10)
        return _with_url(url)

    context = Mock()
    context.service_workers = []
    context.background_pages = []
    context.wait_for_event = AsyncMock(side_effect=wait_for_event)
    return context


class TestLaunchExtensionContext:
    """Tests for launch_extension_context."""

    @pytest.mark.asyncio
    async def test_loads_only_the_extension(self, runner_config):
        playwright = Mock()
        context = Mock()
        playwright.chromium.launch_persistent_context = AsyncMock(return_value=context)

        result = await launch_extension_context(playwright, runner_config)

        assert result is context
        call = playwright.chromium.launch_persistent_context.call_args
        args = call.kwargs["args"]
        assert any(a.startswith("--disable-extensions-except=") and a.endswith("extension") for a in args)
        assert any(a.startswith("--load-extension=") for a in args)
        assert call.kwargs["viewport"] == {"width": 800, "height": 600}
        assert call.kwargs["headless"] is False
        context.set_default_navigation_timeout.assert_called_once_with(30000)

    @pytest.mark.asyncio
    async def test_uses_configured_profile(self, runner_config, tmp_path):
        runner_config.user_data_dir = str(tmp_path / "profile")
        playwright = Mock()
        playwright.chromium.launch_persistent_context = AsyncMock(return_value=Mock())

        await launch_extension_context(playwright, runner_config)

        assert playwright.chromium.launch_persistent_context.call_args.args[0] == str(tmp_path / "profile")


class TestDiscoverExtensionOrigin:
    """Tests for discover_extension_origin."""

    @pytest.mark.asyncio
    async def test_from_service_worker(self):
        context = Mock()
        context.service_workers = [
            _with_url("https://example.com/sw.js"),
            _with_url("chrome-extension://abcdef/background.js"),
        ]
        context.background_pages = []

        assert await discover_extension_origin(context) == "chrome-extension://abcdef"

    @pytest.mark.asyncio
    async def test_from_background_page(self):
        context = Mock()
        context.service_workers = []
        context.background_pages = [_with_url("chrome-extension://xyz/background.html")]

        assert await discover_extension_origin(context) == "chrome-extension://xyz"

    @pytest.mark.asyncio
    async def test_waits_for_service_worker(self):
        context = _starting_context("serviceworker", "chrome-extension://late/sw.js")

        assert await discover_extension_origin(context, timeout_ms=500) == "chrome-extension://late"
        events = [c.args[0] for c in context.wait_for_event.call_args_list]
        assert sorted(events) == ["backgroundpage", "serviceworker"]
        assert all(c.kwargs["timeout"] == 500 for c in context.wait_for_event.call_args_list)

    @pytest.mark.asyncio
    async def test_waits_for_late_background_page(self):
        context = _starting_context("backgroundpage", "chrome-extension://abc/background.html")

        assert await discover_extension_origin(context, timeout_ms=500) == "chrome-extension://abc"

    @pytest.mark.asyncio
    async def test_only_extension_targets_are_awaited(self):
        context = _starting_context("serviceworker", "chrome-extension://abc/sw.js")

        await discover_extension_origin(context, timeout_ms=500)

        predicate = context.wait_for_event.call_args.kwargs["predicate"]
        assert predicate(_with_url("chrome-extension://abc/sw.js"))
        assert not predicate(_with_url("https://example.com/sw.js"))

    @pytest.mark.asyncio
    async def test_timeout_when_extension_never_starts(self):
        context = Mock()
        context.service_workers = []
        context.background_pages = []
        context.wait_for_event = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 10ms exceeded"))

        with pytest.raises(PlaywrightTimeoutError):
            await discover_extension_origin(context, timeout_ms=10)
