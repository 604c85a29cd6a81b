"""Tests for test page structure: index, sections and test case collection."""

from unittest.mock import AsyncMock, patch

import pytest

from filtercheck.oracle.capture_queue import CaptureQueue
from filtercheck.pages.sections import (
    collect_test_cases,
    get_sections,
    list_test_pages,
    mark_expected,
)

from conftest import make_bitmap


def _text_element(text: str) -> AsyncMock:
    element = AsyncMock()
    element.text_content = AsyncMock(return_value=text)
    return element


def _section(title: str | None = "Basic usage", demo: bool = True, filters=("##.ad",)) -> AsyncMock:
    parts = {
        "h2": _text_element(title) if title is not None else None,
        ".testcase-container": AsyncMock() if demo else None,
    }
    section = AsyncMock()
    section.query_selector = AsyncMock(side_effect=lambda sel: parts[sel])
    section.query_selector_all = AsyncMock(return_value=[_text_element(f) for f in filters])
    return section


def _page(sections: list) -> AsyncMock:
    page = AsyncMock()
    page.query_selector_all = AsyncMock(return_value=sections)
    return page


class TestGetSections:
    """Tests for get_sections."""

    @pytest.mark.asyncio
    async def test_keeps_complete_sections(self):
        page = _page([_section(), _section(title="Second")])
        assert len(await get_sections(page)) == 2

    @pytest.mark.asyncio
    async def test_skips_incomplete_sections(self):
        page = _page([
            _section(title=None),
            _section(demo=False),
            _section(filters=()),
            _section(title="Complete"),
        ])

        sections = await get_sections(page)

        assert len(sections) == 1
        assert await sections[0].title.text_content() == "Complete"

    @pytest.mark.asyncio
    async def test_no_sections(self):
        assert await get_sections(_page([])) == []


class TestMarkExpected:
    @pytest.mark.asyncio
    async def test_adds_expected_class(self):
        page = AsyncMock()
        await mark_expected(page)
        script = page.evaluate.call_args.args[0]
        assert 'classList.add("expected")' in script
        assert "frames" in script


class TestCollectTestCases:
    """Tests for collect_test_cases."""

    @pytest.mark.asyncio
    async def test_builds_titled_cases_with_filters(self):
        page = _page([
            _section(title=" Basic usage ", filters=("||example.com/a.js", "##.b")),
            _section(title="Exception", filters=("@@||example.com/a.js",)),
        ])
        expected = make_bitmap(10, 10)

        with patch("filtercheck.pages.sections.capture_element",
                   new_callable=AsyncMock, return_value=expected) as mock_capture:
            cases = await collect_test_cases(page, " $script ", CaptureQueue())

        assert [c.title for c in cases] == ["$script - Basic usage", "$script - Exception"]
        assert [c.index for c in cases] == [0, 1]
        assert cases[0].filters == ["||example.com/a.js", "##.b"]
        assert cases[1].filters == ["@@||example.com/a.js"]
        assert cases[0].expected is expected
        assert mock_capture.await_count == 2

    @pytest.mark.asyncio
    async def test_marks_page_expected_before_capturing(self):
        page = _page([_section()])
        calls = []
        page.evaluate = AsyncMock(side_effect=lambda *a: calls.append("mark"))

        async def capture(*args):
            calls.append("capture")
            return make_bitmap(1, 1)

        with patch("filtercheck.pages.sections.capture_element", side_effect=capture):
            await collect_test_cases(page, "$image", CaptureQueue())

        assert calls == ["mark", "capture"]


class TestListTestPages:
    """Tests for list_test_pages."""

    @pytest.mark.asyncio
    async def test_returns_links(self):
        link = AsyncMock()
        link.evaluate = AsyncMock(return_value="https://testpages.example.org/en/filters/script")
        link.inner_text = AsyncMock(return_value=" $script ")
        page = _page([link])

        pages = await list_test_pages(page, "https://testpages.example.org/en/")

        page.goto.assert_awaited_once_with("https://testpages.example.org/en/")
        page.query_selector_all.assert_awaited_once_with(".site-pagelist a")
        assert len(pages) == 1
        assert pages[0].url.endswith("/filters/script")
        assert pages[0].title == "$script"
