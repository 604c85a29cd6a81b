"""Test page structure — page index, sections, and expected screenshots."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from playwright.async_api import ElementHandle, Page

from filtercheck.models.bitmap import Bitmap
from filtercheck.oracle.capture import capture_element
from filtercheck.oracle.capture_queue import CaptureQueue

logger = logging.getLogger(__name__)

# Adds the "expected" class to the body of the page and of every frame we can
# reach, making the demos render the way they should look once filtered.
_MARK_EXPECTED_SCRIPT = """
() => {
    let documents = [document];
    while (documents.length > 0) {
        let doc = documents.shift();
        doc.body.classList.add("expected");
        for (let i = 0; i < doc.defaultView.frames.length; i++) {
            try {
                documents.push(doc.defaultView.frames[i].document);
            } catch (e) {}
        }
    }
}
"""


@dataclass
class PageLink:
    url: str
    title: str


@dataclass
class Section:
    title: ElementHandle
    demo: ElementHandle
    filters: list[ElementHandle]


@dataclass
class CaseSpec:
    index: int
    title: str
    expected: Bitmap
    filters: list[str] = field(default_factory=list)


async def list_test_pages(page: Page, index_url: str) -> list[PageLink]:
    """Open the index and return every linked test page."""
    await page.goto(index_url)
    links = await page.query_selector_all(".site-pagelist a")
    pages = []
    for link in links:
        url = await link.evaluate("a => a.href")
        title = (await link.inner_text()).strip()
        pages.append(PageLink(url=url, title=title))
    logger.info("Found %d test pages at %s", len(pages), index_url)
    return pages


async def get_sections(page: Page) -> list[Section]:
    """Sections that carry a title, a demo container and at least one filter."""
    sections = []
    for element in await page.query_selector_all("section"):
        title = await element.query_selector("h2")
        demo = await element.query_selector(".testcase-container")
        filters = await element.query_selector_all("pre")
        if title and demo and filters:
            sections.append(Section(title=title, demo=demo, filters=filters))
    return sections


async def mark_expected(page: Page) -> None:
    await page.evaluate(_MARK_EXPECTED_SCRIPT)


async def read_filters(section: Section) -> list[str]:
    return [await f.text_content() or "" for f in section.filters]


async def collect_test_cases(
    page: Page, page_title: str, queue: CaptureQueue,
) -> list[CaseSpec]:
    """Switch the page to its expected rendering and record every test case.

    Expected screenshots of all sections are requested at once; the capture
    queue runs them one after another.
    """
    sections = await get_sections(page)
    await mark_expected(page)

    async def _collect(index: int, section: Section) -> CaseSpec:
        section_title = await section.title.text_content() or ""
        expected, filters = await asyncio.gather(
            capture_element(page, section.demo, queue),
            read_filters(section),
        )
        return CaseSpec(
            index=index,
            title=f"{page_title.strip()} - {section_title.strip()}",
            expected=expected,
            filters=filters,
        )

    cases = list(await asyncio.gather(
        *(_collect(i, s) for i, s in enumerate(sections))
    ))
    logger.debug("Collected %d test cases on '%s'", len(cases), page_title)
    return cases
