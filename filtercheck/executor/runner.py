"""Test pages runner — drives the browser through every suite of one session."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from playwright.async_api import BrowserContext, ElementHandle, Page, async_playwright

from filtercheck.errors import ComparisonTimeout, ElementNotFound
from filtercheck.extension.launcher import discover_extension_origin, launch_extension_context
from filtercheck.extension.messaging import ExtensionBridge
from filtercheck.models.config import GenericExceptionPage, RunnerConfig
from filtercheck.models.test_result import CaseResult, RunResult
from filtercheck.oracle.capture import capture_element
from filtercheck.oracle.capture_queue import CaptureQueue
from filtercheck.oracle.verify import verify_with_retry
from filtercheck.pages.exclusions import is_excluded
from filtercheck.pages.frames import assert_items_in_page
from filtercheck.pages.popup import check_popup, is_popup_page
from filtercheck.pages.sections import (
    CaseSpec,
    PageLink,
    collect_test_cases,
    get_sections,
    list_test_pages,
)
from filtercheck.pages.subscribe import check_subscribe_link

from .evidence_collector import EvidenceCollector

logger = logging.getLogger(__name__)

SUITES = ("test_pages", "generic_exceptions", "subscribe_link")


@dataclass
class Session:
    """Browser state shared by all cases of one run."""
    context: BrowserContext
    page: Page
    bridge: ExtensionBridge
    queue: CaptureQueue


class PagesRunner:
    """Runs the extension's test page suites against a live browser."""

    def __init__(self, config: RunnerConfig, evidence_dir: Path | None = None):
        self.config = config
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"
        self.evidence = EvidenceCollector(
            (evidence_dir or Path(config.evidence_dir)) / self.run_id
        )

    async def run(self, suites: tuple[str, ...] = SUITES) -> RunResult:
        """Launch the browser, run the selected suites and return the results."""
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start_time = time.time()
        run_result = RunResult(
            run_id=self.run_id,
            started_at=started_at,
            test_pages_url=self.config.test_pages_url,
            browser=self.config.browser,
        )
        logger.info("Starting %s on %s (suites: %s)",
                    self.run_id, self.config.browser, ", ".join(suites))

        async with async_playwright() as p:
            context = await launch_extension_context(p, self.config)
            try:
                session = await self.open_session(context)
                if "test_pages" in suites:
                    run_result.case_results += await self.run_test_pages(session)
                if "generic_exceptions" in suites:
                    run_result.case_results += await self.run_generic_exceptions(session)
                if "subscribe_link" in suites:
                    run_result.case_results.append(await self.run_subscribe_link(session))
            finally:
                await context.close()

        run_result.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        run_result.duration_seconds = round(time.time() - start_time, 2)
        run_result.tally()
        logger.info(
            "Run complete: %d passed, %d failed, %d skipped, %d errors (%.1fs)",
            run_result.passed, run_result.failed, run_result.skipped,
            run_result.errors, run_result.duration_seconds,
        )
        return run_result

    async def open_session(self, context: BrowserContext) -> Session:
        origin = await discover_extension_origin(
            context, self.config.extension_discovery_timeout_ms
        )
        page = context.pages[0] if context.pages else await context.new_page()
        bridge = ExtensionBridge(await context.new_page(), origin)
        return Session(context=context, page=page, bridge=bridge, queue=CaptureQueue())

    # === TEST PAGES ===

    async def run_test_pages(self, session: Session) -> list[CaseResult]:
        results: list[CaseResult] = []
        pages = await list_test_pages(session.page, self.config.test_pages_url)

        for page_idx, test_page in enumerate(pages):
            rule = is_excluded(self.config.exclusions, self.config.browser, test_page.title)
            if rule:
                logger.info("Skipping '%s' on %s: %s",
                            test_page.title, self.config.browser, rule.reason)
                results.append(CaseResult(
                    title=test_page.title, suite="test_pages", page_url=test_page.url,
                    result="skip", failure_reason=rule.reason or "Excluded",
                ))
                continue

            logger.info("Test page [%d/%d]: %s", page_idx + 1, len(pages), test_page.title)
            try:
                await session.page.goto(test_page.url)
                cases = await collect_test_cases(session.page, test_page.title, session.queue)
            except Exception as e:
                logger.error("Collecting test cases on '%s' failed: %s", test_page.title, e)
                results.append(CaseResult(
                    title=test_page.title, suite="test_pages", page_url=test_page.url,
                    result="error", failure_reason=str(e),
                ))
                continue

            for case in cases:
                results.append(await self.run_test_case(session, test_page, case))
        return results

    @staticmethod
    async def _demo(page: Page, index: int) -> ElementHandle:
        sections = await get_sections(page)
        if index >= len(sections):
            raise ElementNotFound(f"Section {index} not found ({len(sections)} on page)")
        return sections[index].demo

    async def run_test_case(
        self, session: Session, test_page: PageLink, case: CaseSpec,
    ) -> CaseResult:
        """Apply the case's filters, reload the page and compare its demo."""
        page = session.page
        case_start = time.time()
        result = CaseResult(
            title=case.title, suite="test_pages", page_url=test_page.url,
            result="pass", filters=case.filters,
        )
        try:
            await session.bridge.import_filters(case.filters)
            await page.goto(test_page.url)

            if is_popup_page(test_page.title):
                # Popup cases are decided by the opened pages alone
                demo = await self._demo(page, case.index)
                await check_popup(
                    session.context, page, demo, test_page.title, case.title,
                    settle_ms=self.config.popup_settle_ms,
                )
            else:
                # Sections are looked up again on every capture, a reload replaces them
                async def capture():
                    demo = await self._demo(page, case.index)
                    return await capture_element(page, demo, session.queue)

                outcome = await verify_with_retry(
                    capture, case.expected, case.title, page.reload,
                    timeout_ms=self.config.compare_timeout_ms,
                    poll_interval_ms=self.config.poll_interval_ms,
                )
                result.attempts = outcome.attempts
                result.reloaded = outcome.reloaded
        except ComparisonTimeout as e:
            result.result = "fail"
            result.failure_reason = f"Screenshot mismatch: {e.title}"
            result.attempts = e.attempts
            result.reloaded = True
            result.evidence = self.evidence.save_comparison(case.title, case.expected, e.last_actual)
        except AssertionError as e:
            result.result = "fail"
            result.failure_reason = str(e)
        except Exception as e:
            logger.error("Case '%s' crashed: %s", case.title, e)
            result.result = "error"
            result.failure_reason = str(e)

        result.duration_seconds = round(time.time() - case_start, 2)
        logger.info("[%s] %s (%.1fs)", result.result.upper(), case.title, result.duration_seconds)
        return result

    # === GENERIC EXCEPTIONS ===

    async def run_generic_exceptions(self, session: Session) -> list[CaseResult]:
        results = []
        for item in self.config.generic_exception_pages:
            case_start = time.time()
            result = CaseResult(
                title=f"generic exceptions test for {item.url}",
                suite="generic_exceptions",
                page_url=f"{self.config.test_pages_url}{item.url}",
                result="pass",
            )
            try:
                result.filters = await self.check_generic_exception_page(session, item)
            except AssertionError as e:
                result.result = "fail"
                result.failure_reason = str(e)
            except Exception as e:
                logger.error("%s crashed: %s", result.title, e)
                result.result = "error"
                result.failure_reason = str(e)
            result.duration_seconds = round(time.time() - case_start, 2)
            logger.info("[%s] %s", result.result.upper(), result.title)
            results.append(result)
        return results

    async def _assert_items(self, page: Page, item: GenericExceptionPage,
                            blocked_displayed: bool) -> None:
        await assert_items_in_page(
            page, item.allowed_selectors, item.number_of_allowed_items,
            displayed=True, number_of_iframes=item.number_of_iframes,
            timeout_ms=self.config.element_wait_ms,
        )
        await assert_items_in_page(
            page, item.blocked_selectors, item.number_of_blocked_items,
            displayed=blocked_displayed, number_of_iframes=item.number_of_iframes,
            timeout_ms=self.config.element_wait_ms,
        )

    async def check_generic_exception_page(
        self, session: Session, item: GenericExceptionPage,
    ) -> list[str]:
        """Everything shows before filtering; afterwards only the blocked items hide."""
        page = session.page
        url = f"{self.config.test_pages_url}{item.url}"
        await page.goto(url)
        await page.wait_for_function(
            "title => document.title === title",
            arg=f"{item.title}{self.config.page_title_suffix}",
            timeout=self.config.element_wait_ms,
        )
        await self._assert_items(page, item, blocked_displayed=True)

        filters = [await e.text_content() or "" for e in await page.query_selector_all("pre")]
        await session.bridge.import_filters(filters)
        await page.goto(url)
        await self._assert_items(page, item, blocked_displayed=False)
        return filters

    # === SUBSCRIBE LINK ===

    async def run_subscribe_link(self, session: Session) -> CaseResult:
        case_start = time.time()
        result = CaseResult(
            title="subscribe link", suite="subscribe_link",
            page_url=self.config.test_pages_url, result="pass",
        )
        try:
            await check_subscribe_link(
                session.context, session.page, session.bridge,
                self.config.test_pages_url, self.config.subscription_url,
                wait_ms=self.config.subscribe_wait_ms,
                element_wait_ms=self.config.element_wait_ms,
            )
        except AssertionError as e:
            result.result = "fail"
            result.failure_reason = str(e)
        except Exception as e:
            logger.error("Subscribe link test crashed: %s", e)
            result.result = "error"
            result.failure_reason = str(e)
        result.duration_seconds = round(time.time() - case_start, 2)
        logger.info("[%s] subscribe link", result.result.upper())
        return result
