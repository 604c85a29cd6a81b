"""Declarative (browser, page) exclusion table."""

from __future__ import annotations

import logging
from typing import Optional

from filtercheck.models.config import ExclusionRule, browser_family

logger = logging.getLogger(__name__)


def _browser_matches(rule: ExclusionRule, browser: str) -> bool:
    return rule.browser.lower() in (browser.lower(), browser_family(browser))


def _page_matches(rule: ExclusionRule, page_title: str) -> bool:
    if rule.match == "prefix":
        return page_title.startswith(rule.page)
    return page_title == rule.page


def is_excluded(
    rules: list[ExclusionRule], browser: str, page_title: str,
) -> Optional[ExclusionRule]:
    """Return the first rule excluding this page on this browser, if any.

    A rule's browser matches either the full label ("chromium-oldest") or the
    family ("chromium"), so family rules also cover every labelled variant.
    """
    for rule in rules:
        if _browser_matches(rule, browser) and _page_matches(rule, page_title):
            logger.debug("Excluding '%s' on %s: %s", page_title, browser, rule.reason)
            return rule
    return None
