"""Regression detection — compares run results to find new failures."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from filtercheck.models.test_result import RunResult

logger = logging.getLogger(__name__)


@dataclass
class Regression:
    title: str
    suite: str
    previous_result: str
    current_result: str
    failure_reason: str | None = None


def detect_regressions(previous: RunResult, current: RunResult) -> list[Regression]:
    """Find cases that passed in the previous run and fail or error now.

    Cases are matched by suite and title, which are stable across runs.
    """
    prev_by_key = {(r.suite, r.title): r for r in previous.case_results}

    regressions = []
    for result in current.case_results:
        prev = prev_by_key.get((result.suite, result.title))
        if prev and prev.result == "pass" and result.result in ("fail", "error"):
            regressions.append(Regression(
                title=result.title,
                suite=result.suite,
                previous_result=prev.result,
                current_result=result.result,
                failure_reason=result.failure_reason,
            ))

    if regressions:
        logger.warning("Detected %d regressions", len(regressions))
    return regressions
