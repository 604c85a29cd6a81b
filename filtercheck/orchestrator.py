"""Run orchestrator — executes the suites and writes reports."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from filtercheck.executor.runner import SUITES, PagesRunner
from filtercheck.models.config import RunnerConfig
from filtercheck.reporter.reporter import Reporter

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates a run and its reports."""

    def __init__(self, config: RunnerConfig):
        self.config = config
        self.reporter = Reporter(config)

    def run(self, suites: tuple[str, ...] = SUITES) -> dict:
        return asyncio.run(self._run(suites))

    async def _run(self, suites: tuple[str, ...]) -> dict:
        runner = PagesRunner(self.config)
        run_result = await runner.run(suites)

        previous = self.reporter.load_previous_run(run_result.run_id)
        reports, regressions = self.reporter.generate_reports(
            run_result, previous_run=previous,
            output_dir=Path(self.config.report_output_dir),
        )
        return {
            "run": run_result,
            "reports": reports,
            "regressions": regressions,
        }
