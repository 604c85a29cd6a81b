"""Report generation orchestration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from filtercheck.models.config import RunnerConfig
from filtercheck.models.test_result import RunResult

from .json_report import generate_json_report
from .regression_detector import Regression, detect_regressions

logger = logging.getLogger(__name__)


class Reporter:
    """Generates reports from run results."""

    def __init__(self, config: RunnerConfig):
        self.config = config

    def generate_reports(
        self,
        run_result: RunResult,
        previous_run: RunResult | None = None,
        output_dir: Path | None = None,
    ) -> tuple[dict[str, str], list[Regression]]:
        """Write all configured formats. Returns format -> path, and regressions."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}

        regressions = []
        if previous_run:
            logger.debug("Detecting regressions against %s...", previous_run.run_id)
            regressions = detect_regressions(previous_run, run_result)

        if "json" in self.config.report_formats:
            path = out_dir / f"report_{run_result.run_id}.json"
            generate_json_report(run_result, regressions, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        for fmt in self.config.report_formats:
            if fmt not in generated:
                logger.warning("Unsupported report format: %s", fmt)

        return generated, regressions

    def load_previous_run(self, current_run_id: str, output_dir: Path | None = None) -> RunResult | None:
        """Load the most recent earlier run from the JSON reports on disk."""
        report_dir = output_dir or Path(self.config.report_output_dir)
        if not report_dir.exists():
            return None

        report_files = sorted(
            report_dir.glob("report_run_*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        for report_path in report_files:
            try:
                with open(report_path) as f:
                    data = json.load(f)
                if data.get("run_id") == current_run_id:
                    continue
                data.pop("regressions", None)
                return RunResult.model_validate(data)
            except (OSError, ValueError) as e:
                logger.debug("Could not load previous run from %s: %s", report_path, e)
        return None
