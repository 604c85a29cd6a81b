"""Evidence collector — stores expected and actual bitmaps of failed cases."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from filtercheck.models.bitmap import Bitmap
from filtercheck.models.test_result import Evidence

logger = logging.getLogger(__name__)


def _slug(title: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", title).strip("_").lower() or "case"


class EvidenceCollector:
    """Writes comparison evidence as PNG files."""

    def __init__(self, evidence_dir: Path):
        self.evidence_dir = evidence_dir
        self.evidence_dir.mkdir(parents=True, exist_ok=True)
        self._case_count = 0

    def _save(self, bitmap: Bitmap | None, name: str) -> str | None:
        if bitmap is None:
            return None
        path = self.evidence_dir / name
        try:
            bitmap.to_image().save(path, format="PNG")
            return str(path)
        except OSError as e:
            logger.warning("Saving %s failed: %s", path, e)
            return None

    def save_comparison(
        self, title: str, expected: Bitmap | None, actual: Bitmap | None,
    ) -> Evidence:
        """Save both sides of a mismatch and return their paths."""
        self._case_count += 1
        stem = f"{self._case_count:03d}_{_slug(title)}"
        return Evidence(
            expected_image=self._save(expected, f"{stem}_expected.png"),
            actual_image=self._save(actual, f"{stem}_actual.png"),
        )
