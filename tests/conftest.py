"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from filtercheck.models.bitmap import Bitmap
from filtercheck.models.config import RunnerConfig, ViewportConfig
from filtercheck.models.test_result import CaseResult, RunResult


# ============================================================================
# Image Helpers
# ============================================================================


WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


def make_image(width: int, height: int, color=WHITE, boxes=()) -> Image.Image:
    """Create an RGBA image, optionally with filled (x, y, w, h, color) boxes."""
    image = Image.new("RGBA", (width, height), color)
    for x, y, w, h, box_color in boxes:
        image.paste(box_color, (x, y, x + w, y + h))
    return image


def make_png(width: int, height: int, color=WHITE, boxes=()) -> bytes:
    buf = io.BytesIO()
    make_image(width, height, color, boxes).save(buf, format="PNG")
    return buf.getvalue()


def make_bitmap(width: int, height: int, color=WHITE) -> Bitmap:
    return Bitmap.from_image(make_image(width, height, color))


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def runner_config(tmp_path: Path) -> RunnerConfig:
    """Create a test runner configuration."""
    return RunnerConfig(
        test_pages_url="https://testpages.example.org/en/",
        extension_path=str(tmp_path / "extension"),
        browser="chromium",
        viewport=ViewportConfig(width=800, height=600),
        compare_timeout_ms=20,
        poll_interval_ms=1,
        popup_settle_ms=0,
        report_output_dir=str(tmp_path / "reports"),
        evidence_dir=str(tmp_path / "evidence"),
    )


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def case_result() -> CaseResult:
    return CaseResult(
        title="$script - Basic usage",
        suite="test_pages",
        page_url="https://testpages.example.org/en/filters/script",
        result="pass",
        attempts=1,
        filters=["||testpages.example.org/script.js"],
    )


@pytest.fixture
def run_result(case_result: CaseResult) -> RunResult:
    result = RunResult(
        run_id="run_0001",
        started_at="2025-01-01T00:00:00Z",
        completed_at="2025-01-01T00:05:00Z",
        test_pages_url="https://testpages.example.org/en/",
        browser="chromium",
        duration_seconds=300.0,
        case_results=[case_result],
    )
    result.tally()
    return result


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_element(rect: dict | None = None) -> AsyncMock:
    """Create a mock element handle whose rect script returns ``rect``."""
    element = AsyncMock()
    element.evaluate = AsyncMock(return_value=rect)
    return element


def make_capture_page(screenshot: bytes, scroll=(0, 0)) -> AsyncMock:
    """Create a mock page that scrolls to ``scroll`` and returns ``screenshot``."""
    page = AsyncMock()
    page.evaluate = AsyncMock(return_value=list(scroll))
    page.screenshot = AsyncMock(return_value=screenshot)
    return page


@pytest.fixture
def mock_context() -> Mock:
    """Create a mock browser context with a real list of pages."""
    context = Mock()
    context.pages = []
    return context
