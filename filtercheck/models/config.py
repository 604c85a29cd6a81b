"""Configuration models for the test pages runner."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


def browser_family(label: str) -> str:
    """The browser label up to the first dash ("chromium-oldest" -> "chromium")."""
    return label.split("-", 1)[0].lower()


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class ExclusionRule(BaseModel):
    """A test page that must not run on a given browser."""
    browser: str  # browser label ("chromium-oldest") or family ("chromium")
    page: str
    match: Literal["exact", "prefix"] = "exact"
    reason: str = ""


class GenericExceptionPage(BaseModel):
    """A page checked by element visibility instead of screenshots."""
    url: str  # relative to test_pages_url
    title: str
    blocked_selectors: str
    number_of_blocked_items: int
    allowed_selectors: str
    number_of_allowed_items: int
    number_of_iframes: int = 0


def default_exclusions() -> list[ExclusionRule]:
    return [
        ExclusionRule(
            browser="firefox", page="$subdocument",
            reason="https://issues.adblockplus.org/ticket/6917",
        ),
        ExclusionRule(
            browser="chromium", page="$object", match="prefix",
            reason="Chromium doesn't support Flash",
        ),
        ExclusionRule(
            browser="chromium-oldest", page="Inline style !important",
            reason="No user stylesheets to overrule inline styles",
        ),
        ExclusionRule(
            browser="chromium-oldest", page="Anonymous iframe document.write()",
            reason="No content scripts in dynamically written documents",
        ),
    ]


def default_generic_exception_pages() -> list[GenericExceptionPage]:
    return [
        GenericExceptionPage(
            url="exceptions/genericblock",
            title="$genericblock Exception",
            blocked_selectors=".blocked",
            number_of_blocked_items=1,
            allowed_selectors="*[src*='target-generic']",
            number_of_allowed_items=1,
            number_of_iframes=1,
        ),
        GenericExceptionPage(
            url="exceptions/generichide",
            title="$generichide Exception",
            blocked_selectors=".blocked",
            number_of_blocked_items=1,
            allowed_selectors=".target-green",
            number_of_allowed_items=1,
            number_of_iframes=1,
        ),
    ]


class RunnerConfig(BaseModel):
    # Target
    test_pages_url: str = "https://testpages.adblockplus.org/en/"
    page_title_suffix: str = " - ABP Test Pages"

    # Browser
    extension_path: str
    browser: str = "chromium"  # label, e.g. "chromium", "chromium-oldest", "firefox"
    headless: bool = False
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    user_data_dir: Optional[str] = None
    extension_discovery_timeout_ms: int = 30000

    # Oracle timing
    compare_timeout_ms: int = 1000
    poll_interval_ms: int = 50
    popup_settle_ms: int = 100
    element_wait_ms: int = 1000
    subscribe_wait_ms: int = 3000
    navigation_timeout_ms: int = 30000

    # Suites
    exclusions: list[ExclusionRule] = Field(default_factory=default_exclusions)
    generic_exception_pages: list[GenericExceptionPage] = Field(
        default_factory=default_generic_exception_pages
    )

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["json"])
    report_output_dir: str = "./filtercheck-reports"
    evidence_dir: str = "./filtercheck-evidence"

    @field_validator("extension_path", mode="before")
    @classmethod
    def resolve_env_path(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @field_validator("test_pages_url")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"

    @property
    def subscription_url(self) -> str:
        return f"{self.test_pages_url}abp-testcase-subscription.txt"

    @classmethod
    def load(cls, path: str | Path) -> "RunnerConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
