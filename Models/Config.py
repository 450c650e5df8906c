"""
Models/Config.py — Run configuration shared by the explorer, analyzer and store.
"""
from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .Errors import ConfigurationError

DEFAULT_OUTPUT_DIRECTORY: str = str(Path.home() / ".app-skills")


@dataclass
class ExplorerConfig:
    """All options recognised by the exploration pipeline."""

    app_name: Optional[str]
    target_url: Optional[str] = None
    context_path: Optional[str] = None
    update_mode: bool = False
    output_directory: str = DEFAULT_OUTPUT_DIRECTORY

    # ── Crawl bounds ──────────────────────────────────────────────────────────
    max_depth: int = 3
    max_pages: int = 50
    concurrency: int = 1
    settle_delay: float = 1.0
    """Seconds to wait after navigation for client-rendered content."""

    navigation_timeout: int = 30_000
    """Milliseconds allowed for ``page.goto``."""

    visit_timeout: float = 60.0
    """Seconds allowed for a whole page visit (navigation + extraction)."""

    # ── Browser ───────────────────────────────────────────────────────────────
    headless: bool = True
    screenshots: bool = True
    screenshot_dir: Optional[str] = None
    auth_script: Optional[str] = None

    verbose: bool = False

    # ── Seeding from the documentation reader ────────────────────────────────
    hint_pages: list[str] = field(default_factory=list)
    credential_hints: list[str] = field(default_factory=list)
    feature_hints: list[str] = field(default_factory=list)

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if the run cannot start."""
        if not self.app_name or not self.app_name.strip():
            raise ConfigurationError("Application name is required (use --name)")
        if not self.target_url and not self.update_mode and not self.context_path:
            raise ConfigurationError(
                "Application URL is required (use --url or provide it via --docs)"
            )
        if self.target_url and not is_valid_start_url(self.target_url):
            raise ConfigurationError(f"Invalid URL: {self.target_url}")
        if self.max_depth < 0:
            raise ConfigurationError("--max-depth must be zero or greater")
        if self.max_pages < 1:
            raise ConfigurationError("--max-pages must be at least 1")
        if self.concurrency < 1:
            raise ConfigurationError("--concurrency must be at least 1")

    @property
    def resolved_screenshot_dir(self) -> Path:
        if self.screenshot_dir:
            return Path(self.screenshot_dir)
        return Path(tempfile.gettempdir()) / "app-skill-screenshots" / (self.app_name or "app")


def is_valid_start_url(url: str) -> bool:
    """Return *True* for an absolute ``http``/``https`` URL with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.hostname)
