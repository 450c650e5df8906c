"""
Spider/Hooks.py — Optional post-visit capabilities.

A hook receives the still-open page and the finished :class:`~Models.PageVisit`
after extraction.  Hooks are best-effort: the spider discards any error a
hook raises, so a failing hook can never fail the visit.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Protocol

from playwright.async_api import Page

from Models import PageVisit

logger = logging.getLogger(__name__)


class PostVisitHook(Protocol):
    async def __call__(self, page: Page, visit: PageVisit) -> None: ...


async def run_hooks(hooks: list[PostVisitHook], page: Page, visit: PageVisit) -> None:
    """Run every hook in order, logging and discarding their failures."""
    for hook in hooks:
        try:
            await hook(page, visit)
        except Exception as exc:
            logger.debug("Post-visit hook %r failed on %s: %s", hook, visit.page.url, exc)


class ScreenshotHook:
    """Captures a viewport screenshot of each visited page."""

    def __init__(self, directory: Path, full_page: bool = False) -> None:
        self.directory = Path(directory)
        self.full_page = full_page

    def path_for(self, visit: PageVisit) -> Path:
        stem = re.sub(r"[^a-z0-9]", "-", visit.page.page_name.lower()) or "page"
        return self.directory / f"{stem}.png"

    async def __call__(self, page: Page, visit: PageVisit) -> None:
        target = self.path_for(visit)
        target.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(target), full_page=self.full_page)
        visit.screenshot = str(target)
        logger.debug("Screenshot saved: %s", target)

    def __repr__(self) -> str:
        return f"ScreenshotHook({self.directory})"


def screenshot_hook_for(directory: Optional[Path]) -> list[PostVisitHook]:
    """Return ``[ScreenshotHook]`` when *directory* is set, else no hooks."""
    if directory is None:
        return []
    return [ScreenshotHook(directory)]
