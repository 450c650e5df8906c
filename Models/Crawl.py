"""
Models/Crawl.py — Per-run crawl state and the exploration result.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from .Page import ElementRecord, FormRecord, PageRecord


@dataclass(frozen=True)
class FrontierEntry:
    """A discovered URL waiting to be visited."""

    url: str
    depth: int
    """Link hops from the start URL."""


@dataclass
class CrawlSession:
    """All mutable state of one exploration run.

    Created by the spider for a single run and handed to the
    :class:`~Spider.Frontier.Frontier`, which is the only component that
    mutates :attr:`visited` and :attr:`pending`.
    """

    start_url: str
    max_depth: int
    max_pages: int

    visited: set[str] = field(default_factory=set)
    pending: deque[FrontierEntry] = field(default_factory=deque)
    queued: set[str] = field(default_factory=set)
    """URLs currently sitting in :attr:`pending`."""

    pages: list[PageRecord] = field(default_factory=list)
    forms: list[FormRecord] = field(default_factory=list)
    elements: list[ElementRecord] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    """Claimed URLs whose visit produced no page record."""


@dataclass
class ExplorationResult:
    """The accumulated record of a finished crawl."""

    app_name: str
    base_url: str
    pages: list[PageRecord] = field(default_factory=list)
    forms: list[FormRecord] = field(default_factory=list)
    elements: list[ElementRecord] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    duration: float = 0.0
    """Wall-clock crawl time in seconds."""

    pages_explored: Optional[int] = None
    """Number of claimed URLs (successful or not); defaults to ``len(pages) + len(failed)``."""

    def statistics(self) -> dict[str, int]:
        explored = self.pages_explored
        if explored is None:
            explored = len(self.pages) + len(self.failed)
        return {
            "pagesExplored": explored,
            "pagesFailed": len(self.failed),
            "formsFound": len(self.forms),
            "elementsSampled": len(self.elements),
            "duration": round(self.duration),
        }
