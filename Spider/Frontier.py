"""
Spider/Frontier.py — Visited set and FIFO frontier for one crawl.

The frontier owns every piece of mutable traversal state in a
:class:`~Models.CrawlSession`.  URLs are claimed (added to the visited set)
at dequeue time, so a URL is handed to at most one visit per run even when
several visits run concurrently.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from Models import CrawlSession, FrontierEntry

logger = logging.getLogger(__name__)

# Path extensions that never lead to an HTML page
SKIP_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".csv",
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico",
        ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2",
        ".exe", ".dmg", ".pkg", ".deb", ".rpm", ".msi",
        ".mp4", ".mp3", ".wav", ".avi", ".mov",
    }
)


class Frontier:
    """Breadth-first frontier bounded by depth and page budget.

    Usage::

        frontier = Frontier(session)
        frontier.enqueue(start_url, 0)
        while not frontier.is_exhausted():
            entry = frontier.dequeue_next()
            ...
    """

    def __init__(self, session: CrawlSession) -> None:
        self.session = session
        self.start_host: str = (urlparse(session.start_url).hostname or "").lower()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def seed(self, hint_pages: Iterable[str] = ()) -> None:
        """Enqueue the start URL at depth 0 and *hint_pages* at depth 1."""
        self.enqueue(self.session.start_url, 0)
        for hint in hint_pages:
            self.enqueue(urljoin(self.session.start_url, hint), 1)

    def enqueue(self, url: str, depth: int, source_url: Optional[str] = None) -> bool:
        """Queue *url* for a visit at *depth*.

        Silently ignores (returns *False*) URLs that are already visited or
        queued, too deep, on another host, non-page files, or pure anchors
        into *source_url*.
        """
        if depth > self.session.max_depth:
            return False
        if source_url is not None and self.is_same_page_anchor(url, source_url):
            return False

        norm = self.normalize_url(url)
        if not norm:
            return False
        if norm in self.session.visited or norm in self.session.queued:
            return False
        if not self.in_scope(norm):
            logger.debug("Off-host link ignored: %s", norm)
            return False
        if self.should_skip(norm):
            logger.debug("Non-page resource ignored: %s", norm)
            return False

        self.session.pending.append(FrontierEntry(url=norm, depth=depth))
        self.session.queued.add(norm)
        return True

    def dequeue_next(self) -> Optional[FrontierEntry]:
        """Claim and return the oldest pending entry, or *None* when exhausted."""
        while not self.is_exhausted():
            entry = self.session.pending.popleft()
            self.session.queued.discard(entry.url)
            if entry.url in self.session.visited or entry.depth > self.session.max_depth:
                continue
            self.session.visited.add(entry.url)
            return entry
        return None

    def claim_batch(self, size: int) -> list[FrontierEntry]:
        """Claim up to *size* entries in FIFO order without exceeding the page budget."""
        batch: list[FrontierEntry] = []
        while len(batch) < size:
            entry = self.dequeue_next()
            if entry is None:
                break
            batch.append(entry)
        return batch

    def is_exhausted(self) -> bool:
        """Return *True* when nothing is pending or the page budget is spent."""
        return (
            not self.session.pending
            or len(self.session.visited) >= self.session.max_pages
        )

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_url(url: str) -> str:
        """Return a fragment-free ``http(s)`` URL with a lower-case host and a
        non-empty path, or ``""`` if *url* is not one.
        """
        try:
            parsed = urlparse(url)
        except ValueError:
            return ""
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            return ""
        return urlunparse(parsed._replace(
            netloc=parsed.netloc.lower(), path=parsed.path or "/", fragment=""
        ))

    def in_scope(self, url: str) -> bool:
        """Return *True* if *url* is on the same host as the start URL."""
        try:
            return (urlparse(url).hostname or "").lower() == self.start_host
        except ValueError:
            return False

    @staticmethod
    def should_skip(url: str) -> bool:
        """Return *True* if the URL path ends in a known non-page extension."""
        path = urlparse(url).path.lower()
        _, dot, ext = path.rpartition(".")
        return bool(dot) and "/" not in ext and f".{ext}" in SKIP_EXTENSIONS

    @staticmethod
    def is_same_page_anchor(url: str, source_url: str) -> bool:
        """Return *True* if *url* only points at a fragment of *source_url*."""
        try:
            target = urlparse(url)
            source = urlparse(source_url)
        except ValueError:
            return False
        if not target.fragment:
            return False
        return target._replace(fragment="") == source._replace(fragment="")
