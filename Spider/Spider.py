"""
Spider/Spider.py — Bounded breadth-first exploration of a web application.

Drives the :class:`~Spider.Frontier.Frontier` loop: claims the next
entries, visits them in the shared Playwright context, hands the loaded
page to the :class:`~Spider.Extractor.PageExtractor` and feeds discovered
links back into the frontier one hop deeper.  A page that fails to load
consumes its slot of the page budget but never aborts the run.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, Optional
from urllib.parse import urlparse

from playwright.async_api import BrowserContext, Error as PlaywrightError, Page

from Auth import AuthManager
from Models import CrawlSession, ExplorationResult, FrontierEntry, PageVisit
from Reporter import Reporter

from .Extractor import PageExtractor
from .Frontier import Frontier
from .Hooks import PostVisitHook, run_hooks

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Spider
# ---------------------------------------------------------------------------


class Spider:
    """Async BFS explorer.

    With ``concurrency=1`` pages are visited strictly one after another.
    Larger values visit up to that many frontier entries at once; the page
    and depth limits stay global because entries are claimed from the one
    frontier, in FIFO order, before any visit starts.
    """

    def __init__(
        self,
        context: BrowserContext,
        start_url: str,
        app_name: str,
        reporter: Reporter,
        max_pages: int = 50,
        max_depth: int = 3,
        concurrency: int = 1,
        settle_delay: float = 1.0,
        navigation_timeout: int = 30_000,
        visit_timeout: float = 60.0,
        hint_pages: Iterable[str] = (),
        hooks: Optional[list[PostVisitHook]] = None,
        auth_manager: Optional[AuthManager] = None,
        shutdown_event: Optional[asyncio.Event] = None,
        verbose: bool = False,
    ) -> None:
        self.context = context
        self.start_url = start_url
        self.app_name = app_name
        self.reporter = reporter
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.concurrency = max(1, concurrency)
        self.navigation_timeout = navigation_timeout
        self.visit_timeout = visit_timeout
        self.hint_pages = list(hint_pages)
        self.hooks: list[PostVisitHook] = list(hooks or [])
        self.auth_manager = auth_manager
        self.shutdown_event = shutdown_event or asyncio.Event()
        self.verbose = verbose

        self.extractor = PageExtractor(settle_delay=settle_delay)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def crawl(self) -> ExplorationResult:
        """Explore from :attr:`start_url` and return everything discovered.

        Stops when the frontier is empty, the page budget is spent, or a
        shutdown is requested.
        """
        session = CrawlSession(
            start_url=self.start_url,
            max_depth=self.max_depth,
            max_pages=self.max_pages,
        )
        frontier = Frontier(session)
        frontier.seed(self.hint_pages)

        started = time.monotonic()
        with self.reporter.crawl_progress(self.max_pages, enabled=not self.verbose) as advance:
            while not frontier.is_exhausted() and not self.shutdown_event.is_set():
                batch = frontier.claim_batch(self.concurrency)
                if not batch:
                    break

                visits = await asyncio.gather(
                    *[self._bounded_visit(entry) for entry in batch],
                    return_exceptions=True,
                )

                for entry, visit in zip(batch, visits):
                    advance()
                    if isinstance(visit, BaseException) or visit is None:
                        session.failed.append(entry.url)
                        if self.verbose:
                            self.reporter.log_warning(f"Failed to load {entry.url}")
                        continue
                    self._record(session, frontier, entry, visit)

        if len(session.visited) >= self.max_pages:
            logger.info("max-pages limit (%d) reached", self.max_pages)

        return ExplorationResult(
            app_name=self.app_name,
            base_url=self.start_url,
            pages=session.pages,
            forms=session.forms,
            elements=session.elements,
            failed=session.failed,
            duration=time.monotonic() - started,
            pages_explored=len(session.visited),
        )

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _record(
        self,
        session: CrawlSession,
        frontier: Frontier,
        entry: FrontierEntry,
        visit: PageVisit,
    ) -> None:
        """Accumulate *visit* into *session* and queue its outbound links."""
        session.pages.append(visit.page)
        session.forms.extend(visit.forms)
        session.elements.extend(visit.elements)

        queued = 0
        for link in visit.links:
            if frontier.enqueue(link, entry.depth + 1, source_url=visit.page.url):
                queued += 1

        if self.verbose:
            self.reporter.log_page(visit, entry.depth, queued)

    # ------------------------------------------------------------------
    # Page visit
    # ------------------------------------------------------------------

    async def _bounded_visit(self, entry: FrontierEntry) -> Optional[PageVisit]:
        try:
            return await asyncio.wait_for(
                self._visit_page(entry.url, entry.depth), timeout=self.visit_timeout
            )
        except asyncio.TimeoutError:
            logger.debug("Visit timed out after %.0fs: %s", self.visit_timeout, entry.url)
            return None

    async def _visit_page(self, url: str, depth: int) -> Optional[PageVisit]:
        """Open *url* in a new page and extract it.

        Returns *None* for navigation errors, non-2xx responses, redirects
        that leave the start host, and extraction errors.
        """
        page: Optional[Page] = None
        try:
            page = await self.context.new_page()
            response = await page.goto(
                url, wait_until="networkidle", timeout=self.navigation_timeout
            )

            # Session expiry: we asked for a page and landed on the login form
            if (
                self.auth_manager
                and self.auth_manager.is_login_page(page.url)
                and not self.auth_manager.is_login_page(url)
            ):
                logger.info("Session expiry detected at %s — re-authenticating", url)
                await page.close()
                page = None
                await self.auth_manager.re_authenticate(self.context)
                page = await self.context.new_page()
                response = await page.goto(
                    url, wait_until="networkidle", timeout=self.navigation_timeout
                )

            if response is None:
                logger.debug("No response for %s — skipping", url)
                return None
            if not 200 <= response.status < 300:
                logger.debug("HTTP %d for %s — skipping", response.status, url)
                return None

            final_url = self._page_identity(url, page.url)
            if final_url is None:
                logger.debug("Redirect left the start host: %s -> %s", url, page.url)
                return None

            visit = await self.extractor.extract(page, final_url, depth)
            await run_hooks(self.hooks, page, visit)
            return visit

        except PlaywrightError as exc:
            logger.debug("Playwright error visiting %s: %s", url, exc)
            return None
        except Exception as exc:
            logger.debug("Unexpected error visiting %s: %s", url, exc)
            return None
        finally:
            if page and not page.is_closed():
                try:
                    await page.close()
                except PlaywrightError:
                    pass

    def _page_identity(self, requested: str, landed: str) -> Optional[str]:
        """Return the URL a visited page is recorded under.

        Same-host forwards keep the requested URL; a redirect to another
        host yields *None*.
        """
        if not landed or landed == requested:
            return requested
        start_host = (urlparse(self.start_url).hostname or "").lower()
        landed_host = (urlparse(landed).hostname or "").lower()
        if landed_host != start_host:
            return None
        p_req, p_got = urlparse(requested), urlparse(landed)
        if p_req.scheme == p_got.scheme:
            return requested
        return landed
