"""
tests/test_spider.py — Unit tests for the Spider crawl loop and page visits.

The crawl loop is driven against an in-memory site graph by replacing
``_visit_page``; single visits are driven with ``AsyncMock`` Playwright
objects.  No live browser is needed.
"""
import asyncio
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from Analyzer import analyze
from Analyzer.Classifier import PASSWORD_PLACEHOLDER
from Models import PageVisit
from Spider import ScreenshotHook, Spider, build_forms, build_page_record, run_hooks

BASE = "https://example.com"


def make_spider(start_url: str = f"{BASE}/", **kwargs) -> Spider:
    """Return a Spider with a mocked context and reporter."""
    defaults = dict(
        context=MagicMock(),
        start_url=start_url,
        app_name="demo",
        reporter=MagicMock(),
        max_pages=50,
        max_depth=3,
        settle_delay=0,
    )
    defaults.update(kwargs)
    return Spider(**defaults)


def visit(url: str, title: str = "", links: tuple = (), forms: tuple = (), depth: int = 0) -> PageVisit:
    return PageVisit(
        page=build_page_record({"title": title}, url, depth),
        forms=build_forms(list(forms), url),
        links=list(links),
    )


LOGIN_FORM = {
    "action": "",
    "method": "post",
    "fields": [
        {"tag": "input", "type": "email", "name": "email"},
        {"tag": "input", "type": "password", "name": "password"},
    ],
    "buttons": [{"text": "Sign in", "type": "submit"}],
}

# Three-page application: homepage → login, dashboard.
SITE: dict[str, dict] = {
    f"{BASE}/": dict(
        title="Acme",
        links=(
            f"{BASE}/login",
            f"{BASE}/dashboard",
            f"{BASE}/report.pdf",
            "https://other.org/",
            f"{BASE}/#top",
        ),
    ),
    f"{BASE}/login": dict(title="Log in", links=(f"{BASE}/",), forms=(LOGIN_FORM,)),
    f"{BASE}/dashboard": dict(title="Dashboard", links=(f"{BASE}/", f"{BASE}/login")),
}


class FakeSite:
    """Stands in for ``Spider._visit_page``; records the visit order."""

    def __init__(self, site: dict[str, dict], broken: tuple = ()) -> None:
        self.site = site
        self.broken = set(broken)
        self.visited: list[tuple[str, int]] = []

    async def __call__(self, url: str, depth: int) -> Optional[PageVisit]:
        self.visited.append((url, depth))
        if url in self.broken or url not in self.site:
            return None
        return visit(url, depth=depth, **self.site[url])


def crawl(spider: Spider, site: FakeSite):
    spider._visit_page = site
    return asyncio.run(spider.crawl())


# ---------------------------------------------------------------------------
# Crawl loop
# ---------------------------------------------------------------------------


class TestCrawl:
    def test_three_page_application(self):
        site = FakeSite(SITE)
        result = crawl(make_spider(), site)

        assert [p.path for p in result.pages] == ["/", "/login", "/dashboard"]
        assert [p.page_type for p in result.pages] == ["homepage", "login", "dashboard"]
        assert result.failed == []

        (login_form,) = result.forms
        assert login_form.pattern == "login"
        assert login_form.generated_test_data == {
            "email": "test@example.com",
            "password": PASSWORD_PLACEHOLDER,
        }

        knowledge = analyze(result)
        assert "Login Flow" in [f.name for f in knowledge.user_flows]

    def test_non_page_and_off_host_links_never_visited(self):
        site = FakeSite(SITE)
        crawl(make_spider(), site)
        urls = [u for u, _ in site.visited]
        assert f"{BASE}/report.pdf" not in urls
        assert "https://other.org/" not in urls
        assert len(urls) == len(set(urls))

    def test_breadth_first_order_and_depths(self):
        site = FakeSite({
            f"{BASE}/": dict(links=(f"{BASE}/a", f"{BASE}/b")),
            f"{BASE}/a": dict(links=(f"{BASE}/a/1",)),
            f"{BASE}/b": dict(links=(f"{BASE}/b/1",)),
            f"{BASE}/a/1": dict(),
            f"{BASE}/b/1": dict(),
        })
        crawl(make_spider(), site)
        assert site.visited == [
            (f"{BASE}/", 0),
            (f"{BASE}/a", 1),
            (f"{BASE}/b", 1),
            (f"{BASE}/a/1", 2),
            (f"{BASE}/b/1", 2),
        ]

    def test_start_url_without_trailing_slash_visits_root_once(self):
        site = FakeSite(SITE)
        result = crawl(make_spider(start_url=BASE, max_pages=2), site)
        assert site.visited == [(f"{BASE}/", 0), (f"{BASE}/login", 1)]
        assert [p.path for p in result.pages] == ["/", "/login"]

    def test_max_pages_one_visits_only_start(self):
        site = FakeSite(SITE)
        result = crawl(make_spider(max_pages=1), site)
        assert site.visited == [(f"{BASE}/", 0)]
        assert result.statistics()["pagesExplored"] == 1

    def test_max_depth_zero_visits_only_start(self):
        site = FakeSite(SITE)
        crawl(make_spider(max_depth=0), site)
        assert site.visited == [(f"{BASE}/", 0)]

    def test_failures_consume_budget_without_aborting(self):
        site = FakeSite(SITE, broken=(f"{BASE}/login",))
        result = crawl(make_spider(max_pages=2), site)
        assert [p.path for p in result.pages] == ["/"]
        assert result.failed == [f"{BASE}/login"]
        assert result.statistics()["pagesExplored"] == 2

    def test_failed_start_url_yields_empty_result(self):
        result = crawl(make_spider(), FakeSite({}))
        assert result.pages == []
        assert result.failed == [f"{BASE}/"]

    def test_visit_exception_counts_as_failure(self):
        spider = make_spider()

        async def explode(url, depth):
            raise RuntimeError("boom")

        spider._visit_page = explode
        result = asyncio.run(spider.crawl())
        assert result.failed == [f"{BASE}/"]

    def test_hint_pages_visited_after_start(self):
        site = FakeSite({f"{BASE}/": dict(), f"{BASE}/pricing": dict(title="Pricing")})
        crawl(make_spider(hint_pages=["/pricing"]), site)
        assert site.visited == [(f"{BASE}/", 0), (f"{BASE}/pricing", 1)]

    def test_concurrency_keeps_page_limit(self):
        links = tuple(f"{BASE}/p{i}" for i in range(10))
        graph = {f"{BASE}/": dict(links=links)}
        graph.update({url: dict() for url in links})
        site = FakeSite(graph)
        result = crawl(make_spider(max_pages=4, concurrency=3), site)
        assert len(site.visited) == 4
        assert len(result.pages) == 4

    def test_shutdown_stops_before_next_batch(self):
        event = asyncio.Event()
        event.set()
        site = FakeSite(SITE)
        result = crawl(make_spider(shutdown_event=event), site)
        assert site.visited == []
        assert result.pages == []

    def test_verbose_reports_each_page(self):
        reporter = MagicMock()
        crawl(make_spider(reporter=reporter, verbose=True), FakeSite(SITE))
        assert reporter.log_page.call_count == 3


# ---------------------------------------------------------------------------
# _page_identity
# ---------------------------------------------------------------------------


class TestPageIdentity:
    def test_same_url(self):
        s = make_spider()
        assert s._page_identity(f"{BASE}/a", f"{BASE}/a") == f"{BASE}/a"

    def test_same_host_redirect_keeps_requested(self):
        s = make_spider()
        assert s._page_identity(f"{BASE}/old", f"{BASE}/new") == f"{BASE}/old"

    def test_off_host_redirect_rejected(self):
        s = make_spider()
        assert s._page_identity(f"{BASE}/sso", "https://idp.other.org/login") is None

    def test_scheme_upgrade_uses_landed(self):
        s = make_spider(start_url="http://example.com/")
        assert s._page_identity("http://example.com/a", "https://example.com/a") == "https://example.com/a"


# ---------------------------------------------------------------------------
# _visit_page with mocked Playwright objects
# ---------------------------------------------------------------------------


def mock_page(url: str, status: Optional[int] = 200) -> MagicMock:
    page = MagicMock()
    page.url = url
    page.is_closed = MagicMock(return_value=False)
    page.close = AsyncMock()
    page.screenshot = AsyncMock()
    if status is None:
        page.goto = AsyncMock(return_value=None)
    else:
        response = MagicMock()
        response.status = status
        page.goto = AsyncMock(return_value=response)
    return page


class TestVisitPage:
    def _spider(self, *pages, **kwargs) -> Spider:
        context = MagicMock()
        context.new_page = AsyncMock(side_effect=list(pages))
        spider = make_spider(context=context, **kwargs)
        spider.extractor.extract = AsyncMock(
            side_effect=lambda page, url, depth: visit(url, depth=depth)
        )
        return spider

    def test_successful_visit(self):
        page = mock_page(f"{BASE}/about")
        spider = self._spider(page)
        result = asyncio.run(spider._visit_page(f"{BASE}/about", 1))
        assert result.page.url == f"{BASE}/about"
        assert result.page.depth == 1
        page.close.assert_awaited_once()

    @pytest.mark.parametrize("status", [404, 500, 302])
    def test_non_2xx_is_failure(self, status):
        page = mock_page(f"{BASE}/missing", status=status)
        spider = self._spider(page)
        assert asyncio.run(spider._visit_page(f"{BASE}/missing", 1)) is None
        page.close.assert_awaited_once()

    def test_no_response_is_failure(self):
        spider = self._spider(mock_page(f"{BASE}/x", status=None))
        assert asyncio.run(spider._visit_page(f"{BASE}/x", 1)) is None

    def test_off_host_redirect_is_failure(self):
        spider = self._spider(mock_page("https://other.org/"))
        assert asyncio.run(spider._visit_page(f"{BASE}/out", 1)) is None

    def test_extraction_error_is_failure(self):
        page = mock_page(f"{BASE}/a")
        spider = self._spider(page)
        spider.extractor.extract = AsyncMock(side_effect=ValueError("bad dom"))
        assert asyncio.run(spider._visit_page(f"{BASE}/a", 1)) is None
        page.close.assert_awaited_once()

    def test_session_expiry_triggers_one_reauthentication(self):
        auth = MagicMock()
        auth.is_login_page = MagicMock(side_effect=lambda u: u.rstrip("/").endswith("/login"))
        auth.re_authenticate = AsyncMock(return_value=True)
        bounced = mock_page(f"{BASE}/login")
        retried = mock_page(f"{BASE}/settings")
        spider = self._spider(bounced, retried, auth_manager=auth)

        result = asyncio.run(spider._visit_page(f"{BASE}/settings", 1))

        auth.re_authenticate.assert_awaited_once()
        assert result.page.url == f"{BASE}/settings"
        assert retried.goto.await_count == 1

    def test_hooks_run_after_extraction(self, tmp_path):
        page = mock_page(f"{BASE}/about")
        spider = self._spider(page, hooks=[ScreenshotHook(tmp_path)])
        result = asyncio.run(spider._visit_page(f"{BASE}/about", 1))
        page.screenshot.assert_awaited_once()
        assert result.screenshot.endswith(".png")


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TestHooks:
    def test_failing_hook_does_not_raise(self):
        async def bad_hook(page, v):
            raise RuntimeError("disk full")

        v = visit(f"{BASE}/")
        asyncio.run(run_hooks([bad_hook], MagicMock(), v))
        assert v.screenshot is None

    def test_screenshot_path_from_page_name(self, tmp_path):
        hook = ScreenshotHook(tmp_path)
        v = visit(f"{BASE}/pricing", title="Plans & Pricing")
        assert hook.path_for(v) == tmp_path / "plans---pricing.png"
