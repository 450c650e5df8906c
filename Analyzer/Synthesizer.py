"""
Analyzer/Synthesizer.py — User flows, test scenarios, navigation and framework sniffing.

Flows are pattern-driven: each canned flow is emitted only when every page
type or form pattern it needs was discovered, and is otherwise omitted.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from Models import Flow, FormRecord, FrameworkInfo, Navigation, PageRecord, Step, TestScenario

from .Rules import Rule, RuleList, contains_any

logger = logging.getLogger(__name__)

#: A navigation scenario is only emitted for sites with more pages than this.
NAVIGATION_SCENARIO_MIN_PAGES: int = 3

_SUBMIT_SELECTOR = 'button[type="submit"]'


def _first_of_type(pages: Sequence[PageRecord], page_type: str) -> Optional[PageRecord]:
    return next((p for p in pages if p.page_type == page_type), None)


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


def synthesize_flows(pages: Sequence[PageRecord], forms: Sequence[FormRecord]) -> list[Flow]:
    """Return every canned flow whose required pages/forms are all present."""
    flows: list[Flow] = []

    login = _first_of_type(pages, "login")
    signup = _first_of_type(pages, "signup")
    dashboard = _first_of_type(pages, "dashboard")

    if login and dashboard:
        flows.append(Flow(
            name="Login Flow",
            steps=[
                Step(action="Navigate to login", url=login.url),
                Step(action="Fill credentials", selector="form"),
                Step(action="Submit form", selector=_SUBMIT_SELECTOR),
                Step(action="Verify redirect", url=dashboard.url),
            ],
        ))

    if signup and dashboard:
        flows.append(Flow(
            name="Signup Flow",
            steps=[
                Step(action="Navigate to signup", url=signup.url),
                Step(action="Fill registration form", selector="form"),
                Step(action="Submit form", selector=_SUBMIT_SELECTOR),
                Step(action="Verify account created", url=dashboard.url),
            ],
        ))

    if any(f.pattern == "search" for f in forms):
        flows.append(Flow(
            name="Search Flow",
            steps=[
                Step(
                    action="Enter search query",
                    selector='input[type="search"], input[name*="search"]',
                ),
                Step(action="Submit search", selector=_SUBMIT_SELECTOR),
                Step(
                    action="Verify results displayed",
                    selector='[class*="result"], [class*="search"]',
                ),
            ],
        ))

    list_page = _first_of_type(pages, "list")
    detail_page = _first_of_type(pages, "detail")
    if list_page and detail_page:
        flows.append(Flow(
            name="Browse to Detail Flow",
            steps=[
                Step(action="Navigate to list page", url=list_page.url),
                Step(action="Click on item", selector=f'a[href*="{list_page.path}"]'),
                Step(action="Verify detail page loaded", selector="h1"),
            ],
        ))

    return flows


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def synthesize_scenarios(
    pages: Sequence[PageRecord], forms: Sequence[FormRecord]
) -> list[TestScenario]:
    """Return human-readable test outlines for the discovered application."""
    scenarios: list[TestScenario] = []

    homepage = next(
        (p for p in pages if p.page_type == "homepage" or p.path == "/"), None
    )
    if homepage:
        scenarios.append(TestScenario(
            name="Homepage Load Test",
            description="Verify homepage loads correctly",
            steps=[
                f"Navigate to {homepage.url}",
                "Verify page title is present",
                "Check for main navigation",
                "Capture screenshot",
            ],
        ))

    for form in forms:
        if form.pattern == "generic":
            continue
        scenarios.append(TestScenario(
            name=f"{form.pattern.capitalize()} Form Test",
            description=f"Test {form.pattern} form submission",
            steps=[
                f"Navigate to {form.action_url}",
                "Fill all required fields",
                "Submit form",
                "Verify success or redirect",
            ],
        ))

    if len(pages) > NAVIGATION_SCENARIO_MIN_PAGES:
        scenarios.append(TestScenario(
            name="Navigation Test",
            description="Verify main navigation works",
            steps=[
                "Start at homepage",
                "Click through main navigation links",
                "Verify each page loads",
                "Check for broken links",
            ],
        ))

    scenarios.append(TestScenario(
        name="Responsive Design Test",
        description="Test responsive behavior",
        steps=[
            "Load page in desktop viewport",
            "Take screenshot",
            "Switch to mobile viewport",
            "Take screenshot",
            "Verify layout adapts",
        ],
    ))

    return scenarios


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def analyze_navigation(pages: Sequence[PageRecord]) -> Navigation:
    """Return top-level pages and the path hierarchy below each of them."""
    navigation = Navigation()

    for page in pages:
        parts = [p for p in page.path.split("/") if p]
        if len(parts) <= 1:
            navigation.main_pages.append(
                {"name": page.page_name, "path": page.path, "type": page.page_type}
            )
        if parts:
            children = navigation.hierarchy.setdefault("/" + parts[0], [])
            if len(parts) > 1 and page.path not in children:
                children.append(page.path)

    return navigation


# ---------------------------------------------------------------------------
# Framework detection
# ---------------------------------------------------------------------------


FRAMEWORK_RULES: RuleList[str, Optional[str]] = RuleList(
    [
        Rule(lambda t: contains_any(t, "next.js", "__next"), "Next.js"),
        Rule(lambda t: contains_any(t, "nuxt"), "Nuxt"),
        Rule(lambda t: contains_any(t, "react", "__react"), "React"),
        Rule(lambda t: contains_any(t, "vue.js", "vuejs", " vue "), "Vue.js"),
        Rule(lambda t: "angular" in t, "Angular"),
        Rule(lambda t: "svelte" in t, "Svelte"),
        Rule(lambda t: "ember" in t, "Ember"),
    ],
    default=None,
)


def detect_framework(pages: Sequence[PageRecord]) -> FrameworkInfo:
    """Sniff aggregated page text for a framework name.

    This is best-effort: when nothing matches the result is ``unknown``.
    """
    text = " ".join(
        f"{p.title} {p.description} {p.content_preview}" for p in pages
    ).lower()
    framework = FRAMEWORK_RULES.evaluate(f" {text} ")
    if framework is None:
        return FrameworkInfo()
    logger.debug("Framework hint found in page text: %s", framework)
    return FrameworkInfo(
        framework=framework,
        indicators=[f"{framework} detected in page content"],
    )
