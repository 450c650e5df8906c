"""
Spider/Extractor.py — Per-page extraction of metadata, forms, elements and links.

All DOM reads for a page are batched into a single ``page.evaluate()``
call; the raw result is then normalised into records by pure helpers that
can be exercised without a browser.
"""
from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

from playwright.async_api import Page

from Analyzer.Classifier import PageSignals, classify_form_record, classify_page, page_name_for
from Models import ButtonRecord, ElementRecord, FieldRecord, FormRecord, PageRecord, PageVisit

logger = logging.getLogger(__name__)

#: Characters of visible body text kept as a classification signal.
PREVIEW_CHARS: int = 500

#: Interactive elements sampled per page.
ELEMENT_CAP: int = 20

#: Characters of text kept for a sampled clickable element.
ELEMENT_TEXT_CHARS: int = 50

#: Input types recorded as buttons (or ignored) rather than as fields.
_NON_FIELD_TYPES: frozenset[str] = frozenset({"submit", "button", "reset", "image", "hidden"})

_EXCLUDED_LINK_SCHEMES: tuple[str, ...] = ("javascript:", "mailto:", "tel:")

_EXTRACT_JS = r"""
(previewChars) => {
    const text = el => ((el && el.textContent) || '').trim();
    const meta = document.querySelector('meta[name="description"]');

    const pageData = {
        title: document.title || '',
        heading: text(document.querySelector('h1')),
        description: (meta && meta.getAttribute('content')) || '',
        bodyText: ((document.body && document.body.innerText) || '').substring(0, previewChars),
    };

    const forms = Array.from(document.querySelectorAll('form')).map(form => ({
        action: form.getAttribute('action') || '',
        method: (form.getAttribute('method') || 'get').toLowerCase(),
        fields: Array.from(form.querySelectorAll('input, textarea, select')).map(el => ({
            tag: el.tagName.toLowerCase(),
            type: (el.getAttribute('type') || '').toLowerCase(),
            name: el.getAttribute('name') || '',
            id: el.id || '',
            placeholder: el.getAttribute('placeholder') || '',
            required: !!el.required,
            label: (el.labels && el.labels.length ? text(el.labels[0]) : '')
                || el.getAttribute('aria-label') || '',
        })),
        buttons: Array.from(
            form.querySelectorAll('button, input[type="submit"], input[type="button"]')
        ).map(btn => ({
            text: text(btn) || btn.value || '',
            type: (btn.getAttribute('type') || 'submit').toLowerCase(),
        })),
    }));

    const describe = (el, type, limit) => ({
        type,
        text: limit ? text(el).substring(0, limit) : text(el),
        id: el.id || '',
        classes: el.getAttribute('class') || '',
    });
    const elements = [
        ...Array.from(document.querySelectorAll('button:not(form button)'))
            .map(el => describe(el, 'button', 0)),
        ...Array.from(document.querySelectorAll('[onclick], [role="button"]'))
            .map(el => describe(el, 'clickable', 50)),
    ];

    const links = Array.from(document.querySelectorAll('a[href]')).map(a => a.href);

    return { page: pageData, forms, elements, links };
}
"""


class PageExtractor:
    """Extracts a :class:`~Models.PageVisit` from a loaded Playwright page."""

    def __init__(
        self,
        settle_delay: float = 1.0,
        preview_chars: int = PREVIEW_CHARS,
        element_cap: int = ELEMENT_CAP,
    ) -> None:
        self.settle_delay = settle_delay
        self.preview_chars = preview_chars
        self.element_cap = element_cap

    async def extract(self, page: Page, url: str, depth: int) -> PageVisit:
        """Wait for the settle delay, then read and normalise the page at *url*.

        Raises whatever the browser raises; the spider treats that as a
        failed visit.
        """
        if self.settle_delay:
            await page.wait_for_timeout(self.settle_delay * 1000)

        raw = await page.evaluate(_EXTRACT_JS, self.preview_chars)

        record = build_page_record(raw.get("page") or {}, url, depth, self.preview_chars)
        return PageVisit(
            page=record,
            forms=build_forms(raw.get("forms") or [], url),
            elements=build_elements(raw.get("elements") or [], self.element_cap),
            links=filter_links(raw.get("links") or []),
        )


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def build_page_record(
    raw: dict[str, Any], url: str, depth: int = 0, preview_chars: int = PREVIEW_CHARS
) -> PageRecord:
    """Build a classified :class:`PageRecord` from raw page metadata."""
    path = urlparse(url).path or "/"
    title = (raw.get("title") or "").strip()
    heading = (raw.get("heading") or "").strip()
    preview = (raw.get("bodyText") or "")[:preview_chars]

    return PageRecord(
        url=url,
        path=path,
        page_name=page_name_for(path, title),
        page_type=classify_page(
            PageSignals(title=title, heading=heading, path=path, preview=preview)
        ),
        title=title,
        heading=heading,
        description=(raw.get("description") or "").strip(),
        content_preview=preview,
        depth=depth,
    )


def _field_type(raw: dict[str, Any]) -> str:
    tag = raw.get("tag") or "input"
    if tag != "input":
        return tag
    return raw.get("type") or "text"


def build_forms(raw_forms: list[dict[str, Any]], page_url: str) -> list[FormRecord]:
    """Build classified :class:`FormRecord` objects for every form on the page."""
    forms: list[FormRecord] = []
    for index, raw in enumerate(raw_forms):
        fields = [
            FieldRecord(
                type=_field_type(f),
                name=f.get("name") or "",
                id=f.get("id") or "",
                placeholder=f.get("placeholder") or "",
                required=bool(f.get("required")),
                label=(f.get("label") or "").strip(),
            )
            for f in raw.get("fields") or []
            if _field_type(f) not in _NON_FIELD_TYPES
        ]
        buttons = [
            ButtonRecord(text=(b.get("text") or "").strip(), type=b.get("type") or "submit")
            for b in raw.get("buttons") or []
        ]
        form = FormRecord(
            form_index=index,
            action_url=urljoin(page_url, raw.get("action") or ""),
            method=(raw.get("method") or "get").lower(),
            fields=fields,
            buttons=buttons,
        )
        forms.append(classify_form_record(form))
    return forms


def build_elements(raw_elements: list[dict[str, Any]], cap: int = ELEMENT_CAP) -> list[ElementRecord]:
    """Return at most *cap* sampled interactive elements."""
    elements: list[ElementRecord] = []
    for raw in raw_elements[:cap]:
        text = (raw.get("text") or "").strip()
        if raw.get("type") == "clickable":
            text = text[:ELEMENT_TEXT_CHARS]
        elements.append(ElementRecord(
            type=raw.get("type") or "button",
            text=text,
            id=raw.get("id") or "",
            classes=raw.get("classes") or "",
        ))
    return elements


def filter_links(raw_links: list[Optional[str]]) -> list[str]:
    """Drop ``javascript:``/``mailto:``/``tel:`` targets and de-duplicate in order."""
    links: list[str] = []
    seen: set[str] = set()
    for href in raw_links:
        if not href:
            continue
        href = href.strip()
        if href.lower().startswith(_EXCLUDED_LINK_SCHEMES):
            continue
        if href in seen:
            continue
        seen.add(href)
        links.append(href)
    return links
