"""
Analyzer/Classifier.py — Page types, form patterns, page categories and test data.

Every classification here is a pure function of the record it is given:
the same page or form always yields the same label.  Priority between
overlapping signals is encoded in the order of the rule lists below.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from Models import FieldRecord, FormRecord, PageRecord

from .Rules import Rule, RuleList, contains_any

_TRAILING_DIGITS_RE = re.compile(r"\d+$")
_DYNAMIC_SEGMENT_RE = re.compile(r"^(\d+|[0-9a-f]{8}-.*)$", re.IGNORECASE)

#: Placeholder written for password fields instead of anything credential-like.
PASSWORD_PLACEHOLDER: str = "[TEST_PASSWORD]"


# ---------------------------------------------------------------------------
# Page type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PageSignals:
    """Textual signals a page is classified from."""

    title: str = ""
    heading: str = ""
    path: str = "/"
    preview: str = ""

    @property
    def text(self) -> str:
        return f"{self.title} {self.heading} {self.path}".lower()

    @property
    def preview_text(self) -> str:
        return self.preview.lower()


PAGE_TYPE_RULES: RuleList[PageSignals, str] = RuleList(
    [
        Rule(lambda s: contains_any(s.text, "login", "sign in"), "login"),
        Rule(lambda s: contains_any(s.text, "signup", "sign up", "register"), "signup"),
        Rule(lambda s: "dashboard" in s.text, "dashboard"),
        Rule(lambda s: contains_any(s.text, "profile", "account"), "profile"),
        Rule(lambda s: "contact" in s.text, "contact"),
        Rule(lambda s: "about" in s.text, "about"),
        Rule(lambda s: s.path in ("/", ""), "homepage"),
        Rule(
            lambda s: bool(_TRAILING_DIGITS_RE.search(s.path)) or "detail" in s.path.lower(),
            "detail",
        ),
        Rule(
            lambda s: "list" in s.path.lower()
            or contains_any(s.preview_text, "showing", "results"),
            "list",
        ),
    ],
    default="page",
)


def classify_page(signals: PageSignals) -> str:
    """Return the semantic page type for *signals*."""
    return PAGE_TYPE_RULES.evaluate(signals)


def classify_page_record(page: PageRecord) -> str:
    """Re-derive the page type of an existing record."""
    return classify_page(
        PageSignals(
            title=page.title,
            heading=page.heading,
            path=page.path,
            preview=page.content_preview,
        )
    )


def page_name_for(path: str, title: str) -> str:
    """Return a readable page name from the URL *path* and document *title*."""
    if path in ("/", ""):
        return "Homepage"
    if title and len(title) < 50:
        return title

    parts = [p for p in path.split("/") if p]
    if not parts:
        return "Homepage"

    last = parts[-1]
    if _DYNAMIC_SEGMENT_RE.match(last):
        if len(parts) > 1:
            return _capitalize(parts[-2]) + " Detail"
        return "Detail Page"
    return _capitalize(re.sub(r"[-_]", " ", last))


# ---------------------------------------------------------------------------
# Form pattern
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FormSignals:
    text: str
    field_count: int

    @classmethod
    def from_fields(cls, fields: Iterable[FieldRecord]) -> "FormSignals":
        fields = list(fields)
        text = " ".join(f"{f.identifier} {f.label}".lower() for f in fields)
        return cls(text=text, field_count=len(fields))


FORM_PATTERN_RULES: RuleList[FormSignals, str] = RuleList(
    [
        Rule(
            lambda s: "email" in s.text and "password" in s.text and s.field_count <= 3,
            "login",
        ),
        Rule(
            lambda s: contains_any(s.text, "email", "username")
            and "password" in s.text
            and ("confirm" in s.text or s.field_count > 3),
            "signup",
        ),
        Rule(lambda s: contains_any(s.text, "search", "query"), "search"),
        Rule(lambda s: contains_any(s.text, "contact", "message"), "contact"),
        Rule(lambda s: contains_any(s.text, "checkout", "payment", "card"), "checkout"),
    ],
    default="generic",
)


def classify_form(form: FormRecord) -> str:
    """Return the semantic pattern of *form*."""
    return classify_fields(form.fields)


def classify_fields(fields: Iterable[FieldRecord]) -> str:
    return FORM_PATTERN_RULES.evaluate(FormSignals.from_fields(fields))


# ---------------------------------------------------------------------------
# Test data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _FieldSignals:
    name: str
    label: str
    type: str

    def mentions(self, *needles: str) -> bool:
        return contains_any(self.name, *needles) or contains_any(self.label, *needles)


TEST_DATA_RULES: RuleList[_FieldSignals, Any] = RuleList(
    [
        Rule(lambda f: f.mentions("email") or f.type == "email", "test@example.com"),
        Rule(lambda f: "password" in f.name or f.type == "password", PASSWORD_PLACEHOLDER),
        Rule(lambda f: f.mentions("phone") or f.type == "tel", "555-0123"),
        Rule(lambda f: f.mentions("name") and f.mentions("first"), "John"),
        Rule(lambda f: f.mentions("name") and f.mentions("last"), "Doe"),
        Rule(lambda f: f.mentions("name"), "John Doe"),
        Rule(lambda f: f.mentions("address"), "123 Main St"),
        Rule(lambda f: f.mentions("city"), "San Francisco"),
        Rule(lambda f: contains_any(f.name, "zip", "postal") or "zip" in f.label, "94102"),
        Rule(lambda f: f.mentions("message") or f.type == "textarea", "This is a test message."),
        Rule(lambda f: f.type == "number", "123"),
        Rule(lambda f: f.type == "checkbox", True),
    ],
    default=None,
)


def example_value_for(field: FieldRecord) -> Optional[Any]:
    """Return a plausible example value for *field*, or *None* if it is unaddressable."""
    key = field.identifier
    if not key:
        return None
    signals = _FieldSignals(
        name=key.lower(),
        label=(field.label or "").lower(),
        type=(field.type or "").lower(),
    )
    value = TEST_DATA_RULES.evaluate(signals)
    if value is None:
        return f"test_{key}"
    return value


def generate_test_data(fields: Iterable[FieldRecord]) -> dict[str, Any]:
    """Return ``{identifier: example value}`` for every addressable field."""
    data: dict[str, Any] = {}
    for f in fields:
        value = example_value_for(f)
        if value is not None:
            data[f.identifier] = value
    return data


def classify_form_record(form: FormRecord) -> FormRecord:
    """Attach pattern and generated test data to *form* and return it."""
    form.pattern = classify_form(form)
    form.generated_test_data = generate_test_data(form.fields)
    return form


# ---------------------------------------------------------------------------
# Page category (knowledge grouping)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _CategorySignals:
    page_type: str
    owns_form: bool


CATEGORY_RULES: RuleList[_CategorySignals, str] = RuleList(
    [
        Rule(lambda s: s.page_type in ("login", "signup"), "authentication"),
        Rule(lambda s: s.page_type == "list", "lists"),
        Rule(lambda s: s.page_type == "detail", "details"),
        Rule(lambda s: s.page_type in ("homepage", "about", "contact"), "content"),
        Rule(lambda s: s.owns_form, "forms"),
    ],
    default="other",
)


def categorize_page(page: PageRecord, form_paths: set[str]) -> str:
    """Return the knowledge category of *page*.

    *form_paths* holds the action paths of every discovered form; a page
    owns a form when its path equals one of them.
    """
    return CATEGORY_RULES.evaluate(
        _CategorySignals(page_type=page.page_type, owns_form=page.path in form_paths)
    )


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]
