"""
Models/Knowledge.py — The persisted application knowledge and its schema.

:class:`AppKnowledge` is written to ``app-knowledge.json`` with camelCase
keys.  Reading goes through :func:`migrate_knowledge` so older document
shapes are upgraded explicitly instead of being trusted to line up with
the current dataclasses.

Version strings follow ``MAJOR.MINOR.PATCH`` (a bare ``MAJOR.MINOR`` is
accepted on read and normalised with a zero patch).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

from .Errors import KnowledgeFormatError
from .Page import ButtonRecord, FieldRecord

#: Version assigned to knowledge created from scratch.
INITIAL_VERSION: str = "1.0.0"

#: Current shape of the persisted document.
SCHEMA_VERSION: int = 1

#: Page categories, in the order they are written.
PAGE_CATEGORIES: tuple[str, ...] = (
    "authentication",
    "content",
    "forms",
    "lists",
    "details",
    "other",
)

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?$")


# ---------------------------------------------------------------------------
# Version grammar
# ---------------------------------------------------------------------------


def parse_version(version: str) -> tuple[int, int, int]:
    """Return ``(major, minor, patch)`` for *version*.

    Raises :class:`KnowledgeFormatError` for anything outside the grammar.
    """
    match = _VERSION_RE.match(str(version).strip())
    if not match:
        raise KnowledgeFormatError(f"Invalid knowledge version: {version!r}")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def format_version(parts: tuple[int, int, int]) -> str:
    return ".".join(str(p) for p in parts)


def bump_minor(version: str) -> str:
    """Increment the minor component of *version* and reset the patch."""
    major, minor, _ = parse_version(version)
    return format_version((major, minor + 1, 0))


# ---------------------------------------------------------------------------
# Flows and scenarios
# ---------------------------------------------------------------------------


@dataclass
class Step:
    """One action of a flow, targeting either a URL or a selector."""

    action: str
    url: Optional[str] = None
    selector: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action": self.action}
        if self.url is not None:
            data["url"] = self.url
        if self.selector is not None:
            data["selector"] = self.selector
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(action=data["action"], url=data.get("url"), selector=data.get("selector"))


@dataclass
class Flow:
    name: str
    steps: list[Step] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "steps": [s.to_dict() for s in self.steps]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Flow":
        return cls(name=data["name"], steps=[Step.from_dict(s) for s in data.get("steps", [])])


@dataclass
class TestScenario:
    """A human-readable test outline."""

    __test__ = False  # not a pytest test class

    name: str
    description: str
    steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "steps": list(self.steps)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestScenario":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            steps=list(data.get("steps", [])),
        )


# ---------------------------------------------------------------------------
# Pages and forms as stored in the knowledge document
# ---------------------------------------------------------------------------


@dataclass
class PageEntry:
    """A page as recorded in the knowledge, optionally with operator data."""

    name: str
    url: str
    path: str
    type: str
    title: str = ""
    heading: str = ""
    description: str = ""
    custom_data: Optional[dict[str, Any]] = None
    """Operator-supplied data, carried across updates."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "url": self.url,
            "path": self.path,
            "type": self.type,
            "title": self.title,
            "heading": self.heading,
            "description": self.description,
        }
        if self.custom_data is not None:
            data["customData"] = self.custom_data
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageEntry":
        return cls(
            name=data.get("name", ""),
            url=data["url"],
            path=data.get("path") or urlparse(data["url"]).path or "/",
            type=data.get("type", "page"),
            title=data.get("title", ""),
            heading=data.get("heading", ""),
            description=data.get("description", ""),
            custom_data=data.get("customData"),
        )


@dataclass
class FormEntry:
    """A classified form as recorded in the knowledge."""

    action: str
    method: str = "get"
    fields: list[FieldRecord] = field(default_factory=list)
    buttons: list[ButtonRecord] = field(default_factory=list)
    pattern: str = "generic"
    test_data: dict[str, Any] = field(default_factory=dict)
    custom_test_data: Optional[dict[str, Any]] = None
    """Operator-supplied test data, carried across updates."""

    @property
    def path(self) -> str:
        return urlparse(self.action).path or "/"

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "action": self.action,
            "method": self.method,
            "fields": [f.to_dict() for f in self.fields],
            "fieldCount": self.field_count,
            "buttons": [b.to_dict() for b in self.buttons],
            "pattern": self.pattern,
            "generatedTestData": self.test_data,
        }
        if self.custom_test_data is not None:
            data["customTestData"] = self.custom_test_data
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FormEntry":
        return cls(
            action=data["action"],
            method=data.get("method", "get"),
            fields=[FieldRecord.from_dict(f) for f in data.get("fields", [])],
            buttons=[ButtonRecord.from_dict(b) for b in data.get("buttons", [])],
            pattern=data.get("pattern", "generic"),
            test_data=dict(data.get("generatedTestData", {})),
            custom_test_data=data.get("customTestData"),
        )


@dataclass
class Navigation:
    main_pages: list[dict[str, str]] = field(default_factory=list)
    hierarchy: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"mainPages": self.main_pages, "hierarchy": self.hierarchy}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Navigation":
        return cls(
            main_pages=list(data.get("mainPages", [])),
            hierarchy={k: list(v) for k, v in data.get("hierarchy", {}).items()},
        )


@dataclass
class FrameworkInfo:
    framework: str = "unknown"
    indicators: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"framework": self.framework, "indicators": list(self.indicators)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FrameworkInfo":
        return cls(
            framework=data.get("framework", "unknown"),
            indicators=list(data.get("indicators", [])),
        )


@dataclass
class UpdateEntry:
    """One line of the append-only update history."""

    date: str
    previous_version: str
    new_version: str
    pages_added: int
    forms_added: int
    flows_added: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "previousVersion": self.previous_version,
            "newVersion": self.new_version,
            "pagesAdded": self.pages_added,
            "formsAdded": self.forms_added,
            "flowsAdded": self.flows_added,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UpdateEntry":
        return cls(
            date=data["date"],
            previous_version=data["previousVersion"],
            new_version=data["newVersion"],
            pages_added=int(data.get("pagesAdded", 0)),
            forms_added=int(data.get("formsAdded", 0)),
            flows_added=int(data.get("flowsAdded", 0)),
        )


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


def _empty_categories() -> dict[str, list[PageEntry]]:
    return {category: [] for category in PAGE_CATEGORIES}


@dataclass
class AppKnowledge:
    """The full knowledge snapshot of one application."""

    app_name: str
    base_url: str
    version: str = INITIAL_VERSION
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    pages: dict[str, list[PageEntry]] = field(default_factory=_empty_categories)
    forms: list[FormEntry] = field(default_factory=list)
    navigation: Navigation = field(default_factory=Navigation)
    user_flows: list[Flow] = field(default_factory=list)
    test_scenarios: list[TestScenario] = field(default_factory=list)
    framework: FrameworkInfo = field(default_factory=FrameworkInfo)
    statistics: dict[str, Any] = field(default_factory=dict)
    update_history: list[UpdateEntry] = field(default_factory=list)
    removed_forms: list[str] = field(default_factory=list)
    """Form action paths present before the last update but not after it."""

    removed_pages: list[str] = field(default_factory=list)
    """Page paths present before the last update but not after it."""

    def all_pages(self) -> list[PageEntry]:
        """Return every page across all categories, in category order."""
        return [page for entries in self.pages.values() for page in entries]

    def page_paths(self) -> set[str]:
        return {page.path for page in self.all_pages()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "appName": self.app_name,
            "baseUrl": self.base_url,
            "version": self.version,
            "generatedAt": self.generated_at,
            "pages": {
                category: [p.to_dict() for p in entries]
                for category, entries in self.pages.items()
            },
            "forms": [f.to_dict() for f in self.forms],
            "navigation": self.navigation.to_dict(),
            "userFlows": [f.to_dict() for f in self.user_flows],
            "testScenarios": [s.to_dict() for s in self.test_scenarios],
            "framework": self.framework.to_dict(),
            "statistics": self.statistics,
            "updateHistory": [u.to_dict() for u in self.update_history],
            "removedForms": list(self.removed_forms),
            "removedPages": list(self.removed_pages),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppKnowledge":
        """Build an :class:`AppKnowledge` from a persisted document of any known schema."""
        data = migrate_knowledge(data)
        try:
            pages = _empty_categories()
            for category, entries in data["pages"].items():
                pages[category] = [PageEntry.from_dict(p) for p in entries]
            return cls(
                app_name=data["appName"],
                base_url=data["baseUrl"],
                version=format_version(parse_version(data["version"])),
                generated_at=data.get("generatedAt", ""),
                pages=pages,
                forms=[FormEntry.from_dict(f) for f in data["forms"]],
                navigation=Navigation.from_dict(data["navigation"]),
                user_flows=[Flow.from_dict(f) for f in data["userFlows"]],
                test_scenarios=[TestScenario.from_dict(s) for s in data["testScenarios"]],
                framework=FrameworkInfo.from_dict(data["framework"]),
                statistics=dict(data.get("statistics") or {}),
                update_history=[UpdateEntry.from_dict(u) for u in data["updateHistory"]],
                removed_forms=list(data["removedForms"]),
                removed_pages=list(data["removedPages"]),
            )
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise KnowledgeFormatError(f"Malformed knowledge document: {exc!r}") from exc


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------


def _migrate_0_to_1(data: dict[str, Any]) -> dict[str, Any]:
    """Upgrade the unversioned document shape.

    Schema 0 kept generated form data under ``testData``, had no
    ``removedPages`` and did not always carry history, navigation or
    framework sections.
    """
    out = dict(data)
    forms = []
    for form in out.get("forms") or []:
        form = dict(form)
        if "generatedTestData" not in form:
            form["generatedTestData"] = form.pop("testData", {}) or {}
        forms.append(form)
    out["forms"] = forms
    out.setdefault("version", INITIAL_VERSION)
    out.setdefault("pages", {})
    out.setdefault("userFlows", [])
    out.setdefault("testScenarios", [])
    out["navigation"] = out.get("navigation") or {}
    out["framework"] = out.get("framework") or {}
    out["updateHistory"] = out.get("updateHistory") or []
    out["removedForms"] = out.get("removedForms") or []
    out["removedPages"] = out.get("removedPages") or []
    out["schemaVersion"] = 1
    return out


_MIGRATIONS = {
    0: _migrate_0_to_1,
}


def migrate_knowledge(data: Any) -> dict[str, Any]:
    """Upgrade a raw persisted document to :data:`SCHEMA_VERSION`."""
    if not isinstance(data, dict):
        raise KnowledgeFormatError("Knowledge document must be a JSON object")
    try:
        schema = int(data.get("schemaVersion", 0))
    except (TypeError, ValueError) as exc:
        raise KnowledgeFormatError(f"Invalid schemaVersion: {data.get('schemaVersion')!r}") from exc
    if schema < 0 or (schema < SCHEMA_VERSION and schema not in _MIGRATIONS):
        raise KnowledgeFormatError(f"Unknown knowledge schema: {schema}")
    if schema > SCHEMA_VERSION:
        raise KnowledgeFormatError(
            f"Knowledge schema {schema} is newer than supported ({SCHEMA_VERSION})"
        )
    while schema < SCHEMA_VERSION:
        data = _MIGRATIONS[schema](data)
        schema += 1
    return data
