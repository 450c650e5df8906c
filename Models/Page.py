"""
Models/Page.py — Records produced by the page extractor for one loaded page.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse


@dataclass
class FieldRecord:
    """A single form control (``input``, ``textarea`` or ``select``)."""

    type: str
    """Normalised control type: ``text``, ``email``, ``password``, ``textarea``…"""

    name: str = ""
    id: str = ""
    placeholder: str = ""
    required: bool = False
    label: str = ""
    """Text of the first associated ``<label>``, if any."""

    @property
    def identifier(self) -> str:
        """Return the addressable key of the field (``name`` first, then ``id``)."""
        return self.name or self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "id": self.id,
            "placeholder": self.placeholder,
            "required": self.required,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldRecord":
        return cls(
            type=str(data.get("type") or "text"),
            name=str(data.get("name") or ""),
            id=str(data.get("id") or ""),
            placeholder=str(data.get("placeholder") or ""),
            required=bool(data.get("required", False)),
            label=str(data.get("label") or ""),
        )


@dataclass
class ButtonRecord:
    """A button or submit control found inside a form."""

    text: str
    type: str = "submit"

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ButtonRecord":
        return cls(text=str(data.get("text") or ""), type=str(data.get("type") or "submit"))


@dataclass
class FormRecord:
    """A form discovered on a page, with its classification attached."""

    form_index: int
    """Zero-based position of the form within its page."""

    action_url: str
    """Resolved absolute action URL (the page URL when the form has none)."""

    method: str = "get"
    fields: list[FieldRecord] = field(default_factory=list)
    buttons: list[ButtonRecord] = field(default_factory=list)

    pattern: str = "generic"
    """Semantic tag assigned by the classifier."""

    generated_test_data: dict[str, Any] = field(default_factory=dict)
    """Field identifier → synthesised example value."""

    @property
    def field_count(self) -> int:
        return len(self.fields)

    @property
    def action_path(self) -> str:
        """Path component of :attr:`action_url`; forms are matched to pages by it."""
        return urlparse(self.action_url).path or "/"


@dataclass
class ElementRecord:
    """A sampled interactive element outside of forms."""

    type: str
    """``button`` or ``clickable``."""

    text: str = ""
    id: str = ""
    classes: str = ""


@dataclass(frozen=True)
class PageRecord:
    """Normalised metadata for one successfully loaded page."""

    url: str
    path: str
    page_name: str
    page_type: str
    title: str = ""
    heading: str = ""
    description: str = ""
    content_preview: str = ""
    depth: int = 0


@dataclass
class PageVisit:
    """Everything extracted from a single page visit."""

    page: PageRecord
    forms: list[FormRecord] = field(default_factory=list)
    elements: list[ElementRecord] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    """Absolute outbound link targets, de-duplicated, in document order."""

    screenshot: Optional[str] = None
    """Path of the captured screenshot, when the capture hook succeeded."""
