"""
Context/Reader.py — Seed configuration from application documentation.

Reads a text file or a folder of text files and pulls out the facts useful
for exploration: URLs, page paths, credential references, feature
descriptions and notes.  The result only seeds the crawl; it never changes
how pages are classified or how knowledge is merged.
"""
from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from Models import ConfigurationError, ExplorerConfig

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {".txt", ".md", ".markdown", ".json", ".rst", ".org", ".adoc", ".asciidoc"}
)
SKIP_DIRECTORIES: frozenset[str] = frozenset({"node_modules", "dist", "build"})

_URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")
_LOCALHOST_RE = re.compile(r"(?<![/\w])localhost:\d+")
_TRAILING_PUNCTUATION = ".,;:!?)'"
_CREDENTIAL_RES = (
    re.compile(r"(?:username|user|email):\s*(\S+)", re.IGNORECASE),
    re.compile(r"(?:password|pass):\s*(\S+)", re.IGNORECASE),
    re.compile(r"test\s+user:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"admin\s+user:\s*([^\n]+)", re.IGNORECASE),
)
_PAGE_RE = re.compile(r"['\"`](/[a-z0-9/_-]+)['\"`]", re.IGNORECASE)
_PAGE_NOISE = (".js", ".css", ".png", "/api/")
_FEATURE_RES = (
    re.compile(r"^#+\s+(.+)$", re.MULTILINE),
    re.compile(r"^[-*]\s+(.+)$", re.MULTILINE),
    re.compile(r"Feature:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"\d+\.\s+([^\n]+)"),
)
_NOTE_RES = (
    re.compile(r"(?:note|important|warning):\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"(?:description|about):\s*([^\n]+)", re.IGNORECASE),
)


@dataclass
class SeedConfig:
    """Everything extracted from the documentation."""

    target_url: Optional[str] = None
    hint_pages: list[str] = field(default_factory=list)
    credential_hints: list[str] = field(default_factory=list)
    feature_hints: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    file_count: int = 0


class ContextReader:
    """Reads documentation from a single file or a directory tree."""

    def read(self, context_path: str | Path) -> SeedConfig:
        """Read *context_path* and return the extracted :class:`SeedConfig`.

        Raises :class:`ConfigurationError` when the path does not exist.
        """
        root = Path(context_path).expanduser().resolve()
        if not root.exists():
            raise ConfigurationError(f"Context path not found: {root}")

        if root.is_dir():
            files = list(self.iter_text_files(root))
            if not files:
                logger.warning("No text files found in %s", root)
                return SeedConfig()
            chunks = []
            for path in files:
                logger.debug("Reading context file %s", path)
                chunks.append(f"# File: {path.relative_to(root)}\n\n{_read_text(path)}")
            seed = parse_context("\n\n".join(chunks))
            seed.file_count = len(files)
        else:
            seed = parse_context(_read_text(root))
            seed.file_count = 1
        return seed

    def iter_text_files(self, root: Path) -> Iterator[Path]:
        """Yield text files under *root*, skipping hidden and build directories."""
        for entry in sorted(root.iterdir()):
            if entry.name.startswith(".") or entry.name in SKIP_DIRECTORIES:
                continue
            if entry.is_dir():
                yield from self.iter_text_files(entry)
            elif entry.suffix.lower() in TEXT_EXTENSIONS:
                yield entry


def parse_context(text: str) -> SeedConfig:
    """Extract URLs, pages, credentials, features and notes from *text*."""
    urls = _unique(url.rstrip(_TRAILING_PUNCTUATION) for url in _URL_RE.findall(text))
    for match in _LOCALHOST_RE.findall(text):
        candidate = f"http://{match}"
        if not any(url.startswith(candidate) for url in urls):
            urls.append(candidate)

    credentials = []
    for pattern in _CREDENTIAL_RES:
        for value in pattern.findall(text):
            value = value.strip()
            if value and "your-" not in value and "example" not in value:
                credentials.append(value)

    pages = _unique(
        page
        for page in _PAGE_RE.findall(text)
        if 1 < len(page) < 100 and not any(noise in page for noise in _PAGE_NOISE)
    )

    features = []
    for pattern in _FEATURE_RES:
        for value in pattern.findall(text):
            value = value.strip()
            if 10 < len(value) < 200:
                features.append(value)

    notes = [value.strip() for pattern in _NOTE_RES for value in pattern.findall(text)]

    return SeedConfig(
        target_url=urls[0] if urls else None,
        hint_pages=pages,
        credential_hints=credentials,
        feature_hints=features,
        urls=urls,
        notes=notes,
    )


def merge_with_config(config: ExplorerConfig, seed: SeedConfig) -> ExplorerConfig:
    """Return a copy of *config* seeded from *seed*.

    Explicit options win: the detected URL only fills an empty
    ``target_url``.
    """
    changes: dict = {}
    if not config.target_url and seed.target_url:
        changes["target_url"] = seed.target_url
        logger.info("Detected URL from context: %s", seed.target_url)
    if seed.hint_pages:
        changes["hint_pages"] = list(seed.hint_pages)
    if seed.credential_hints:
        changes["credential_hints"] = list(seed.credential_hints)
    if seed.feature_hints:
        changes["feature_hints"] = list(seed.feature_hints)
    return dataclasses.replace(config, **changes)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.warning("Skipping non UTF-8 context file %s", path)
        return ""
    except OSError as exc:
        raise ConfigurationError(f"Cannot read context file {path}: {exc}") from exc


def _unique(items) -> list[str]:
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return list(seen)
