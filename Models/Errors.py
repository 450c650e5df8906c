"""
Models/Errors.py — Exception hierarchy shared by every package.
"""
from __future__ import annotations


class ExplorerError(Exception):
    """Base class for fatal errors surfaced to the user."""


class ConfigurationError(ExplorerError):
    """Startup configuration is missing or malformed; the run never begins."""


class KnowledgeNotFoundError(ExplorerError):
    """An update was requested but no persisted knowledge exists."""


class KnowledgeFormatError(ExplorerError):
    """Persisted knowledge is unreadable or does not match the schema."""


class ExplorationError(ExplorerError):
    """The exploration produced nothing usable for the requested operation."""
