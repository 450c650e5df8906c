"""
Knowledge/Merge.py — Reconciles a fresh snapshot with previously persisted knowledge.

The fresh snapshot wins for everything the crawler can observe; the
existing knowledge contributes its version lineage, its update history and
every operator customisation (``customData`` on pages, ``customTestData``
on forms) whose page or form is still present.
"""
from __future__ import annotations

import copy
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

from Models import AppKnowledge, FormEntry, PageEntry, UpdateEntry, bump_minor

logger = logging.getLogger(__name__)


def merge(
    existing: AppKnowledge,
    fresh: AppKnowledge,
    now: Optional[datetime] = None,
) -> AppKnowledge:
    """Return a new :class:`AppKnowledge` combining *existing* and *fresh*.

    Neither argument is modified.  The result's version is the existing
    version with its minor component incremented.
    """
    now = now or datetime.now(timezone.utc)
    merged = copy.deepcopy(fresh)

    merged.version = bump_minor(existing.version)
    merged.generated_at = now.isoformat()

    _carry_page_customisations(existing, merged)
    merged.removed_pages = sorted(existing.page_paths() - merged.page_paths())

    _carry_form_customisations(existing.forms, merged.forms)
    fresh_form_paths = {f.path for f in merged.forms}
    merged.removed_forms = _unique(
        f.path for f in existing.forms if f.path not in fresh_form_paths
    )

    merged.update_history = copy.deepcopy(existing.update_history)
    merged.update_history.append(
        UpdateEntry(
            date=now.isoformat(),
            previous_version=existing.version,
            new_version=merged.version,
            pages_added=count_new_pages(existing, merged),
            forms_added=len(merged.forms) - len(existing.forms),
            flows_added=len(merged.user_flows) - len(existing.user_flows),
        )
    )

    logger.debug(
        "Merged knowledge %s -> %s (%d removed pages, %d removed forms)",
        existing.version,
        merged.version,
        len(merged.removed_pages),
        len(merged.removed_forms),
    )
    return merged


def count_new_pages(existing: AppKnowledge, merged: AppKnowledge) -> int:
    """Return how many page paths of *merged* are unknown to *existing*."""
    known = existing.page_paths()
    return sum(1 for path in merged.page_paths() if path not in known)


def summarize_update(existing: AppKnowledge, merged: AppKnowledge) -> str:
    """Return a one-line human-readable description of what changed."""
    updates: list[str] = []

    pages_added = count_new_pages(existing, merged)
    if pages_added > 0:
        updates.append(f"{pages_added} new pages discovered")
    if merged.removed_pages:
        updates.append(f"{len(merged.removed_pages)} pages no longer found")

    form_diff = len(merged.forms) - len(existing.forms)
    if form_diff > 0:
        updates.append(f"{form_diff} new forms found")
    elif form_diff < 0:
        updates.append(f"{abs(form_diff)} forms removed")

    flow_diff = len(merged.user_flows) - len(existing.user_flows)
    if flow_diff > 0:
        updates.append(f"{flow_diff} new flows identified")

    if not updates:
        return "No significant changes detected"
    return ", ".join(updates)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _carry_page_customisations(existing: AppKnowledge, merged: AppKnowledge) -> None:
    """Copy ``custom_data`` onto fresh pages with the same path.

    Pages are matched across categories: a page whose category changed
    between runs keeps its customisation.
    """
    customised: dict[str, PageEntry] = {}
    for page in existing.all_pages():
        if page.custom_data is not None and page.path not in customised:
            customised[page.path] = page

    for page in merged.all_pages():
        previous = customised.get(page.path)
        if previous is not None and page.custom_data is None:
            page.custom_data = copy.deepcopy(previous.custom_data)


def _carry_form_customisations(existing: list[FormEntry], fresh: list[FormEntry]) -> None:
    """Copy ``custom_test_data`` onto fresh forms with the same action path.

    Several forms may share an action path; they are paired in document
    order.  A customisation left without a partner is logged, not lost
    silently.
    """
    by_path: dict[str, list[FormEntry]] = defaultdict(list)
    for form in existing:
        by_path[form.path].append(form)

    seen: dict[str, int] = defaultdict(int)
    for form in fresh:
        index = seen[form.path]
        seen[form.path] += 1
        candidates = by_path.get(form.path, [])
        if index < len(candidates) and candidates[index].custom_test_data is not None:
            if form.custom_test_data is None:
                form.custom_test_data = copy.deepcopy(candidates[index].custom_test_data)

    for path, forms in by_path.items():
        for form in forms[seen.get(path, 0):]:
            if form.custom_test_data is not None:
                logger.warning(
                    "Custom test data for a form posting to %s has no counterpart "
                    "in the new snapshot",
                    path,
                )


def _unique(items) -> list[str]:
    out: list[str] = []
    for item in items:
        if item not in out:
            out.append(item)
    return out
