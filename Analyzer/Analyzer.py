"""
Analyzer/Analyzer.py — Turns a finished crawl into a fresh knowledge snapshot.
"""
from __future__ import annotations

import logging

from Models import AppKnowledge, ExplorationResult, FormEntry, FormRecord, PageEntry, PageRecord

from .Classifier import categorize_page
from .Synthesizer import analyze_navigation, detect_framework, synthesize_flows, synthesize_scenarios

logger = logging.getLogger(__name__)


def page_entry(page: PageRecord) -> PageEntry:
    return PageEntry(
        name=page.page_name,
        url=page.url,
        path=page.path,
        type=page.page_type,
        title=page.title,
        heading=page.heading,
        description=page.description,
    )


def form_entry(form: FormRecord) -> FormEntry:
    return FormEntry(
        action=form.action_url,
        method=form.method,
        fields=list(form.fields),
        buttons=list(form.buttons),
        pattern=form.pattern,
        test_data=dict(form.generated_test_data),
    )


def analyze(result: ExplorationResult) -> AppKnowledge:
    """Classify, group and synthesise *result* into an :class:`AppKnowledge`.

    The returned snapshot carries the initial version and an empty update
    history; the merge engine assigns the real version on re-exploration.
    """
    knowledge = AppKnowledge(app_name=result.app_name, base_url=result.base_url)

    form_paths = {f.action_path for f in result.forms}
    for page in result.pages:
        knowledge.pages[categorize_page(page, form_paths)].append(page_entry(page))

    knowledge.forms = [form_entry(f) for f in result.forms]
    knowledge.navigation = analyze_navigation(result.pages)
    knowledge.user_flows = synthesize_flows(result.pages, result.forms)
    knowledge.test_scenarios = synthesize_scenarios(result.pages, result.forms)
    knowledge.framework = detect_framework(result.pages)

    statistics = result.statistics()
    statistics["flowsIdentified"] = len(knowledge.user_flows)
    knowledge.statistics = statistics

    logger.debug(
        "Analyzed %d pages, %d forms, %d flows, %d scenarios",
        len(result.pages),
        len(knowledge.forms),
        len(knowledge.user_flows),
        len(knowledge.test_scenarios),
    )
    return knowledge
