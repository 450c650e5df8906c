"""
Knowledge/Render.py — Text renderings of :class:`AppKnowledge`.

``app-knowledge.json`` is the authoritative artifact; the files produced
here are derived views regenerated on every save.
"""
from __future__ import annotations

import json

from Models import AppKnowledge, Flow


def render_skill(knowledge: AppKnowledge, skill_name: str) -> str:
    """Return the SKILL.md document describing how to test the application."""
    lines = [
        "---",
        f"name: {skill_name}",
        f"description: Testing knowledge for {knowledge.app_name} at {knowledge.base_url}",
        f"version: {knowledge.version}",
        "---",
        "",
        f"# {knowledge.app_name} Testing",
        "",
        f"- Base URL: {knowledge.base_url}",
        f"- Framework: {knowledge.framework.framework}",
        f"- Generated: {knowledge.generated_at}",
        "",
        "## Pages",
        "",
    ]
    for category, pages in knowledge.pages.items():
        if not pages:
            continue
        lines.append(f"### {category.capitalize()}")
        lines.append("")
        for page in pages:
            lines.append(f"- **{page.name}** `{page.path}` ({page.type})")
        lines.append("")

    if knowledge.forms:
        lines += ["## Forms", ""]
        for form in knowledge.forms:
            fields = ", ".join(f.identifier or f.type for f in form.fields) or "no fields"
            lines.append(f"- `{form.method.upper()} {form.path}` [{form.pattern}]: {fields}")
        lines.append("")

    if knowledge.user_flows:
        lines += ["## User Flows", ""]
        for flow in knowledge.user_flows:
            lines.append(f"### {flow.name}")
            lines.append("")
            for number, step in enumerate(flow.steps, 1):
                target = step.url or step.selector or ""
                lines.append(f"{number}. {step.action} {target}".rstrip())
            lines.append("")

    if knowledge.test_scenarios:
        lines += ["## Test Scenarios", ""]
        for scenario in knowledge.test_scenarios:
            lines.append(f"- **{scenario.name}**: {scenario.description}")
        lines.append("")

    lines += [
        "## Notes",
        "",
        "Password fields use a placeholder value; supply real credentials at test time.",
        "Edit `customData` on pages and `customTestData` on forms in app-knowledge.json;",
        "both survive updates.",
        "",
    ]
    return "\n".join(lines)


def render_readme(knowledge: AppKnowledge, skill_name: str) -> str:
    """Return README.md with a short overview and the update history."""
    stats = knowledge.statistics
    lines = [
        f"# {skill_name}",
        "",
        f"Generated testing knowledge for **{knowledge.app_name}** ({knowledge.base_url}).",
        "",
        f"- Version: {knowledge.version}",
        f"- Pages explored: {stats.get('pagesExplored', len(knowledge.all_pages()))}",
        f"- Forms found: {len(knowledge.forms)}",
        f"- Flows identified: {len(knowledge.user_flows)}",
        "",
        "## Files",
        "",
        "- `SKILL.md`: testing guide",
        "- `app-knowledge.json`: structured application knowledge",
        "- `test-patterns.js`: Playwright helpers for the identified flows",
        "",
    ]
    if knowledge.update_history:
        lines += ["## Update History", ""]
        for entry in knowledge.update_history:
            lines.append(
                f"- {entry.date}: {entry.previous_version} -> {entry.new_version} "
                f"(+{entry.pages_added} pages, {entry.forms_added:+d} forms, "
                f"{entry.flows_added:+d} flows)"
            )
        lines.append("")
    return "\n".join(lines)


def render_test_patterns(knowledge: AppKnowledge) -> str:
    """Return a CommonJS module with one Playwright helper per user flow."""
    lines = [
        f"// Test patterns for {knowledge.app_name} (v{knowledge.version})",
        f"const BASE_URL = {json.dumps(knowledge.base_url)};",
        "",
    ]
    names = []
    for flow in knowledge.user_flows:
        name = _function_name(flow)
        names.append(name)
        lines.append(f"async function {name}(page) {{")
        for step in flow.steps:
            lines.append(f"  {_step_js(step.action, step.url, step.selector)}")
        lines.append("}")
        lines.append("")
    exports = ", ".join(["BASE_URL", *names])
    lines.append(f"module.exports = {{ {exports} }};")
    lines.append("")
    return "\n".join(lines)


def _function_name(flow: Flow) -> str:
    words = [w for w in "".join(c if c.isalnum() else " " for c in flow.name).split() if w]
    if not words:
        return "runFlow"
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def _step_js(action: str, url, selector) -> str:
    verb = action.split(" ", 1)[0].lower()
    if verb == "navigate" and url:
        return f"await page.goto({json.dumps(url)});"
    if verb == "verify" and url:
        return f"await page.waitForURL({json.dumps(url)});"
    if verb == "verify" and selector:
        return f"await page.waitForSelector({json.dumps(selector)});"
    if verb in ("fill", "enter") and selector:
        return f"// {action}: {selector}"
    if verb in ("submit", "click") and selector:
        return f"await page.click({json.dumps(selector)});"
    return f"// {action}"
