from .Merge import count_new_pages, merge, summarize_update
from .Render import render_readme, render_skill, render_test_patterns
from .Store import ARTIFACTS, KNOWLEDGE_FILE, KnowledgeStore

__all__ = [
    "ARTIFACTS",
    "KNOWLEDGE_FILE",
    "KnowledgeStore",
    "count_new_pages",
    "merge",
    "render_readme",
    "render_skill",
    "render_test_patterns",
    "summarize_update",
]
