from .Extractor import PageExtractor, build_elements, build_forms, build_page_record, filter_links
from .Frontier import Frontier
from .Hooks import PostVisitHook, ScreenshotHook, run_hooks, screenshot_hook_for
from .Spider import Spider
