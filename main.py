"""
main.py — Entry point for the App Skill Explorer.

Sets up the CLI, configures logging, optionally seeds the run from
documentation, explores the target application with Playwright, analyses
what was found and writes (or updates) the versioned knowledge artifacts.
Handles SIGINT gracefully by stopping the crawl and keeping what was
already explored.

Usage::

    python main.py --name myapp --url http://localhost:3000 [options]

See ``python main.py --help`` for full documentation.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from playwright.async_api import async_playwright

from Analyzer import analyze
from Auth import AuthManager
from Context import ContextReader, merge_with_config
from Knowledge import KnowledgeStore, merge, summarize_update
from Models import (
    AppKnowledge,
    ConfigurationError,
    ExplorationError,
    ExplorationResult,
    ExplorerConfig,
    ExplorerError,
)
from Models.Config import DEFAULT_OUTPUT_DIRECTORY
from Reporter import Reporter
from Spider import Spider, screenshot_hook_for

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------


def build_arg_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="app-skill-explorer",
        description="Explore a web application and record versioned testing knowledge",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=r"""
Examples
────────
  Create a skill:
    python main.py --name myapp --url http://localhost:3000

  Seed from documentation (URL and page hints are detected):
    python main.py --name myapp --docs ./docs

  Update an existing skill, keeping customisations:
    python main.py --name myapp --update

  Larger crawl behind a login:
    python main.py --name myapp --url https://staging.example.com \
                   --auth-script auth.json \
                   --max-pages 200 --max-depth 5 --concurrency 4
        """,
    )

    # ── Target ────────────────────────────────────────────────────────────────
    target = parser.add_argument_group("target")
    target.add_argument(
        "-n",
        "--name",
        dest="app_name",
        metavar="NAME",
        help="Application name; the skill is written to <output>/<NAME>-testing (required)",
    )
    target.add_argument(
        "-u",
        "--url",
        dest="target_url",
        metavar="URL",
        help="Starting URL of the running application",
    )
    target.add_argument(
        "-d",
        "--docs",
        dest="context_path",
        metavar="PATH",
        help="Documentation file or folder used to seed the URL and page hints",
    )
    target.add_argument(
        "--update",
        dest="update_mode",
        action="store_true",
        default=False,
        help="Re-explore and merge into the existing skill instead of creating it",
    )

    # ── Authentication ────────────────────────────────────────────────────────
    auth = parser.add_argument_group("authentication")
    auth.add_argument(
        "--auth-script",
        metavar="FILE",
        help="Path to JSON auth-script file describing the login form",
    )

    # ── Crawl limits ──────────────────────────────────────────────────────────
    limits = parser.add_argument_group("crawl limits")
    limits.add_argument(
        "--max-depth",
        type=int,
        default=3,
        metavar="N",
        help="Maximum BFS crawl depth (default: 3)",
    )
    limits.add_argument(
        "--max-pages",
        type=int,
        default=50,
        metavar="N",
        help="Maximum pages to visit (default: 50)",
    )
    limits.add_argument(
        "--concurrency",
        type=int,
        default=1,
        metavar="N",
        help="Pages visited at once (default: 1)",
    )
    limits.add_argument(
        "--settle-delay",
        type=float,
        default=1.0,
        metavar="SECS",
        help="Wait after navigation for client-rendered content (default: 1)",
    )
    limits.add_argument(
        "--visit-timeout",
        type=float,
        default=60.0,
        metavar="SECS",
        help="Upper bound for a single page visit (default: 60)",
    )

    # ── Output ────────────────────────────────────────────────────────────────
    out = parser.add_argument_group("output")
    out.add_argument(
        "-o",
        "--output",
        dest="output_directory",
        default=DEFAULT_OUTPUT_DIRECTORY,
        metavar="DIR",
        help=f"Directory that holds generated skills (default: {DEFAULT_OUTPUT_DIRECTORY})",
    )
    out.add_argument(
        "--no-screenshots",
        dest="screenshots",
        action="store_false",
        default=True,
        help="Do not capture a screenshot of each visited page",
    )
    out.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print one line per page and enable DEBUG-level logging",
    )

    # ── Browser ───────────────────────────────────────────────────────────────
    browser = parser.add_argument_group("browser")
    headless = browser.add_mutually_exclusive_group()
    headless.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=True,
        help="Run browser headlessly (default)",
    )
    headless.add_argument(
        "--no-headless",
        dest="headless",
        action="store_false",
        help="Show the browser UI (useful for debugging)",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ExplorerConfig:
    """Translate parsed CLI arguments into an :class:`ExplorerConfig`."""
    return ExplorerConfig(
        app_name=args.app_name,
        target_url=args.target_url,
        context_path=args.context_path,
        update_mode=args.update_mode,
        output_directory=args.output_directory,
        max_depth=args.max_depth,
        max_pages=args.max_pages,
        concurrency=args.concurrency,
        settle_delay=args.settle_delay,
        visit_timeout=args.visit_timeout,
        headless=args.headless,
        screenshots=args.screenshots,
        auth_script=args.auth_script,
        verbose=args.verbose,
    )


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------


def seed_from_context(config: ExplorerConfig, reporter: Reporter) -> ExplorerConfig:
    """Read ``--docs`` (when given) and fold what it found into *config*."""
    if not config.context_path:
        return config

    reporter.log_info(f"Reading application context from {config.context_path}")
    seed = ContextReader().read(config.context_path)
    seeded = merge_with_config(config, seed)

    if seeded.target_url and not config.target_url:
        reporter.log_info(f"Detected URL: [bold cyan]{seeded.target_url}[/bold cyan]")
    if seed.hint_pages:
        reporter.log_info(f"Found {len(seed.hint_pages)} page references")
    if seed.credential_hints:
        reporter.log_info(f"Found {len(seed.credential_hints)} credential references")
    if seed.feature_hints:
        reporter.log_info(f"Found {len(seed.feature_hints)} feature descriptions")
    return seeded


async def explore(
    config: ExplorerConfig,
    reporter: Reporter,
    shutdown_event: asyncio.Event,
) -> ExplorationResult:
    """Launch Chromium, log in if configured, and crawl the application."""
    auth_manager = AuthManager(auth_script=config.auth_script)
    hooks = screenshot_hook_for(
        config.resolved_screenshot_dir if config.screenshots else None
    )

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=config.headless)
        context = await browser.new_context()
        try:
            if auth_manager.has_auth():
                reporter.log_info(
                    f"Authentication: [bold cyan]Script ({config.auth_script})[/bold cyan]"
                )
                if not await auth_manager.authenticate(context):
                    reporter.log_warning("Login failed; exploring unauthenticated")
            elif config.auth_script:
                reporter.log_warning(f"Ignoring unusable auth script {config.auth_script}")

            spider = Spider(
                context=context,
                start_url=config.target_url,
                app_name=config.app_name,
                reporter=reporter,
                max_pages=config.max_pages,
                max_depth=config.max_depth,
                concurrency=config.concurrency,
                settle_delay=config.settle_delay,
                navigation_timeout=config.navigation_timeout,
                visit_timeout=config.visit_timeout,
                hint_pages=config.hint_pages,
                hooks=hooks,
                auth_manager=auth_manager if auth_manager.has_auth() else None,
                shutdown_event=shutdown_event,
                verbose=config.verbose,
            )
            result = await spider.crawl()
        finally:
            await context.close()
            await browser.close()

    reporter.log_info(
        f"Exploration complete — [bold]{len(result.pages)}[/bold] pages, "
        f"{len(result.forms)} forms, {len(result.failed)} failed."
    )
    if shutdown_event.is_set():
        reporter.log_warning("Exploration interrupted; keeping the pages already visited")
    return result


async def run(config: ExplorerConfig, reporter: Reporter) -> AppKnowledge:
    """Run the whole pipeline for *config* and return the persisted knowledge."""
    reporter.print_banner()

    shutdown_event = asyncio.Event()

    # ── SIGINT handler ────────────────────────────────────────────────────────
    def _on_sigint(*_) -> None:
        reporter.log_info("[yellow]Ctrl-C received — finishing current pages…[/yellow]")
        shutdown_event.set()

    signal.signal(signal.SIGINT, _on_sigint)

    config.validate()
    config = seed_from_context(config, reporter)
    store = KnowledgeStore(config.output_directory, config.app_name)

    # ── Step 1: load what we are updating, before touching the browser ────────
    existing: Optional[AppKnowledge] = None
    if config.update_mode:
        existing = store.load()
        if not config.target_url:
            config.target_url = existing.base_url
        reporter.log_info(f"Current version: {existing.version}")

    if not config.target_url:
        raise ConfigurationError(
            "No URL found. Provide --url or include the URL in the --docs documentation"
        )
    config.validate()
    reporter.print_config(config)

    # ── Step 2: explore and analyse ───────────────────────────────────────────
    result = await explore(config, reporter, shutdown_event)
    fresh = analyze(result)

    # ── Step 3: persist ───────────────────────────────────────────────────────
    changes: Optional[str] = None
    if existing is None:
        if not result.pages:
            reporter.log_warning(
                "No pages discovered — check the URL and that the application is running."
            )
        knowledge = fresh
    else:
        if not result.pages:
            raise ExplorationError(
                f"No pages could be explored at {config.target_url}; "
                "the existing skill was left unchanged"
            )
        knowledge = merge(existing, fresh)
        changes = summarize_update(existing, knowledge)

    backup = store.backup()
    if backup is not None:
        logger.debug("Previous artifacts backed up to %s", backup)
    location = store.save(knowledge)
    reporter.print_summary(knowledge, str(location), changes=changes)
    return knowledge


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    """Parse arguments, configure logging, and run the async pipeline."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    # ── Logging setup ─────────────────────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.ERROR
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy library logs unless in verbose mode
    if not args.verbose:
        for lib in ("playwright", "asyncio"):
            logging.getLogger(lib).setLevel(logging.WARNING)

    reporter = Reporter(verbose=args.verbose)
    config = config_from_args(args)
    try:
        asyncio.run(run(config, reporter))
    except ExplorerError as exc:
        logger.debug("Fatal error", exc_info=True)
        reporter.log_error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        # Second Ctrl-C while cleanup is running: exit immediately
        sys.exit(0)


if __name__ == "__main__":
    main()
