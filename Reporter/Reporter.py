"""
Reporter/Reporter.py — Live console output and the end-of-run report.

Provides the :class:`Reporter` used by all other modules for status
messages, the crawl progress indicator, and the final summary table.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Generator, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from Models import AppKnowledge, ExplorerConfig, PageVisit

logger = logging.getLogger(__name__)

# Single shared console instance (stdout)
console = Console()


class Reporter:
    """Drives all user-visible output.

    Responsibilities:
    - Informational / warning / error logging helpers
    - A progress bar while crawling, or one line per page in verbose mode
    - End-of-run summary table
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self.warnings: list[str] = []

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    def print_banner(self) -> None:
        """Print the tool banner to the console."""
        console.print(
            Panel(
                "[bold cyan]App Skill Explorer[/bold cyan]  |  "
                "maps a running web application into versioned test knowledge",
                expand=False,
                style="bold white on black",
            )
        )

    def print_config(self, config: ExplorerConfig) -> None:
        """Print the effective configuration before exploration starts."""
        self.log_info(f"Application: [bold cyan]{config.app_name}[/bold cyan]")
        if config.target_url:
            self.log_info(f"URL:         [bold cyan]{config.target_url}[/bold cyan]")
        self.log_info(f"Mode:        {'Update' if config.update_mode else 'Create'}")
        self.log_info(f"Output:      {config.output_directory}")
        self.log_info(
            f"Max pages:   {config.max_pages}   depth: {config.max_depth}   "
            f"concurrency: {config.concurrency}"
        )
        if config.hint_pages:
            self.log_info(f"Hint pages:  {len(config.hint_pages)} from context")

    def log_info(self, message: str) -> None:
        """Print a standard informational message (supports Rich markup)."""
        console.print(f"[dim]\\[*][/dim] {message}")

    def log_warning(self, message: str) -> None:
        """Print a warning and remember it for the summary."""
        self.warnings.append(message)
        console.print(f"[bold yellow]\\[~][/bold yellow] {message}")

    def log_error(self, message: str) -> None:
        """Print an error message (supports Rich markup)."""
        console.print(f"[bold red]\\[!][/bold red] {message}")

    def log_debug(self, message: str) -> None:
        """Emit a structured debug log (not printed to console)."""
        logger.debug(message)

    def log_page(self, visit: PageVisit, depth: int, queued: int) -> None:
        """Print one verbose line describing a visited page."""
        page = visit.page
        console.print(
            f"[dim]\\[*][/dim] [cyan]{page.url}[/cyan]  "
            f"type=[yellow]{page.page_type}[/yellow]  "
            f"forms=[yellow]{len(visit.forms)}[/yellow]  "
            f"links+=[yellow]{queued}[/yellow]  depth={depth}"
        )

    @contextmanager
    def crawl_progress(
        self, total: int, enabled: bool = True
    ) -> Generator[Callable[[], None], None, None]:
        """Render a Rich progress bar for the crawl and yield an ``advance()`` callable.

        When *enabled* is false (verbose runs print per-page lines instead)
        the yielded callable is a no-op.
        """
        if not enabled:
            yield lambda: None
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("[cyan]Exploring…[/cyan]", total=total)
            yield lambda: progress.advance(task_id)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def print_summary(
        self,
        knowledge: AppKnowledge,
        location: str,
        changes: Optional[str] = None,
    ) -> None:
        """Print the end-of-run report of counts."""
        stats = knowledge.statistics
        table = Table(title="Exploration Summary", box=box.ROUNDED, show_header=True)
        table.add_column("Metric", style="bold cyan", min_width=22)
        table.add_column("Value", style="white", justify="right")

        table.add_row("Version", knowledge.version)
        table.add_row("Pages discovered", str(len(knowledge.all_pages())))
        table.add_row("Forms found", str(len(knowledge.forms)))
        table.add_row("Flows identified", str(len(knowledge.user_flows)))
        table.add_row("Test scenarios", str(len(knowledge.test_scenarios)))

        failed = int(stats.get("pagesFailed", 0))
        failed_str = f"[yellow]{failed}[/yellow]" if failed else str(failed)
        table.add_row("Failed visits", failed_str)
        table.add_row("Framework", knowledge.framework.framework)

        console.print()
        console.print(table)
        if changes:
            console.print(f"[green]\\[+][/green] Changes: {changes}")
        console.print(f"[green]\\[+][/green] Location: [bold]{location}[/bold]")
