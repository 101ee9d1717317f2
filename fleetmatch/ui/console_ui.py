"""Console output for fleetmatch.

This module provides the ConsoleUI class, a Rich-based presenter for match
results, label listings, hydrated backend records and bulk run summaries.

Example:
    from fleetmatch.ui import ConsoleUI

    ui = ConsoleUI()
    ui.display_match_summary(matches, label_count=900, application_count=140)
    progress, callback = ui.create_progress_callback("Deploying", len(items))
    with progress:
        summary = pipeline.deploy(items, config)
    ui.display_run_summary(summary)
"""

from typing import AbstractSet, Callable, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.prompt import Confirm
from rich.table import Table

from fleetmatch.models import (
    ApplicationRecord,
    BulkRunSummary,
    DisplayItem,
    HydratedRecord,
    MatchResult,
    OperationKind,
)

_RUN_TITLES = {
    OperationKind.DEPLOY: "Deployment Summary",
    OperationKind.MOVE: "Move Summary",
    OperationKind.DELETE: "Delete Summary",
}


class ConsoleUI:
    """Rich-based presenter for the reconciliation workflow.

    Args:
        console: Optional Rich Console instance for output. Pass a Console
            writing to a StringIO to capture output in tests.

    Attributes:
        console: The Rich Console instance used for all output.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def display_match_summary(
        self,
        matches: Sequence[MatchResult],
        label_count: int,
        application_count: int,
    ) -> None:
        """Display a header panel with counts followed by the match table."""
        header_text = (
            f"Labels in catalogue: {label_count:,}\n"
            f"Applications imported: {application_count:,}\n"
            f"Matches found: {len(matches):,}"
        )
        self.console.print(Panel(header_text, title="Match Results", border_style="blue"))

        if not matches:
            self.console.print("[yellow]No applications matched a catalogue label.[/yellow]")
            return

        table = Table(title="Matches")
        table.add_column("#", justify="right", style="cyan", no_wrap=True)
        table.add_column("Application", style="white")
        table.add_column("Platform", style="magenta")
        table.add_column("Label", style="green")

        for idx, match in enumerate(matches, start=1):
            table.add_row(
                str(idx),
                self._truncate_name(match.application.name),
                match.application.platform,
                match.matched_label,
            )
        self.console.print(table)

    def display_items(
        self,
        groups: Sequence[Tuple[str, Sequence[DisplayItem]]],
        selected_ids: AbstractSet[str] = frozenset(),
    ) -> None:
        """Display grouped display items, one table per platform.

        Args:
            groups: (platform, items) pairs as produced by group_items().
            selected_ids: Identifiers to mark as selected.
        """
        if not groups:
            self.console.print("[yellow]No items to display.[/yellow]")
            return

        for platform, items in groups:
            table = Table(title=f"{platform} ({len(items)})", title_justify="left")
            table.add_column("", width=1, no_wrap=True)
            table.add_column("Name", style="white")
            table.add_column("Label", style="green")
            for item in items:
                marker = "[bold cyan]*[/bold cyan]" if item.id in selected_ids else ""
                name = self._truncate_name(item.display_name)
                if not item.is_matched:
                    name = f"[dim]{name}[/dim]"
                table.add_row(marker, name, item.label)
            self.console.print(table)

    def display_suggestions(self, suggestions: Sequence[Tuple[ApplicationRecord, str, float]]) -> None:
        """Display near-miss labels for unmatched applications."""
        if not suggestions:
            self.console.print("[dim]No near-miss labels found.[/dim]")
            return

        table = Table(title="Possible Labels (not matched)")
        table.add_column("Application", style="white")
        table.add_column("Platform", style="magenta")
        table.add_column("Closest Label", style="yellow")
        table.add_column("Score", justify="right")
        for app, label, score in suggestions:
            table.add_row(self._truncate_name(app.name), app.platform, label, self._format_score(score))
        self.console.print(table)

    def display_records(self, title: str, records: Sequence[HydratedRecord], category_of: Callable) -> None:
        """Display hydrated backend records with their category.

        Args:
            title: Table title.
            records: Hydrated records; summaries are {"id", "name"} dicts.
            category_of: Callable extracting a category name from a detail
                payload, or None.
        """
        table = Table(title=f"{title} ({len(records)})")
        table.add_column("ID", justify="right", style="cyan", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Category", style="magenta")

        fallbacks = 0
        for record in records:
            if record.is_enriched:
                category = category_of(record.detail) or "[dim]None[/dim]"
            else:
                fallbacks += 1
                category = "[red]?[/red]"
            name = self._truncate_name(str(record.summary.get("name", "")))
            table.add_row(str(record.summary.get("id", "")), name, category)
        self.console.print(table)

        if fallbacks:
            self.console.print(
                f"[yellow]Details unavailable for {fallbacks} record(s).[/yellow]", highlight=False
            )

    def display_status(self, rows: Sequence[Tuple[str, str, str]]) -> None:
        """Display loaded inputs as (input, source, count) rows."""
        table = Table(title="Session")
        table.add_column("Input", style="cyan")
        table.add_column("Source", style="white")
        table.add_column("Records", justify="right")
        for name, source, count in rows:
            table.add_row(name, source, count)
        self.console.print(table)

    def create_progress_callback(
        self, description: str, total: int
    ) -> Tuple[Progress, Callable[[int, int, str], None]]:
        """Create a progress bar and a pipeline-compatible callback.

        The caller must use the returned Progress as a context manager.
        The callback accepts (index, total, item_name) before each item.

        Example:
            progress, callback = ui.create_progress_callback("Deploying", 12)
            with progress:
                pipeline = BulkDeploymentPipeline(client, progress_callback=callback)
                pipeline.deploy(items, config)
        """
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        task_id = progress.add_task(f"{description}...", total=total)

        def callback(index: int, total_items: int, item_name: str) -> None:
            progress.update(
                task_id,
                completed=index + 1,
                description=f"{description}: {self._truncate_name(item_name, max_length=40)}",
            )

        return progress, callback

    def display_run_summary(self, summary: BulkRunSummary) -> None:
        """Display per-run statistics and the failures, if any."""
        border = "green" if summary.all_succeeded else "red"
        self.console.print(Panel(_RUN_TITLES[summary.operation], border_style=border))

        table = Table(show_header=True, header_style="bold")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Items", f"{len(summary.results):,}")
        table.add_row("Succeeded", f"{summary.success_count:,}")
        table.add_row("Failed", f"{summary.failure_count:,}")
        table.add_row("Duration", self._format_duration(summary.duration_seconds))
        self.console.print(table)

        if summary.cancelled:
            self.console.print("[yellow]Run cancelled; remaining items were not executed.[/yellow]")

        if summary.operation is OperationKind.MOVE:
            moves: Dict[str, int] = {}
            for result in summary.results:
                if result.success:
                    key = f"{result.from_category or 'No category'} -> {result.to_category}"
                    moves[key] = moves.get(key, 0) + 1
            for key, count in sorted(moves.items()):
                self.console.print(f"  [dim]{key}: {count}[/dim]", highlight=False)

        errors = [f"{r.item_name}: {r.error}" for r in summary.results if not r.success]
        if errors:
            self._display_errors(errors)

    def confirm(self, message: str) -> bool:
        return Confirm.ask(message, console=self.console, default=False)

    def _display_errors(self, errors: List[str]) -> None:
        max_display = 10
        error_text = "\n".join(f"- {e}" for e in errors[:max_display])
        remaining = len(errors) - max_display
        if remaining > 0:
            error_text += f"\n\n... and {remaining} more errors"

        self.console.print(Panel(error_text, title=f"Errors ({len(errors)})", border_style="red"))

    def _format_score(self, score: float) -> str:
        if score >= 90:
            return f"[green]{score:.0f}[/green]"
        return f"[yellow]{score:.0f}[/yellow]"

    def _format_duration(self, seconds: float) -> str:
        """Convert seconds to a "5m 23s" style duration."""
        if seconds < 0:
            seconds = 0
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"

    def _truncate_name(self, name: str, max_length: int = 60) -> str:
        if len(name) > max_length:
            return name[: max_length - 3] + "..."
        return name
