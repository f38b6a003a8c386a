"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
OutputHandler also satisfies the Notifier protocol, so mutation and upload
messages show up as short colored lines while a command runs.
"""

from contextlib import contextmanager
from typing import Any, Iterator, List, Sequence

from rich.console import Console
from rich.live import Live
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.spinner import Spinner
from rich.table import Table

from src.collection_store.store import CollectionStore
from src.upload.models import UploadOutcome


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Notification marked as read")
        >>> with handler.spinner("Loading..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations.

        Example:
            >>> with handler.spinner("Fetching notifications..."):
            ...     pass
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    @contextmanager
    def progress_bar(self) -> Iterator[Progress]:
        """Display progress bars for multi-item operations.

        Example:
            >>> with handler.progress_bar() as progress:
            ...     task = progress.add_task("notes.pdf", total=100)
            ...     progress.update(task, completed=40)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            yield progress

    def print_page(
        self,
        title: str,
        store: CollectionStore,
        columns: Sequence[str],
    ) -> None:
        """Display the current page of a store as a table.

        Args:
            title: Table title
            store: Store holding the page
            columns: Entity keys to show, in order
        """
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for item in store:
            table.add_row(*[_cell(item, column) for column in columns])
        self.console.print(table)
        self.console.print(
            f"[dim]Page {store.page}/{store.total_pages()} "
            f"({store.total} total)[/dim]"
        )

    def print_upload_summary(self, outcomes: List[UploadOutcome]) -> None:
        """Display per-file upload results with color coding."""
        self.console.print("\n[bold]Upload Summary:[/bold]")
        for outcome in outcomes:
            if outcome.ok:
                self.console.print(
                    f"  [green]↑[/green] {outcome.file_name} → {outcome.storage_key}"
                )
            else:
                self.console.print(f"  [red]✗[/red] {outcome.file_name}: {outcome.error}")

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        if not outcomes:
            self.console.print("\n[yellow]No files to upload[/yellow]")
        elif failed:
            self.console.print(f"\n[red]{failed} of {len(outcomes)} upload(s) failed[/red]")
        else:
            self.console.print("\n[green]All uploads completed successfully[/green]")


def _cell(item: Any, column: str) -> str:
    value = item.get(column) if isinstance(item, dict) else getattr(item, column, None)
    return '' if value is None else str(value)
