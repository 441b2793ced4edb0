"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status messages, a spinner for the sync run and the sync summary.
Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner

from svlmd.sync.models import SyncResult


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Sync completed")
        >>> with handler.spinner("Syncing pages..."):
        ...     result = engine.run()
        >>> handler.print_sync_summary(result)
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(escape(message))

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a single operation runs.

        Args:
            message: Message to display with spinner

        Example:
            >>> with handler.spinner("Syncing pages..."):
            ...     result = engine.run()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_sync_summary(self, result: SyncResult, version_only: bool = False) -> None:
        """Display the outcome of a sync run.

        Counts are always shown; per-page lines (+ added, * modified,
        - deleted) only in verbose mode. Failure reasons are always listed.

        Args:
            result: Result returned by SyncEngine.run
            version_only: The run only recorded release notes
        """
        self.console.print("\n[bold]Sync Summary:[/bold]")

        if result.stamp is not None and result.ledger_committed:
            self.console.print(f"  Version: {result.stamp.counter} ({result.stamp.timestamp})")
        if result.contributor is not None:
            self.console.print(f"  Contributor: {escape(result.contributor.identifier)}")

        self.console.print(f"  [cyan]●[/cyan] Changed: {len(result.changed)} page(s)")
        if result.updated:
            self.console.print(f"  [green]✓[/green] Updated: {len(result.updated)} page(s)")
        if result.failed:
            self.console.print(f"  [red]✗[/red] Failed: {len(result.failed)} page(s)")
        if result.deleted:
            self.console.print(f"  [dim]─[/dim] Deleted: {len(result.deleted)} page(s)")

        if self.verbosity >= 1:
            added = set(result.added)
            for path in result.changed:
                marker = "+" if path in added else "*"
                self.console.print(f"    {marker} {escape(path)}")
            for path in result.deleted:
                self.console.print(f"    - {escape(path)}")
            for path in result.written:
                self.console.print(f"    [dim]wrote {escape(path)}[/dim]")

        for failure in result.failed:
            self.console.print(f"  [red]✗[/red] {escape(failure.path)}: {escape(failure.reason)}")

        for warning in result.warnings:
            self.warning(warning)

        # Overall status
        if version_only:
            self.console.print("\n[green]Release notes recorded (page properties untouched)[/green]")
        elif not result.changed and not result.deleted:
            self.console.print("\n[green]Already in sync. No changes detected.[/green]")
        elif result.changed and not result.updated and not result.ledger_committed:
            self.console.print("\n[red]Sync failed: no page could be updated[/red]")
        elif result.failed:
            self.console.print("\n[yellow]Sync completed with failures[/yellow]")
        else:
            self.console.print("\n[green]Sync completed successfully[/green]")
