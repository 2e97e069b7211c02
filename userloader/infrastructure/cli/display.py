import logging
from datetime import datetime
from typing import Any

from rich.box import HEAVY, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from userloader.domain.interfaces.user_interface import UserInterface
from userloader.domain.models.job import RunCounters, RunSummary

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self):
        """Initializes the rich Console."""
        self._console = Console()

    @property
    def console(self):
        """Get the Rich console instance for direct operations."""
        return self._console

    @console.setter
    def console(self, console) -> None:
        self._console = console

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message."""
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message."""
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_status(self, counters: RunCounters) -> None:
        """Prints one progress line with the running counters."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.console.print(
            f"[dim]{timestamp}[/dim] "
            f"[green]success so far: {counters.success_count}[/green]  "
            f"[red]failure so far: {counters.failure_count}[/red]  "
            f"[dim]in progress: {counters.in_progress}[/dim]"
        )

    def display_summary(self, summary: RunSummary) -> None:
        """Renders the final totals as a table."""
        table = Table(title="Provisioning Summary", box=SIMPLE, show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        table.add_row("Requested", str(summary.total))
        table.add_row("[green]Succeeded[/green]", str(summary.success_count))
        table.add_row("[red]Failed[/red]", str(summary.failure_count))
        table.add_row("Batches", str(summary.batches))
        table.add_row("Flushes", str(summary.flushes))
        table.add_row("Elapsed", f"{summary.elapsed_seconds:.1f}s")
        if summary.results_file:
            table.add_row("Results file", summary.results_file)
        if summary.failure_log:
            table.add_row("Failure log", summary.failure_log)
        self.console.print(table)
        if not summary.accounted:
            self.display_warning(
                f"Accounting mismatch: {summary.success_count} + {summary.failure_count} != {summary.total}"
            )
