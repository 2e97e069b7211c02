import pytest
from unittest.mock import MagicMock

from rich.panel import Panel
from rich.table import Table

from userloader.domain.models.job import RunCounters, RunSummary
from userloader.infrastructure.cli.display import ConsoleDisplay

@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()

@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    display = ConsoleDisplay()
    display.console = mock_console # Inject the mock
    return display

def test_display_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that display_error prints a panel holding the message."""
    console_display.display_error("Something went wrong")
    mock_console.print.assert_called_once()
    args, _ = mock_console.print.call_args
    assert isinstance(args[0], Panel)
    assert "Error" in args[0].title
    assert args[0].renderable.plain == "Something went wrong"

def test_display_info(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_info("start loading 10 users")
    args, _ = mock_console.print.call_args
    assert isinstance(args[0], Panel)
    assert args[0].renderable.plain == "start loading 10 users"

def test_display_status(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that the status line carries both counters and the in-progress count."""
    console_display.display_status(RunCounters(submitted=10, success_count=6, failure_count=1))
    line = mock_console.print.call_args.args[0]
    assert "success so far: 6" in line
    assert "failure so far: 1" in line
    assert "in progress: 3" in line

def test_display_summary_table(console_display: ConsoleDisplay, mock_console: MagicMock):
    summary = RunSummary(
        total=10, success_count=8, failure_count=2, batches=3, flushes=3,
        elapsed_seconds=4.2, results_file="users-list_1.json", failure_log="failures.log",
    )
    console_display.display_summary(summary)

    mock_console.print.assert_called_once()
    table = mock_console.print.call_args.args[0]
    assert isinstance(table, Table)
    assert table.title == "Provisioning Summary"
    assert table.row_count == 8

def test_display_summary_warns_on_mismatch(console_display: ConsoleDisplay, mock_console: MagicMock):
    summary = RunSummary(total=10, success_count=8, failure_count=1, batches=3, flushes=3, elapsed_seconds=1.0)
    console_display.display_summary(summary)
    assert mock_console.print.call_count == 2
    warning = mock_console.print.call_args.args[0]
    assert isinstance(warning, Panel)
    assert "Accounting mismatch" in warning.renderable.plain
