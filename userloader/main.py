"""Main entry point for the userloader application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Any, Coroutine, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Setup Logging Early ---
# Use basic config until setup_logging is called with the configured settings
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Core Layer ---
from userloader.core.command_handler import CommandHandler, LoadOptions

# --- Domain Layer ---
from userloader.domain.errors import ConfigurationError

# --- Infrastructure Layer ---
# Config
from userloader.infrastructure.config.settings import (
    get_auth0_settings, get_batch_size, get_logging_settings, load_configuration,
)
# UI
from userloader.infrastructure.cli.display import ConsoleDisplay
# FileSystem
from userloader.infrastructure.filesystem.local_fs import LocalFileSystem
# Remote API
from userloader.infrastructure.api.auth0_client import Auth0ManagementClient
# Fake data
from userloader.infrastructure.data.user_generator import FakeUserGenerator
# Persistence
from userloader.infrastructure.persistence.failure_recorder import DEFAULT_FAILURE_LOG
from userloader.infrastructure.persistence.batch_accumulator import default_results_path
# Monitoring
from userloader.infrastructure.monitoring.logger_setup import setup_logging
from userloader.infrastructure.monitoring.event_logger import log_event

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. Per-run components (scheduler,
    accumulator, recorder, orchestrator) are wired by the CommandHandler from
    the command's options.
    """
    logger.info("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    try:
        # 1. Load Configuration First
        load_configuration()
        setup_logging(get_logging_settings())
        logger.info("Configuration and logging initialized.")

        # 2. Instantiate Infrastructure Adapters
        auth0 = get_auth0_settings()
        dependencies['file_system'] = LocalFileSystem()
        dependencies['user_generator'] = FakeUserGenerator(password=auth0.testuser_password)
        dependencies['api_factory'] = lambda: Auth0ManagementClient(
            domain=auth0.domain,
            client_id=auth0.client_id,
            client_secret=auth0.client_secret,
            connection=auth0.connection,
        )
        dependencies['batch_size'] = get_batch_size()

        # 3. Instantiate Command Handler
        dependencies['command_handler'] = CommandHandler(
            ui=dependencies['ui'],
            file_system=dependencies['file_system'],
            api_factory=dependencies['api_factory'],
            user_generator=dependencies['user_generator'],
            event_hook=log_event,
        )
        logger.info("All dependencies initialized successfully.")
        return dependencies

    except ConfigurationError as e:
        logger.error(f"Fatal Error during application initialization: {e}")
        dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        raise typer.Exit(code=1)

# --- Typer App Definition ---
app = typer.Typer(
    name="userloader",
    help="userloader: bulk-provision test users against a rate-limited Auth0 Management API.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, int]) -> int:
    """Runs an async command handler from a sync Typer command and returns its exit code."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        return 130

# --- CLI Options (shared by both commands) ---

ConcurrentOption = Annotated[
    int, typer.Option("--concurrent", "-c", min=1, max=20, help="Maximum concurrent requests.")
]
DelayOption = Annotated[
    int, typer.Option("--delay", "-d", min=300, max=3000, help="Minimum delay between dispatches (ms).")
]
RetryOption = Annotated[
    int, typer.Option("--retry", "-r", min=0, max=5, help="Retries per user on 429 responses.")
]
StatusOption = Annotated[
    int, typer.Option("--status", "-s", min=5, max=3600, help="Seconds between progress reports.")
]
BatchSizeOption = Annotated[
    Optional[int], typer.Option("--batch-size", "-b", min=1, help="Users per batch (default: BATCH_SIZE or 100).")
]
FlushOption = Annotated[
    Optional[int], typer.Option("--flush", "-f", min=1, help="Flush results after this many successes (default: batch size).")
]
ResultsFileOption = Annotated[
    Optional[str], typer.Option("--results-file", help="Results file (default: users-list_<epoch-ms>.json).")
]
FailureLogOption = Annotated[
    str, typer.Option("--failure-log", help="Failure log for this run.")
]


def _build_options(
    dependencies: Dict[str, Any],
    concurrent: int,
    delay: int,
    retry: int,
    status: int,
    batch_size: Optional[int],
    flush: Optional[int],
    results_file: Optional[str],
    failure_log: str,
) -> LoadOptions:
    return LoadOptions(
        batch_size=batch_size or dependencies['batch_size'],
        concurrent=concurrent,
        delay_ms=delay,
        retry=retry,
        status_seconds=float(status),
        flush_threshold=flush,
        results_file=results_file or default_results_path(),
        failure_log=failure_log,
    )

# --- CLI Commands ---

@app.command()
def load(
    numusers: Annotated[int, typer.Option("--numusers", "-n", min=1, help="Number of users to create.")],
    concurrent: ConcurrentOption = 5,
    delay: DelayOption = 333,
    retry: RetryOption = 2,
    status: StatusOption = 60,
    batch_size: BatchSizeOption = None,
    flush: FlushOption = None,
    results_file: ResultsFileOption = None,
    failure_log: FailureLogOption = DEFAULT_FAILURE_LOG,
):
    """Create NUMUSERS fake users, rate limited and batched."""
    dependencies = create_dependencies()
    options = _build_options(
        dependencies, concurrent, delay, retry, status, batch_size, flush, results_file, failure_log
    )
    handler: CommandHandler = dependencies['command_handler']
    exit_code = run_async(handler.handle_load(numusers, options))
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command(name="retry-failures")
def retry_failures(
    failure_log: Annotated[str, typer.Option("--failure-log", help="Failure log of the previous run to re-run.")] = DEFAULT_FAILURE_LOG,
    concurrent: ConcurrentOption = 5,
    delay: DelayOption = 333,
    retry: RetryOption = 2,
    status: StatusOption = 60,
    batch_size: BatchSizeOption = None,
    flush: FlushOption = None,
    results_file: ResultsFileOption = None,
):
    """Re-provision exactly the users listed in a previous failure log."""
    dependencies = create_dependencies()
    options = _build_options(
        dependencies, concurrent, delay, retry, status, batch_size, flush, results_file, failure_log
    )
    handler: CommandHandler = dependencies['command_handler']
    exit_code = run_async(handler.handle_retry_failures(failure_log, options))
    if exit_code:
        raise typer.Exit(code=exit_code)

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    logger.info("Starting userloader application...")
    app()  # Typer takes over


if __name__ == "__main__":
    cli_entry_point()
