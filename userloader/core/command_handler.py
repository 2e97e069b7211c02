"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), wires a provisioning
pipeline for the requested run (scheduler, retry policy, accumulator, failure
recorder, orchestrator) and reports the outcome through the UserInterface.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from userloader.core.services.provisioning_orchestrator import (
    DEFAULT_STATUS_INTERVAL_SECONDS, PayloadFactory, ProvisioningOrchestrator,
)
from userloader.domain.errors import DurabilityError, TokenAcquisitionError
from userloader.domain.events.dispatch_events import EventHook
from userloader.domain.interfaces.file_system import FileSystem
from userloader.domain.interfaces.user_interface import UserInterface
from userloader.domain.models.common import FilePath, JobId
from userloader.domain.models.job import RunSummary
from userloader.infrastructure.api.auth0_client import Auth0ManagementClient
from userloader.infrastructure.data.user_generator import FakeUserGenerator
from userloader.infrastructure.persistence.batch_accumulator import BatchAccumulator, default_results_path
from userloader.infrastructure.persistence.failure_recorder import DEFAULT_FAILURE_LOG, FailureRecorder
from userloader.infrastructure.resilience.error_classifier import ErrorClassifier
from userloader.infrastructure.resilience.paced_scheduler import PacedScheduler
from userloader.infrastructure.resilience.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadOptions:
    """Validated run parameters coming from the CLI."""
    batch_size: int
    concurrent: int = 5
    delay_ms: int = 333
    retry: int = 2
    status_seconds: float = DEFAULT_STATUS_INTERVAL_SECONDS
    flush_threshold: Optional[int] = None
    results_file: str = field(default_factory=default_results_path)
    failure_log: str = DEFAULT_FAILURE_LOG

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0


class CommandHandler:
    """Handles incoming commands and delegates to the provisioning pipeline."""

    def __init__(
        self,
        ui: UserInterface,
        file_system: FileSystem,
        api_factory: Callable[[], Auth0ManagementClient],
        user_generator: FakeUserGenerator,
        event_hook: Optional[EventHook] = None,
    ):
        """Initializes the CommandHandler with required services."""
        self.ui = ui
        self.file_system = file_system
        self.api_factory = api_factory
        self.user_generator = user_generator
        self.event_hook = event_hook

    async def handle_load(self, numusers: int, options: LoadOptions) -> int:
        """Handles the 'load' command: provisions ``numusers`` fake users.

        Returns:
            Process exit code.
        """
        logger.info(
            f"Handling 'load': numusers={numusers}, concurrent={options.concurrent}, "
            f"delay={options.delay_ms}ms, retry={options.retry}, status={options.status_seconds}s, "
            f"batch_size={options.batch_size}"
        )
        return await self._execute(numusers, lambda index: self.user_generator.generate(), options)

    async def handle_retry_failures(self, source_log: str, options: LoadOptions) -> int:
        """Handles the 'retry-failures' command: re-provisions the jobs of a failure log.

        The source log is read before the outputs are truncated, so it may be
        the same file as ``options.failure_log``.
        """
        recorder = FailureRecorder(self.file_system, FilePath(source_log))
        try:
            failed_ids: List[JobId] = await recorder.read_failed_ids(FilePath(source_log))
        except FileNotFoundError as e:
            logger.error(f"Cannot read failure log: {e}")
            self.ui.display_error(f"Failure log not found: {source_log}")
            return 1

        if not failed_ids:
            self.ui.display_info(f"No failed jobs listed in {source_log}. Nothing to do.")
            return 0

        self.ui.display_info(f"Re-running {len(failed_ids)} failed jobs from {source_log}")
        return await self._execute(
            len(failed_ids),
            lambda index: self.user_generator.for_email(failed_ids[index]),
            options,
        )

    async def _execute(self, total: int, make_payload: PayloadFactory, options: LoadOptions) -> int:
        try:
            await self.file_system.truncate(FilePath(options.results_file))
            await self.file_system.truncate(FilePath(options.failure_log))

            async with self.api_factory() as api:
                await api.acquire_access_token()
                orchestrator = self.build_orchestrator(api, options)
                self.ui.display_info(f"start loading {total} users")
                summary: RunSummary = await orchestrator.run(total, make_payload)
        except TokenAcquisitionError as e:
            logger.error(f"acquireAccessToken error, cannot continue: {e}")
            self.ui.display_error(f"Could not acquire an access token, cannot continue: {e}")
            return 1
        except DurabilityError as e:
            logger.error(f"Run aborted: {e}", exc_info=True)
            self.ui.display_error(f"Run aborted, output could not be written: {e}")
            return 1

        self.ui.display_summary(summary)
        return 0

    def build_orchestrator(self, api: Auth0ManagementClient, options: LoadOptions) -> ProvisioningOrchestrator:
        """Wires one run's scheduler, retry policy and durable outputs."""
        retry_policy = RetryPolicy(
            classifier=ErrorClassifier(),
            max_retries=options.retry,
            backoff_seconds=options.delay_seconds,
        )
        scheduler = PacedScheduler(
            call=api.create_resource,
            retry_policy=retry_policy,
            max_concurrent=options.concurrent,
            min_delay_seconds=options.delay_seconds,
            event_hook=self.event_hook,
        )
        accumulator = BatchAccumulator(
            file_system=self.file_system,
            results_path=FilePath(options.results_file),
            flush_threshold=options.flush_threshold or options.batch_size,
        )
        failure_recorder = FailureRecorder(self.file_system, FilePath(options.failure_log))
        return ProvisioningOrchestrator(
            scheduler=scheduler,
            accumulator=accumulator,
            failure_recorder=failure_recorder,
            batch_size=options.batch_size,
            status_interval_seconds=options.status_seconds,
            ui=self.ui,
        )
