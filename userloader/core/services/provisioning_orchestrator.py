"""Provisioning Orchestrator: drives a bulk provisioning run.

Partitions the workload into batches, submits every job of a batch to the
PacedScheduler concurrently, and waits for the whole batch before starting
the next one. Outcomes are routed as they arrive: successes go to the
BatchAccumulator, terminal failures to the FailureRecorder. The accumulator
is flushed at its size threshold, at every batch boundary and once more at
the end of the run.
"""

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional

from userloader.domain.interfaces.user_interface import UserInterface
from userloader.domain.models.common import JobId, ProvisionedUser
from userloader.domain.models.job import Job, JobOutcome, RunCounters, RunSummary, Success
from userloader.infrastructure.persistence.batch_accumulator import BatchAccumulator
from userloader.infrastructure.persistence.failure_recorder import FailureRecorder
from userloader.infrastructure.resilience.paced_scheduler import PacedScheduler

logger = logging.getLogger(__name__)

DEFAULT_STATUS_INTERVAL_SECONDS = 60.0

PayloadFactory = Callable[[int], Any]


def partition(total: int, batch_size: int) -> List[int]:
    """Splits ``total`` jobs into batch sizes: floor(N/B) full batches plus the remainder."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1.")
    if total < 0:
        raise ValueError("total must not be negative.")
    full_batches, remainder = divmod(total, batch_size)
    sizes = [batch_size] * full_batches
    if remainder:
        sizes.append(remainder)
    return sizes


def default_job_id(payload: Any) -> JobId:
    """Jobs are keyed by the email of the user they create."""
    return JobId(payload.email)


class ProvisioningOrchestrator:
    """Runs the batched, rate-limited provisioning pipeline."""

    def __init__(
        self,
        scheduler: PacedScheduler,
        accumulator: BatchAccumulator,
        failure_recorder: FailureRecorder,
        batch_size: int,
        status_interval_seconds: float = DEFAULT_STATUS_INTERVAL_SECONDS,
        ui: Optional[UserInterface] = None,
        job_id_of: Callable[[Any], JobId] = default_job_id,
    ):
        """Initializes the orchestrator.

        Args:
            scheduler: Dispatches jobs under the concurrency/pacing limits.
            accumulator: Collects and flushes success results.
            failure_recorder: Durable log of terminal failures.
            batch_size: Jobs per batch (the barrier granularity).
            status_interval_seconds: Period of the progress report; 0 disables it.
            ui: Optional user interface for progress output.
            job_id_of: Derives a job's stable id from its payload.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        self.scheduler = scheduler
        self.accumulator = accumulator
        self.failure_recorder = failure_recorder
        self.batch_size = batch_size
        self.status_interval_seconds = status_interval_seconds
        self.ui = ui
        self.job_id_of = job_id_of
        self.counters = RunCounters()

    async def run(self, total: int, make_payload: PayloadFactory) -> RunSummary:
        """Provisions ``total`` jobs, building payload ``i`` with ``make_payload(i)``.

        Raises:
            DurabilityError: If results or failures could not be written. The
                run is aborted; already flushed batches stay intact.
        """
        self.counters = RunCounters()
        batch_sizes = partition(total, self.batch_size)
        start = time.monotonic()
        logger.info(f"start loading: {total} jobs in {len(batch_sizes)} batches of up to {self.batch_size}")

        reporter: Optional[asyncio.Task] = None
        if self.status_interval_seconds > 0:
            reporter = asyncio.create_task(self._report_periodically())
        try:
            index = 0
            for batch_number, size in enumerate(batch_sizes, start=1):
                jobs = [self._make_job(make_payload(index + offset)) for offset in range(size)]
                index += size
                await self._run_batch(jobs)
                await self.accumulator.flush()
                logger.info(
                    f"batch {batch_number}/{len(batch_sizes)} done - "
                    f"success so far: {self.counters.success_count}, "
                    f"failure so far: {self.counters.failure_count}"
                )
            await self.accumulator.flush()
        finally:
            if reporter is not None:
                reporter.cancel()
                await asyncio.gather(reporter, return_exceptions=True)

        summary = RunSummary(
            total=total,
            success_count=self.counters.success_count,
            failure_count=self.counters.failure_count,
            batches=len(batch_sizes),
            flushes=self.accumulator.flush_count,
            elapsed_seconds=time.monotonic() - start,
            results_file=str(self.accumulator.results_path),
            failure_log=str(self.failure_recorder.failure_log_path),
        )
        logger.info('*****************************')
        logger.info(f"final success: {summary.success_count} final failure: {summary.failure_count}")
        logger.info('*****************************')
        if not summary.accounted:
            logger.error(
                f"Accounting mismatch: {summary.success_count} + {summary.failure_count} != {total}"
            )
        return summary

    def _make_job(self, payload: Any) -> Job:
        self.counters.submitted += 1
        return Job(job_id=self.job_id_of(payload), payload=payload)

    async def _run_batch(self, jobs: List[Job]) -> None:
        """Runs all jobs of a batch concurrently and waits for every one of them."""
        tasks = [asyncio.create_task(self._process(job)) for job in jobs]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _process(self, job: Job) -> None:
        outcome = await self.scheduler.schedule(job)
        await self._route(job, outcome)

    async def _route(self, job: Job, outcome: JobOutcome) -> None:
        if isinstance(outcome, Success):
            record: ProvisionedUser = {
                "user_id": outcome.result.get("user_id"),
                "username": job.job_id,
            }
            self.accumulator.add(record)
            self.counters.success_count += 1
            if self.accumulator.is_full:
                await self.accumulator.flush()
        else:
            await self.failure_recorder.record(outcome.job_id, outcome.error_code)
            self.counters.failure_count += 1

    def report_status(self) -> None:
        logger.info(
            f"success so far: {self.counters.success_count} "
            f"failure so far: {self.counters.failure_count}"
        )
        if self.ui is not None:
            self.ui.display_status(self.counters)

    async def _report_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.status_interval_seconds)
            self.report_status()
