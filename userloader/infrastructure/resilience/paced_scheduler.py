"""Rate-limited scheduler for remote API calls.

Admits jobs under two shared limits:

- a concurrency ceiling (``max_concurrent`` requests in flight), and
- a pacing gate (at least ``min_delay_seconds`` between the *starts* of any
  two dispatches).

Dispatch starts happen in FIFO order: waiting jobs queue on a turnstile lock,
and only the job holding the turnstile waits for a free slot and the pacing
gate. Completions are unordered. Failed attempts go through the RetryPolicy;
a retried job sleeps its backoff without holding a slot and then queues again
at the back of the turnstile.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from userloader.domain.errors import InvalidTransitionError, RemoteApiError
from userloader.domain.events.dispatch_events import (
    DispatchStarted, DomainEvent, EventHook, JobFailed, JobSucceeded, RetryScheduled,
)
from userloader.domain.models.common import ErrorCode
from userloader.domain.models.job import Failure, FailureReason, Job, JobOutcome, JobState, Success
from userloader.infrastructure.resilience.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 5
DEFAULT_MIN_DELAY_SECONDS = 0.333

RemoteCall = Callable[[Any], Awaitable[Dict[str, Any]]]


class PacedScheduler:
    """Runs remote calls under a concurrency ceiling and a dispatch pacing gate."""

    def __init__(
        self,
        call: RemoteCall,
        retry_policy: RetryPolicy,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        min_delay_seconds: float = DEFAULT_MIN_DELAY_SECONDS,
        event_hook: Optional[EventHook] = None,
    ):
        """Initializes the scheduler.

        Args:
            call: Coroutine function issuing the remote request for a payload.
                Raises RemoteApiError on failure.
            retry_policy: Decides whether a failed attempt is retried.
            max_concurrent: Maximum number of requests in flight.
            min_delay_seconds: Minimum time between two dispatch starts.
            event_hook: Optional observer for dispatch/retry/outcome events.
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1.")
        if min_delay_seconds < 0:
            raise ValueError("min_delay_seconds must not be negative.")
        self._call = call
        self.retry_policy = retry_policy
        self.max_concurrent = max_concurrent
        self.min_delay_seconds = min_delay_seconds
        self.event_hook = event_hook

        self._slots = asyncio.Semaphore(max_concurrent)
        self._turnstile = asyncio.Lock()
        self._last_dispatch: Optional[float] = None
        self.in_flight = 0
        self.max_in_flight_observed = 0
        self.dispatch_count = 0

        logger.info(
            f"PacedScheduler initialized: max_concurrent={max_concurrent}, "
            f"min_delay={min_delay_seconds:.3f}s, max_retries={retry_policy.max_retries}"
        )

    # --- Admission ---

    async def _wait_for_pacing_gate(self) -> None:
        """Waits until ``min_delay_seconds`` have passed since the last dispatch start."""
        loop = asyncio.get_running_loop()
        while self._last_dispatch is not None:
            wait_time = self._last_dispatch + self.min_delay_seconds - loop.time()
            if wait_time <= 0:
                break
            logger.debug(f"Pacing gate closed. Waiting for {wait_time:.3f} seconds.")
            await asyncio.sleep(wait_time)
            # Loop again to re-check after waking up

    async def _admit(self) -> float:
        """Takes a concurrency slot and passes the pacing gate, in FIFO order.

        Returns:
            The loop time at which the dispatch starts.
        """
        async with self._turnstile:
            await self._slots.acquire()
            try:
                await self._wait_for_pacing_gate()
            except asyncio.CancelledError:
                self._slots.release()
                raise
            dispatched_at = asyncio.get_running_loop().time()
            self._last_dispatch = dispatched_at
            self.in_flight += 1
            self.dispatch_count += 1
            self.max_in_flight_observed = max(self.max_in_flight_observed, self.in_flight)
            return dispatched_at

    def _release(self) -> None:
        self.in_flight -= 1
        self._slots.release()

    # --- Events ---

    def _emit(self, event: DomainEvent) -> None:
        if self.event_hook is None:
            return
        try:
            self.event_hook(event)
        except Exception as e:
            logger.warning(f"Event hook raised for {type(event).__name__}: {e}", exc_info=True)

    # --- Scheduling ---

    async def schedule(self, job: Job) -> JobOutcome:
        """Runs ``job`` to a terminal outcome, retrying per the RetryPolicy.

        Remote errors never escape; they resolve to a Failure outcome.
        """
        if job.state is not JobState.PENDING:
            raise InvalidTransitionError(job.job_id, job.state.value, JobState.DISPATCHED.value)
        while True:
            dispatched_at = await self._admit()
            job.mark_dispatched()
            self._emit(DispatchStarted(
                job_id=job.job_id,
                attempt_number=job.attempts,
                dispatched_at=dispatched_at,
                in_flight=self.in_flight,
            ))

            status_code: Optional[int] = None
            error_code: ErrorCode
            error_message: Optional[str] = None
            unexpected = False
            start_time = time.perf_counter()
            try:
                result = await self._call(job.payload)
            except RemoteApiError as e:
                status_code = e.status_code
                error_code = e.error_code
                error_message = str(e)
            except Exception as e:
                logger.error(f"[{job.job_id}] unexpected error on attempt {job.attempts}: {e}", exc_info=True)
                error_code = ErrorCode(type(e).__name__)
                error_message = str(e)
                unexpected = True
            else:
                latency_ms = (time.perf_counter() - start_time) * 1000
                job.mark_succeeded()
                self._emit(JobSucceeded(job_id=job.job_id, attempts=job.attempts, latency_ms=latency_ms))
                return Success(job_id=job.job_id, result=result or {}, attempts=job.attempts)
            finally:
                self._release()

            if unexpected:
                job.mark_failed()
                return self._terminal(job, error_code, False, FailureReason.TERMINAL_ERROR, error_message)

            decision = self.retry_policy.decide(job, status_code)
            if not decision.retry:
                job.mark_failed()
                if decision.reason is FailureReason.RETRIES_EXHAUSTED:
                    logger.error(f"[{job.job_id}] failed - in spite of {job.retry_count} retries ({error_code})")
                else:
                    logger.error(f"[{job.job_id}] failed - will NOT be retried, error is {error_code}")
                return self._terminal(job, error_code, decision.retryable, decision.reason, error_message)

            job.requeue()
            logger.warning(
                f"[{job.job_id}] failed with {error_code} on attempt {job.attempts} - "
                f"retry {job.retry_count}/{self.retry_policy.max_retries} in {decision.delay_seconds:.3f}s"
            )
            self._emit(RetryScheduled(
                job_id=job.job_id,
                attempt_number=job.attempts,
                delay_seconds=decision.delay_seconds,
                error_code=error_code,
            ))
            if decision.delay_seconds > 0:
                await asyncio.sleep(decision.delay_seconds)

    def _terminal(
        self,
        job: Job,
        error_code: ErrorCode,
        retryable: bool,
        reason: FailureReason,
        error_message: Optional[str],
    ) -> Failure:
        self._emit(JobFailed(
            job_id=job.job_id,
            attempts=job.attempts,
            error_code=error_code,
            reason=reason.value,
            error_message=error_message,
        ))
        return Failure(
            job_id=job.job_id,
            error_code=error_code,
            retryable=retryable,
            attempts=job.attempts,
            reason=reason,
        )
