"""Domain models for provisioning jobs and their outcomes.

A Job moves through PENDING -> DISPATCHED -> {SUCCEEDED | FAILED}; a retry
moves it from DISPATCHED back to PENDING. SUCCEEDED and FAILED are absorbing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from userloader.domain.errors import InvalidTransitionError
from userloader.domain.models.common import ErrorCode, JobId


class JobState(str, Enum):
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class FailureReason(str, Enum):
    """Why a job ended in terminal failure."""
    TERMINAL_ERROR = "TERMINAL_ERROR"        # non-retryable error
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"  # retryable, but budget spent


_ALLOWED_TRANSITIONS = {
    JobState.PENDING: {JobState.DISPATCHED},
    JobState.DISPATCHED: {JobState.PENDING, JobState.SUCCEEDED, JobState.FAILED},
    JobState.SUCCEEDED: set(),
    JobState.FAILED: set(),
}


@dataclass
class Job:
    """One unit of provisioning work."""

    job_id: JobId
    payload: Any
    retry_count: int = 0
    attempts: int = 0
    state: JobState = JobState.PENDING

    def _transition(self, target: JobState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.job_id, self.state.value, target.value)
        self.state = target

    def mark_dispatched(self) -> None:
        self._transition(JobState.DISPATCHED)
        self.attempts += 1

    def mark_succeeded(self) -> None:
        self._transition(JobState.SUCCEEDED)

    def mark_failed(self) -> None:
        self._transition(JobState.FAILED)

    def requeue(self) -> None:
        """Sends a dispatched job back for another attempt."""
        self._transition(JobState.PENDING)
        self.retry_count += 1

    def is_terminal(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED)


@dataclass(frozen=True)
class Success:
    job_id: JobId
    result: Dict[str, Any]
    attempts: int = 1


@dataclass(frozen=True)
class Failure:
    job_id: JobId
    error_code: ErrorCode
    retryable: bool
    attempts: int = 1
    reason: FailureReason = FailureReason.TERMINAL_ERROR


JobOutcome = Union[Success, Failure]


@dataclass
class RunCounters:
    """Running totals, mutated only by the orchestrator."""
    submitted: int = 0
    success_count: int = 0
    failure_count: int = 0

    @property
    def completed(self) -> int:
        return self.success_count + self.failure_count

    @property
    def in_progress(self) -> int:
        return self.submitted - self.completed


@dataclass(frozen=True)
class RunSummary:
    """Final report of a provisioning run."""
    total: int
    success_count: int
    failure_count: int
    batches: int
    flushes: int
    elapsed_seconds: float
    results_file: Optional[str] = None
    failure_log: Optional[str] = None

    @property
    def accounted(self) -> bool:
        return self.success_count + self.failure_count == self.total
