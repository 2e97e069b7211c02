"""Retry policy for failed dispatch attempts.

Decides, per failed job, whether it goes back to PENDING and after what
delay. Backoff is fixed (not exponential) at the scheduler's minimum dispatch
delay, matching the remote API's fixed rate-limit window.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from userloader.domain.models.job import FailureReason, Job
from userloader.infrastructure.resilience.error_classifier import ErrorClassifier

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2


@dataclass(frozen=True)
class RetryDecision:
    """Result of evaluating a failed attempt.

    ``retry`` True means: requeue after ``delay_seconds``.
    Otherwise the job is terminal and ``reason`` says why.
    """
    retry: bool
    delay_seconds: float = 0.0
    retryable: bool = False
    reason: Optional[FailureReason] = None


class RetryPolicy:
    """Fixed-backoff retry policy bounded by ``max_retries``."""

    def __init__(
        self,
        classifier: ErrorClassifier,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = 0.0,
    ):
        """Initializes the RetryPolicy.

        Args:
            classifier: Decides which status codes may be retried.
            max_retries: Retries allowed per job after the first attempt.
            backoff_seconds: Fixed delay before a retry is re-enqueued
                (the scheduler's minimum dispatch delay).
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative.")
        self.classifier = classifier
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    def decide(self, job: Job, status_code: Optional[int]) -> RetryDecision:
        """Evaluates a failed attempt of ``job`` without mutating it."""
        retryable = self.classifier.is_retryable(status_code)
        if not retryable:
            return RetryDecision(retry=False, retryable=False, reason=FailureReason.TERMINAL_ERROR)
        if job.retry_count < self.max_retries:
            return RetryDecision(retry=True, delay_seconds=self.backoff_seconds, retryable=True)
        logger.debug(f"[{job.job_id}] retry budget of {self.max_retries} spent")
        return RetryDecision(retry=False, retryable=True, reason=FailureReason.RETRIES_EXHAUSTED)
