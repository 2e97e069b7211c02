import pytest

from userloader.domain.models.common import JobId
from userloader.domain.models.job import FailureReason, Job
from userloader.infrastructure.resilience.error_classifier import ErrorClass, ErrorClassifier
from userloader.infrastructure.resilience.retry_policy import RetryPolicy


@pytest.fixture
def classifier():
    return ErrorClassifier()


@pytest.mark.parametrize("status_code", [429])
def test_rate_limit_is_retryable(classifier: ErrorClassifier, status_code):
    assert classifier.classify(status_code) is ErrorClass.RETRYABLE
    assert classifier.is_retryable(status_code)


@pytest.mark.parametrize("status_code", [400, 401, 403, 409, 500, 502, 503, None])
def test_everything_else_is_terminal(classifier: ErrorClassifier, status_code):
    assert classifier.classify(status_code) is ErrorClass.TERMINAL
    assert not classifier.is_retryable(status_code)


def test_custom_retryable_statuses():
    classifier = ErrorClassifier(retryable_statuses=frozenset({429, 503}))
    assert classifier.is_retryable(503)
    assert not classifier.is_retryable(500)


def _job_with_retries(retry_count: int) -> Job:
    return Job(job_id=JobId("a@example.com"), payload=None, retry_count=retry_count)


def test_retry_while_budget_remains(classifier: ErrorClassifier):
    policy = RetryPolicy(classifier, max_retries=2, backoff_seconds=0.333)

    for retry_count in (0, 1):
        decision = policy.decide(_job_with_retries(retry_count), 429)
        assert decision.retry is True
        assert decision.delay_seconds == pytest.approx(0.333)
        assert decision.retryable is True


def test_backoff_is_fixed(classifier: ErrorClassifier):
    """Every retry waits the same delay, regardless of how many came before."""
    policy = RetryPolicy(classifier, max_retries=5, backoff_seconds=0.5)
    delays = {policy.decide(_job_with_retries(n), 429).delay_seconds for n in range(5)}
    assert delays == {0.5}


def test_budget_exhausted(classifier: ErrorClassifier):
    policy = RetryPolicy(classifier, max_retries=2, backoff_seconds=0.333)

    decision = policy.decide(_job_with_retries(2), 429)

    assert decision.retry is False
    assert decision.retryable is True
    assert decision.reason is FailureReason.RETRIES_EXHAUSTED


def test_zero_retries_fails_first_429(classifier: ErrorClassifier):
    policy = RetryPolicy(classifier, max_retries=0)
    decision = policy.decide(_job_with_retries(0), 429)
    assert decision.retry is False
    assert decision.reason is FailureReason.RETRIES_EXHAUSTED


@pytest.mark.parametrize("status_code", [400, 500, None])
def test_terminal_error_never_retried(classifier: ErrorClassifier, status_code):
    policy = RetryPolicy(classifier, max_retries=5)

    decision = policy.decide(_job_with_retries(0), status_code)

    assert decision.retry is False
    assert decision.retryable is False
    assert decision.reason is FailureReason.TERMINAL_ERROR


def test_decide_does_not_mutate_job(classifier: ErrorClassifier):
    policy = RetryPolicy(classifier, max_retries=2)
    job = _job_with_retries(1)
    policy.decide(job, 429)
    assert job.retry_count == 1


def test_negative_max_retries_rejected(classifier: ErrorClassifier):
    with pytest.raises(ValueError):
        RetryPolicy(classifier, max_retries=-1)
