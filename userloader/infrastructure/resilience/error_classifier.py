"""Classifies failed remote calls as retryable or terminal.

The remote API only supports one recoverable condition: HTTP 429. Every other
failure (other 4xx, 5xx, network errors) is assumed not to change when the
identical request is sent again.
"""

from enum import Enum
from typing import Optional

RATE_LIMITED_STATUS = 429


class ErrorClass(str, Enum):
    RETRYABLE = "RETRYABLE"
    TERMINAL = "TERMINAL"


class ErrorClassifier:
    """Maps an HTTP status code (None for network errors) to an ErrorClass."""

    def __init__(self, retryable_statuses: frozenset = frozenset({RATE_LIMITED_STATUS})):
        self.retryable_statuses = retryable_statuses

    def classify(self, status_code: Optional[int]) -> ErrorClass:
        if status_code is not None and status_code in self.retryable_statuses:
            return ErrorClass.RETRYABLE
        return ErrorClass.TERMINAL

    def is_retryable(self, status_code: Optional[int]) -> bool:
        return self.classify(status_code) is ErrorClass.RETRYABLE
