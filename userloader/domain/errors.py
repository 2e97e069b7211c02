"""Exceptions raised across the provisioning pipeline.

Remote failures are raised by API adapters as RemoteApiError and are always
converted into a JobOutcome by the scheduler. DurabilityError and
TokenAcquisitionError are fatal to the run.
"""

from typing import Optional

from userloader.domain.models.common import ErrorCode, error_code_for


class UserLoaderError(Exception):
    """Base exception for all userloader errors."""
    pass


class RemoteApiError(UserLoaderError):
    """A request to the remote API failed.

    ``status_code`` is None when no HTTP response was received
    (connection refused, timeout, ...).
    """

    def __init__(self, status_code: Optional[int], message: str = ""):
        self.status_code = status_code
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"Remote API error ({error_code_for(status_code)}){detail}")

    @property
    def error_code(self) -> ErrorCode:
        return error_code_for(self.status_code)


class TokenAcquisitionError(UserLoaderError):
    """Raised when the management API access token cannot be obtained."""
    pass


class DurabilityError(UserLoaderError):
    """Raised when results or failures cannot be durably written.

    Losing accounting data silently is not acceptable, so this aborts the run.
    """

    def __init__(self, path: str, original_exception: Exception):
        self.path = path
        self.original_exception = original_exception
        super().__init__(f"Failed to durably write to {path}: {original_exception}")


class ConfigurationError(UserLoaderError):
    """Raised when required configuration values are missing."""
    pass


class InvalidTransitionError(UserLoaderError):
    """Raised when a job is moved through an illegal state transition."""

    def __init__(self, job_id: str, current_state: str, target_state: str):
        self.job_id = job_id
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid transition for job {job_id}: {current_state} -> {target_state}"
        )
