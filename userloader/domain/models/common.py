"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like job identifiers, error codes and
output paths, plus the user record that is provisioned remotely.
"""

from dataclasses import dataclass
from typing import NewType, TypedDict, Optional

# === Core Value Objects ===

JobId = NewType("JobId", str)            # Stable key for a job (the target email)
ErrorCode = NewType("ErrorCode", str)    # "429", "500", "network", ...
FilePath = NewType("FilePath", str)      # Path to an output file

NETWORK_ERROR_CODE = ErrorCode("network")


def error_code_for(status_code: Optional[int]) -> ErrorCode:
    """Renders an HTTP status (or its absence) as a failure-log error code."""
    if status_code is None:
        return NETWORK_ERROR_CODE
    return ErrorCode(str(status_code))


# === Provisioning Context ===

@dataclass(frozen=True)
class UserRecord:
    """A user account to be created on the remote API."""
    email: str
    password: str
    fullname: str
    nickname: str


class ProvisionedUser(TypedDict):
    """One entry of the results file."""
    user_id: Optional[str]
    username: str
