"""Interface for reporting to the user.

Defines the contract for displaying information, errors, warnings, run
progress and the final summary, allowing different UI implementations.
"""

import abc
from typing import Any

from userloader.domain.models.job import RunCounters, RunSummary

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_status(self, counters: RunCounters) -> None:
        """Displays the running success/failure counters.

        Args:
            counters: Snapshot of the current run counters.
        """
        pass

    @abc.abstractmethod
    def display_summary(self, summary: RunSummary) -> None:
        """Displays the final totals of a run.

        Args:
            summary: The completed run summary.
        """
        pass
