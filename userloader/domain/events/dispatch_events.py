"""Domain Events emitted by the scheduler for diagnostics.

Events describe dispatch attempts, scheduled retries and terminal outcomes.
They are observational only; nothing in the scheduler reacts to them.
"""

from dataclasses import dataclass, field
import time
from typing import Callable, Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific Scheduler Events ---

@dataclass
class DispatchStarted(DomainEvent):
    """Event triggered right before the remote call for a job is issued."""
    job_id: str
    attempt_number: int
    dispatched_at: float # event loop clock, seconds
    in_flight: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a failed attempt will be retried."""
    job_id: str
    attempt_number: int
    delay_seconds: float
    error_code: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class JobSucceeded(DomainEvent):
    """Event triggered when a job reaches SUCCEEDED."""
    job_id: str
    attempts: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class JobFailed(DomainEvent):
    """Event triggered when a job reaches terminal FAILED."""
    job_id: str
    attempts: int
    error_code: str
    reason: str
    error_message: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


EventHook = Callable[[DomainEvent], None]
