"""Diagnostic sink for scheduler events."""

import logging

from userloader.domain.events.dispatch_events import DomainEvent

logger = logging.getLogger(__name__)


def log_event(event: DomainEvent) -> None:
    """Event hook that writes every scheduler event to the debug log."""
    logger.debug(f"EVENT: {event}")
