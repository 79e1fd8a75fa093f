"""Correlation ID logging context for tracing booking attempts.

Provides an attempt_id-aware logger that attaches a correlation ID to every
log message, so one client's path from quote to commit can be followed
through the engine and the booking collaborator.

Usage:
    from pawbook.logging_context import get_attempt_logger, set_attempt_id

    set_attempt_id("ATT-abc123")
    logger = get_attempt_logger(__name__)
    logger.info("Committing booking")  # record.attempt_id == "ATT-abc123"
"""

import logging
import uuid
from contextvars import ContextVar

_attempt_id: ContextVar[str] = ContextVar("attempt_id", default="NO_ATTEMPT_ID")


def set_attempt_id(attempt_id: str) -> None:
    """Set the correlation ID for the current context."""
    _attempt_id.set(attempt_id)


def get_attempt_id() -> str:
    """Retrieve the current correlation ID."""
    return _attempt_id.get()


def new_attempt_id() -> str:
    """Generate and install a fresh correlation ID."""
    attempt_id = f"ATT-{uuid.uuid4().hex[:8]}"
    _attempt_id.set(attempt_id)
    return attempt_id


class AttemptIdFilter(logging.Filter):
    """Injects attempt_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.attempt_id = _attempt_id.get()  # type: ignore[attr-defined]
        return True


def get_attempt_logger(name: str) -> logging.Logger:
    """Return a logger with the AttemptIdFilter attached.

    The filter adds ``attempt_id`` to each record so formatters can
    include ``%(attempt_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, AttemptIdFilter) for f in logger.filters):
        logger.addFilter(AttemptIdFilter())
    return logger
