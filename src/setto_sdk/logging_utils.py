"""Logging utilities for Setto SDK.

Every payment attempt runs under a correlation ID so that the token exchange,
the browser launch, and the eventual callback can be traced as one journey.

The SDK logs under the ``setto_sdk`` logger and never touches the root logger.
Host applications that already configure logging need not call
``setup_logging`` at all.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional, TextIO

SDK_LOGGER_NAME = "setto_sdk"

_FORMATS = {
    "json": (
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"attempt": "%(correlation_id)s", "name": "%(name)s", '
        '"message": "%(message)s"}'
    ),
    "text": "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s",
}

# Correlation ID of the payment attempt being processed in the current context
correlation_id_var: ContextVar[Optional[str]] = ContextVar("setto_correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    """Add the payment-attempt correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Stamp ``record.correlation_id``.

        Args:
            record: The log record to filter.

        Returns:
            Always True to allow the record through.
        """
        record.correlation_id = correlation_id_var.get() or "no-attempt"
        return True


class SettoLogHandler(logging.StreamHandler):
    """Console handler installed by ``setup_logging``.

    Its own type marks it so that a later ``setup_logging`` call swaps it out
    without disturbing handlers the host attached to the SDK logger.
    """

    def __init__(self, stream: Optional[TextIO] = None, log_format: str = "text"):
        super().__init__(stream if stream is not None else sys.stdout)
        if log_format not in _FORMATS:
            raise ValueError(f"Unknown log format: {log_format}")
        self.setFormatter(logging.Formatter(_FORMATS[log_format]))
        self.addFilter(CorrelationIdFilter())


def setup_logging(
    log_level: str = "INFO", log_format: str = "text", stream: Optional[TextIO] = None
) -> SettoLogHandler:
    """Send SDK log records to the console.

    Calling it again replaces the handler from the previous call.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_format: Log format (json or text).
        stream: Where to write; stdout if not given.

    Returns:
        The installed handler.
    """
    logger = logging.getLogger(SDK_LOGGER_NAME)
    logger.setLevel(log_level.upper())

    for existing in logger.handlers[:]:
        if isinstance(existing, SettoLogHandler):
            logger.removeHandler(existing)

    handler = SettoLogHandler(stream, log_format)
    logger.addHandler(handler)
    return handler


def apply_debug_flag(debug: bool) -> None:
    """Turn verbose SDK logging on or off to follow the config's debug flag."""
    logger = logging.getLogger(SDK_LOGGER_NAME)
    if debug:
        logger.setLevel(logging.DEBUG)
    elif logger.level == logging.DEBUG:
        logger.setLevel(logging.NOTSET)


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID of the attempt in progress.

    Returns:
        The current correlation ID or None outside of a payment attempt.
    """
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    """Generate a new payment-attempt correlation ID.

    Returns:
        A UUID-based ID prefixed with ``attempt-``.
    """
    return f"attempt-{uuid.uuid4().hex[:12]}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: The logger name (typically __name__).

    Returns:
        Logger instance under the ``setto_sdk`` hierarchy when called from the SDK.
    """
    return logging.getLogger(name)


class CorrelationIdContext:
    """Context manager binding a correlation ID to a block of code."""

    def __init__(self, correlation_id: Optional[str] = None):
        """Initialize the context manager.

        Args:
            correlation_id: The correlation ID to set. If None, generates a new one.
        """
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token = None

    def __enter__(self) -> str:
        """Bind the correlation ID.

        Returns:
            The correlation ID being used.
        """
        self._token = correlation_id_var.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore whatever ID was bound before ``__enter__``.

        Args:
            exc_type: Exception type if raised.
            exc_val: Exception value if raised.
            exc_tb: Exception traceback if raised.
        """
        correlation_id_var.reset(self._token)
