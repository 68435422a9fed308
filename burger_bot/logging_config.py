"""
Logging configuration for the burger bot application.

Every record carries the id of the HTTP request it was logged under
(set by RequestIDMiddleware, "-" for background threads and startup), so
one inbound WhatsApp message can be followed from webhook to backend call.

Usage:
    from burger_bot.logging_config import setup_logging
    setup_logging()  # Call once at application startup

Environment variables:
    LOG_LEVEL: Set to DEBUG, INFO, WARNING, ERROR, or CRITICAL (default: INFO)
"""
import logging
import os
import sys
from contextvars import ContextVar

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
NO_REQUEST_ID = "-"

_current_request_id: ContextVar[str] = ContextVar("current_request_id", default=NO_REQUEST_ID)


def set_request_id(request_id: str) -> None:
    """Set the request id for log records in this context."""
    _current_request_id.set(request_id)


def clear_request_id() -> None:
    _current_request_id.set(NO_REQUEST_ID)


def get_request_id() -> str:
    return _current_request_id.get()


class RequestIDFilter(logging.Filter):
    """Stamp each record with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def setup_logging(level: str = None) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If not provided, reads from LOG_LEVEL env var, defaults to INFO.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level = "INFO"
    numeric_level = getattr(logging, level)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    # Records from any logger reach the root handlers, so stamp them there
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIDFilter) for f in handler.filters):
            handler.addFilter(RequestIDFilter())

    logging.getLogger("burger_bot").setLevel(numeric_level)

    # Twilio logs full request bodies (customer phone numbers) at INFO
    if level != "DEBUG":
        for name in ("twilio", "twilio.http_client", "urllib3"):
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at %s level", level)
