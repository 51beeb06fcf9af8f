"""Logging setup for processes embedding the event-study library.

Library modules only call ``logging.getLogger(__name__)``; the embedding
process (API handler, batch job, notebook) calls ``configure_logging`` once.

Example:
    >>> from earnings_car.common.logging import configure_logging
    >>> logger = configure_logging(service_name="earnings_car", log_level="INFO")
"""

from __future__ import annotations

import logging
import sys

from earnings_car.common.logging.context import get_analysis_id
from earnings_car.common.logging.formatter import JSONFormatter


class AnalysisIDFilter(logging.Filter):
    """Inject the current analysis ID into every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.analysis_id = get_analysis_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure JSON logging on the root logger.

    Existing root handlers are replaced so repeated calls do not duplicate
    output.

    Args:
        service_name: Name written into every log line
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include the context dict in output

    Returns:
        Configured root logger instance

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        JSONFormatter(service_name=service_name, include_context=include_context)
    )
    handler.addFilter(AnalysisIDFilter())
    root_logger.addHandler(handler)

    return root_logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger by name (typically ``__name__``)."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log ``message`` with ``context_fields`` placed in the JSON ``context`` dict.

    Example:
        >>> log_with_context(logger, "INFO", "segment_added", window="[-1,+5]", car=0.02)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
