"""Structured JSON logging with analysis ID correlation.

Usage:
    from earnings_car.common.logging import configure_logging, AnalysisContext
    configure_logging(service_name="earnings_car", log_level="INFO")

    with AnalysisContext():
        report = run_event_study(inputs)
"""

from earnings_car.common.logging.config import (
    AnalysisIDFilter,
    configure_logging,
    get_logger,
    log_with_context,
)
from earnings_car.common.logging.context import (
    AnalysisContext,
    clear_analysis_id,
    generate_analysis_id,
    get_analysis_id,
    set_analysis_id,
)
from earnings_car.common.logging.formatter import JSONFormatter

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "log_with_context",
    "AnalysisIDFilter",
    # Analysis ID management
    "AnalysisContext",
    "generate_analysis_id",
    "get_analysis_id",
    "set_analysis_id",
    "clear_analysis_id",
    # Formatter
    "JSONFormatter",
]
