"""Common utilities and exceptions."""

from earnings_car.common.exceptions import (
    ConfigurationError,
    DataProviderError,
    EventStudyError,
    InvalidSeriesError,
    WindowUnsatisfiableError,
)

__all__ = [
    "EventStudyError",
    "InvalidSeriesError",
    "WindowUnsatisfiableError",
    "ConfigurationError",
    "DataProviderError",
]
