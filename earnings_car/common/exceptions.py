"""
Exception hierarchy for the earnings event-study library.

Per-breakpoint and per-window failures are local: callers catch the narrow
types below, skip the affected entry and keep computing the others.
"""

from __future__ import annotations


class EventStudyError(Exception):
    """
    Base exception for all earnings event-study errors.

    Example:
        >>> try:
        ...     report = run_event_study(inputs)
        ... except EventStudyError as e:
        ...     logger.error(f"Event study failed: {e}")
    """

    pass


class InvalidSeriesError(EventStudyError, ValueError):
    """
    Raised when a price series or aligned pair violates its ordering invariants.

    A PriceSeries must be strictly increasing by date. An AlignedSeries must
    hold two series of equal length with identical dates at every index.
    """

    pass


class WindowUnsatisfiableError(EventStudyError):
    """
    Raised when a CAR window cannot cover any trading day, even after clamping.

    Attributes:
        window_label: Label of the requested window (e.g. "[-1,+5]").
        start_index: Start index after clamping.
        end_index: End index after clamping.

    Example:
        >>> try:
        ...     result = compute_car(aligned, day0, window)
        ... except WindowUnsatisfiableError:
        ...     continue  # skip this window, keep the others
    """

    def __init__(self, window_label: str, start_index: int, end_index: int) -> None:
        self.window_label = window_label
        self.start_index = start_index
        self.end_index = end_index
        super().__init__(
            f"Window {window_label} unsatisfiable: start_index={start_index}, "
            f"end_index={end_index}"
        )


class ConfigurationError(EventStudyError):
    """Raised when settings or options are inconsistent."""

    pass


class DataProviderError(EventStudyError):
    """
    Raised when an external collaborator fails to deliver required data.

    Attributes:
        provider_name: Name of the provider that failed.
    """

    def __init__(self, provider_name: str, message: str = "") -> None:
        self.provider_name = provider_name
        super().__init__(message or f"Provider '{provider_name}' failed")


__all__ = [
    "EventStudyError",
    "InvalidSeriesError",
    "WindowUnsatisfiableError",
    "ConfigurationError",
    "DataProviderError",
]
