"""Earnings event-study core.

Reconciles earnings data from several providers, normalizes EPS, detects
significant earnings events and measures the cumulative abnormal return (CAR)
of a stock against a benchmark around each event.

Example:
    >>> from earnings_car import EventStudyInputs, run_event_study
    >>> report = run_event_study(EventStudyInputs(ticker="NVDA", subject=px, benchmark=spy,
    ...                                           primary_earnings=records))
    >>> report.to_frame()
"""

from earnings_car.analytics import (
    CARResult,
    CARWindow,
    EventSegment,
    EventStudyInputs,
    EventStudyReport,
    MarketModelFit,
    compute_car,
    compute_market_model_car,
    run_event_study,
)
from earnings_car.common.exceptions import (
    ConfigurationError,
    DataProviderError,
    EventStudyError,
    InvalidSeriesError,
    WindowUnsatisfiableError,
)
from earnings_car.config import EventStudySettings, get_settings
from earnings_car.earnings import (
    Breakpoint,
    EarningsRecord,
    EpsFact,
    EpsFactSources,
    SplitEvent,
    Timing,
    detect_breakpoints,
    normalize_eps,
    reconcile_earnings,
)
from earnings_car.market_data import (
    AlignedSeries,
    Day0Resolution,
    PricePoint,
    align_price_series,
    resolve_day0,
)

__version__ = "0.1.0"

__all__ = [
    # Data model
    "PricePoint",
    "AlignedSeries",
    "Timing",
    "EarningsRecord",
    "SplitEvent",
    "EpsFact",
    "EpsFactSources",
    "Breakpoint",
    "Day0Resolution",
    "CARWindow",
    "CARResult",
    "MarketModelFit",
    # Operations
    "align_price_series",
    "resolve_day0",
    "reconcile_earnings",
    "normalize_eps",
    "detect_breakpoints",
    "compute_car",
    "compute_market_model_car",
    "run_event_study",
    "EventStudyInputs",
    "EventSegment",
    "EventStudyReport",
    # Configuration
    "EventStudySettings",
    "get_settings",
    # Exceptions
    "EventStudyError",
    "InvalidSeriesError",
    "WindowUnsatisfiableError",
    "ConfigurationError",
    "DataProviderError",
]
