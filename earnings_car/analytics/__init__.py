"""Event-study analytics: CAR engine, segment labels and report assembly."""

from earnings_car.analytics.car import (
    CARResult,
    CARWindow,
    MarketModelFit,
    compute_car,
    compute_market_model_car,
    estimate_market_model,
)
from earnings_car.analytics.labels import (
    build_label_with_window,
    build_segment_label,
    format_percent,
    ranges_overlap,
)
from earnings_car.analytics.report import (
    EventSegment,
    EventStudyInputs,
    EventStudyReport,
    run_event_study,
)

__all__ = [
    # CAR
    "CARWindow",
    "CARResult",
    "MarketModelFit",
    "compute_car",
    "compute_market_model_car",
    "estimate_market_model",
    # Labels
    "format_percent",
    "build_segment_label",
    "build_label_with_window",
    "ranges_overlap",
    # Report
    "EventStudyInputs",
    "EventSegment",
    "EventStudyReport",
    "run_event_study",
]
