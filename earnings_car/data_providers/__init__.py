"""Boundary between external data sources and the event-study core."""

from earnings_car.data_providers.loader import load_event_study_inputs
from earnings_car.data_providers.protocols import (
    EarningsProvider,
    EpsFactFeed,
    PriceProvider,
    SplitFeed,
)
from earnings_car.data_providers.timing_text import infer_timing_from_text

__all__ = [
    "PriceProvider",
    "EarningsProvider",
    "SplitFeed",
    "EpsFactFeed",
    "load_event_study_inputs",
    "infer_timing_from_text",
]
