"""Price series, subject/benchmark alignment and the Day0 trading calendar."""

from earnings_car.market_data.prices import (
    AlignedSeries,
    PricePoint,
    PriceSeries,
    align_price_series,
    price_series_from_frame,
    price_series_from_pairs,
    price_series_to_frame,
    validate_price_series,
)
from earnings_car.market_data.trading_calendar import (
    Day0Failure,
    Day0Resolution,
    FallbackReason,
    format_date_range,
    is_minimal_nyse_holiday,
    resolve_day0,
    snap_to_trading_day,
    trading_dates_from_prices,
)

__all__ = [
    # Prices
    "PricePoint",
    "PriceSeries",
    "AlignedSeries",
    "align_price_series",
    "price_series_from_frame",
    "price_series_from_pairs",
    "price_series_to_frame",
    "validate_price_series",
    # Trading calendar
    "Day0Resolution",
    "Day0Failure",
    "FallbackReason",
    "resolve_day0",
    "trading_dates_from_prices",
    "format_date_range",
    "snap_to_trading_day",
    "is_minimal_nyse_holiday",
]
