"""Price series primitives and subject/benchmark alignment.

A PriceSeries is a tuple of PricePoint strictly increasing by date. The CAR
engine only ever sees an AlignedSeries: subject and benchmark restricted to
their common dates, so index ``i`` refers to the same session on both sides.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

import polars as pl

from earnings_car.common.exceptions import InvalidSeriesError

PriceSeries = tuple["PricePoint", ...]


@dataclass(frozen=True)
class PricePoint:
    """Adjusted close for one trading session."""

    date: date
    adjusted_close: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.adjusted_close) or self.adjusted_close <= 0:
            raise ValueError(
                f"adjusted_close must be finite and > 0, got {self.adjusted_close} "
                f"on {self.date}"
            )


def validate_price_series(points: Iterable[PricePoint]) -> PriceSeries:
    """Return ``points`` as a PriceSeries.

    Raises:
        InvalidSeriesError: If dates are not strictly increasing.
    """
    series = tuple(points)
    for prev, curr in zip(series, series[1:]):
        if curr.date <= prev.date:
            raise InvalidSeriesError(
                f"PriceSeries dates must be strictly increasing: {prev.date} then {curr.date}"
            )
    return series


def price_series_from_pairs(pairs: Iterable[tuple[date, float]]) -> PriceSeries:
    """Build a PriceSeries from (date, adjusted_close) pairs, sorting by date.

    Duplicate dates are rejected rather than silently collapsed.
    """
    points = sorted((PricePoint(d, float(px)) for d, px in pairs), key=lambda p: p.date)
    return validate_price_series(points)


def price_series_from_frame(
    df: pl.DataFrame,
    date_col: str = "date",
    price_col: str = "adj_close",
) -> PriceSeries:
    """Build a PriceSeries from a polars DataFrame.

    Rows with null or non-positive prices are dropped (vendor gaps); the rest
    is sorted by date.

    Raises:
        ValueError: If required columns are missing.
        InvalidSeriesError: If the frame contains duplicate dates.
    """
    missing = {date_col, price_col} - set(df.columns)
    if missing:
        raise ValueError(f"DataFrame missing required columns: {sorted(missing)}")

    date_expr = (
        pl.col(date_col).str.to_date()
        if df.schema[date_col] == pl.String
        else pl.col(date_col).cast(pl.Date)
    )
    clean = (
        df.select(
            date_expr.alias("date"),
            pl.col(price_col).cast(pl.Float64).alias("adj_close"),
        )
        .filter(
            pl.col("date").is_not_null()
            & pl.col("adj_close").is_not_null()
            & pl.col("adj_close").is_not_nan()
            & (pl.col("adj_close") > 0)
        )
        .sort("date")
    )
    return validate_price_series(
        PricePoint(d, px) for d, px in zip(clean["date"].to_list(), clean["adj_close"].to_list())
    )


def price_series_to_frame(series: Sequence[PricePoint]) -> pl.DataFrame:
    """Inverse of ``price_series_from_frame``."""
    return pl.DataFrame(
        {
            "date": [p.date for p in series],
            "adj_close": [p.adjusted_close for p in series],
        },
        schema={"date": pl.Date, "adj_close": pl.Float64},
    )


@dataclass(frozen=True)
class AlignedSeries:
    """Subject and benchmark series sharing exactly the same trading dates."""

    subject: PriceSeries
    benchmark: PriceSeries

    def __post_init__(self) -> None:
        if len(self.subject) != len(self.benchmark):
            raise InvalidSeriesError(
                f"Aligned series length mismatch: subject={len(self.subject)}, "
                f"benchmark={len(self.benchmark)}"
            )
        for i, (s, b) in enumerate(zip(self.subject, self.benchmark)):
            if s.date != b.date:
                raise InvalidSeriesError(
                    f"Aligned series date mismatch at index {i}: {s.date} != {b.date}"
                )
        validate_price_series(self.subject)

    def __len__(self) -> int:
        return len(self.subject)

    @property
    def dates(self) -> list[date]:
        return [p.date for p in self.subject]

    def to_frame(self) -> pl.DataFrame:
        """Return ``{date, subject, benchmark}`` as a polars DataFrame."""
        return pl.DataFrame(
            {
                "date": self.dates,
                "subject": [p.adjusted_close for p in self.subject],
                "benchmark": [p.adjusted_close for p in self.benchmark],
            },
            schema={"date": pl.Date, "subject": pl.Float64, "benchmark": pl.Float64},
        )


def align_price_series(
    subject: Sequence[PricePoint],
    benchmark: Sequence[PricePoint],
) -> AlignedSeries:
    """Restrict subject and benchmark to their common dates (inner join on date).

    Example:
        >>> aligned = align_price_series(subject, spy)
        >>> len(aligned.subject) == len(aligned.benchmark)
        True
    """
    subject_df = price_series_to_frame(validate_price_series(subject))
    bench_df = price_series_to_frame(validate_price_series(benchmark))

    joined = subject_df.join(
        bench_df.rename({"adj_close": "bench_close"}),
        on="date",
        how="inner",
    ).sort("date")

    dates = joined["date"].to_list()
    return AlignedSeries(
        subject=tuple(PricePoint(d, px) for d, px in zip(dates, joined["adj_close"].to_list())),
        benchmark=tuple(
            PricePoint(d, px) for d, px in zip(dates, joined["bench_close"].to_list())
        ),
    )


__all__ = [
    "PricePoint",
    "PriceSeries",
    "AlignedSeries",
    "validate_price_series",
    "price_series_from_pairs",
    "price_series_from_frame",
    "price_series_to_frame",
    "align_price_series",
]
