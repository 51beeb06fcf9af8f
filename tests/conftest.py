"""
Root conftest for tests.

Provides synthetic trading calendars and price series shared by the
market-data, analytics and report tests, and isolates the cached settings.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from datetime import date, timedelta

import numpy as np
import pytest

from earnings_car.config import get_settings
from earnings_car.market_data.prices import AlignedSeries, PricePoint


def _weekdays(start: date, n: int) -> list[date]:
    days: list[date] = []
    d = start
    while len(days) < n:
        if d.weekday() < 5:
            days.append(d)
        d += timedelta(days=1)
    return days


def _aligned(
    subject: Sequence[float],
    benchmark: Sequence[float],
    start: date = date(2022, 1, 3),
) -> AlignedSeries:
    dates = _weekdays(start, len(subject))
    return AlignedSeries(
        subject=tuple(PricePoint(d, float(px)) for d, px in zip(dates, subject)),
        benchmark=tuple(PricePoint(d, float(px)) for d, px in zip(dates, benchmark)),
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Each test sees settings freshly loaded from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def weekdays() -> Callable[[date, int], list[date]]:
    """Factory: the first ``n`` weekdays on or after ``start``."""
    return _weekdays


@pytest.fixture
def make_aligned() -> Callable[..., AlignedSeries]:
    """Factory: AlignedSeries from two price lists on consecutive weekdays."""
    return _aligned


@pytest.fixture
def synthetic_aligned() -> AlignedSeries:
    """300 daily points; subject = 0.0002 + 1.2 * market + idiosyncratic noise."""
    np.random.seed(42)
    n = 300
    market = np.random.normal(0.0004, 0.01, n - 1)
    subject = 0.0002 + 1.2 * market + np.random.normal(0, 0.015, n - 1)
    bench_px = 100.0 * np.exp(np.concatenate([[0.0], np.cumsum(market)]))
    subject_px = 50.0 * np.exp(np.concatenate([[0.0], np.cumsum(subject)]))
    return _aligned(subject_px.tolist(), bench_px.tolist())
