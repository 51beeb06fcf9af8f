"""Concurrent fetching of everything one event study needs.

Subject prices, benchmark prices, every earnings provider, splits and EPS
facts are independent requests, so they run in a thread pool. Required
inputs (prices and the primary earnings provider) fail the load; secondary
earnings providers are best-effort and only logged when they fail.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Sequence
from datetime import date
from typing import TypeVar

from earnings_car.analytics.report import EventStudyInputs
from earnings_car.common.exceptions import DataProviderError
from earnings_car.config import EventStudySettings, get_settings
from earnings_car.data_providers.protocols import (
    EarningsProvider,
    EpsFactFeed,
    PriceProvider,
    SplitFeed,
)
from earnings_car.earnings.models import EarningsRecord, EpsFactSources, SplitEvent

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

DEFAULT_MAX_WORKERS = 8


def _required(name: str, future: concurrent.futures.Future[_T]) -> _T:
    """Result of a required fetch; any failure becomes DataProviderError."""
    try:
        return future.result()
    except DataProviderError:
        raise
    except Exception as e:
        raise DataProviderError(name, f"Provider '{name}' failed: {e}") from e


def _best_effort(
    name: str,
    future: concurrent.futures.Future[Sequence[EarningsRecord]],
) -> list[EarningsRecord]:
    try:
        return list(future.result())
    except Exception as e:
        logger.warning(
            "secondary_provider_failed",
            extra={"provider": name, "error": str(e)},
            exc_info=True,
        )
        return []


def load_event_study_inputs(
    ticker: str,
    start: date,
    end: date,
    *,
    prices: PriceProvider,
    primary: EarningsProvider,
    secondaries: Sequence[EarningsProvider] = (),
    split_feed: SplitFeed | None = None,
    eps_fact_feed: EpsFactFeed | None = None,
    benchmark_symbol: str | None = None,
    settings: EventStudySettings | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> EventStudyInputs:
    """Fetch prices, earnings, splits and EPS facts concurrently.

    Args:
        ticker: Subject ticker.
        start: Study range start (inclusive).
        end: Study range end (inclusive).
        prices: Price source used for both subject and benchmark.
        primary: Date-authoritative earnings provider.
        secondaries: Additional earnings providers, highest priority first.
        split_feed: Split history source (None: no split adjustment).
        eps_fact_feed: Structured / ratio EPS facts (None: vendor EPS only).
        benchmark_symbol: Requested benchmark; disallowed symbols fall back to
            the configured default.
        settings: Configuration (default: ``get_settings()``).
        max_workers: Thread pool size.

    Returns:
        EventStudyInputs ready for ``run_event_study``.

    Raises:
        DataProviderError: If prices, the primary provider, splits or EPS
            facts cannot be fetched.
    """
    settings = settings or get_settings()
    ticker = ticker.strip().upper()
    bench = settings.resolve_benchmark(benchmark_symbol)

    logger.info(
        "event_study_inputs_loading",
        extra={
            "ticker": ticker,
            "benchmark": bench,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "providers": [primary.name, *(p.name for p in secondaries)],
        },
    )

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as pool:
        subject_future = pool.submit(prices.fetch_prices, ticker, start, end)
        bench_future = pool.submit(prices.fetch_prices, bench, start, end)
        primary_future = pool.submit(primary.fetch_earnings, ticker, start, end)
        secondary_futures = [
            (p.name, pool.submit(p.fetch_earnings, ticker, start, end)) for p in secondaries
        ]
        splits_future = (
            pool.submit(split_feed.fetch_splits, ticker, start, end) if split_feed else None
        )
        facts_future = pool.submit(eps_fact_feed.fetch_eps_facts, ticker) if eps_fact_feed else None

        subject = _required(f"prices:{ticker}", subject_future)
        benchmark = _required(f"prices:{bench}", bench_future)
        primary_records = _required(primary.name, primary_future)
        secondary_records = [_best_effort(name, f) for name, f in secondary_futures]
        splits: Sequence[SplitEvent] = (
            _required("splits", splits_future) if splits_future else ()
        )
        facts = _required("eps_facts", facts_future) if facts_future else EpsFactSources()

    if not subject:
        raise DataProviderError(f"prices:{ticker}", f"No price data for {ticker}")
    if not benchmark:
        raise DataProviderError(f"prices:{bench}", f"No price data for benchmark {bench}")

    logger.info(
        "event_study_inputs_loaded",
        extra={
            "ticker": ticker,
            "n_prices": len(subject),
            "n_benchmark_prices": len(benchmark),
            "n_primary_earnings": len(primary_records),
            "n_secondary_earnings": [len(r) for r in secondary_records],
            "n_splits": len(splits),
        },
    )
    return EventStudyInputs(
        ticker=ticker,
        subject=tuple(subject),
        benchmark=tuple(benchmark),
        benchmark_symbol=bench,
        primary_earnings=tuple(primary_records),
        secondary_earnings=tuple(tuple(r) for r in secondary_records),
        splits=tuple(splits),
        eps_facts=facts,
        date_range=(start, end),
    )


__all__ = ["load_event_study_inputs"]
