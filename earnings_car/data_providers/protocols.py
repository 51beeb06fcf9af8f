"""Interfaces of the external collaborators that feed an event study.

The computation core never fetches anything. Implementations of these
protocols live with the caller (vendor HTTP clients, filing parsers, local
caches); ``earnings_car.data_providers.loader`` drives them concurrently and
hands in-memory data to ``run_event_study``.

Thread Safety: Implementations must be safe to call from worker threads.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol, runtime_checkable

from earnings_car.earnings.models import EarningsRecord, EpsFactSources, SplitEvent
from earnings_car.market_data.prices import PricePoint


@runtime_checkable
class PriceProvider(Protocol):
    """Daily adjusted closes for any symbol (subject or benchmark)."""

    def fetch_prices(self, symbol: str, start: date, end: date) -> Sequence[PricePoint]:
        """Adjusted closes for ``symbol`` within ``[start, end]``, ascending by date.

        Raises:
            DataProviderError: If the provider cannot deliver the series.
        """
        ...


@runtime_checkable
class EarningsProvider(Protocol):
    """One earnings-calendar source (vendor API, filings, press releases)."""

    @property
    def name(self) -> str:
        """Provider identifier, also used as the provenance tag (e.g. 'finnhub')."""
        ...

    def fetch_earnings(self, ticker: str, start: date, end: date) -> Sequence[EarningsRecord]:
        """Earnings records for ``ticker`` within ``[start, end]``."""
        ...


@runtime_checkable
class SplitFeed(Protocol):
    """Stock split history."""

    def fetch_splits(self, ticker: str, start: date, end: date) -> Sequence[SplitEvent]:
        ...


@runtime_checkable
class EpsFactFeed(Protocol):
    """Structured (audited) and ratio-derived EPS fact series."""

    def fetch_eps_facts(self, ticker: str) -> EpsFactSources:
        ...


__all__ = [
    "PriceProvider",
    "EarningsProvider",
    "SplitFeed",
    "EpsFactFeed",
]
