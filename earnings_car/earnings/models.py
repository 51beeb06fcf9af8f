"""Earnings data model shared by reconciliation, EPS normalization and breakpoints."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

import polars as pl

from earnings_car.common.dates import to_date


class Timing(str, Enum):
    """When an announcement was released relative to the regular session."""

    BEFORE_OPEN = "before-open"
    AFTER_CLOSE = "after-close"
    DURING_HOURS = "during-hours"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | Timing | None) -> Timing:
        """Map vendor tokens (``bmo``, ``amc``, ``dmh``, ...) onto a Timing.

        Unrecognized or missing values map to UNKNOWN.
        """
        if isinstance(value, Timing):
            return value
        if value is None:
            return cls.UNKNOWN
        token = str(value).strip().lower().replace("_", "-")
        return _TIMING_ALIASES.get(token, cls.UNKNOWN)


_TIMING_ALIASES: dict[str, Timing] = {
    "before-open": Timing.BEFORE_OPEN,
    "bmo": Timing.BEFORE_OPEN,
    "pre-market": Timing.BEFORE_OPEN,
    "premarket": Timing.BEFORE_OPEN,
    "after-close": Timing.AFTER_CLOSE,
    "amc": Timing.AFTER_CLOSE,
    "post-market": Timing.AFTER_CLOSE,
    "postmarket": Timing.AFTER_CLOSE,
    "during-hours": Timing.DURING_HOURS,
    "dmh": Timing.DURING_HOURS,
    "dmt": Timing.DURING_HOURS,
    "unknown": Timing.UNKNOWN,
}


class Provenance:
    """Source tags seen on EarningsRecord.provenance."""

    FINNHUB = "finnhub"
    ALPHA_VANTAGE = "alpha_vantage"
    YAHOO = "yahoo"
    SEC_PRESS_RELEASE = "sec_pr"  # pre-vetted press-release figure
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class EarningsRecord:
    """One earnings announcement as reported by one provider (or merged)."""

    date: date
    timing: Timing = Timing.UNKNOWN
    eps: float | None = None
    revenue: float | None = None
    provenance: str = Provenance.UNKNOWN

    def __post_init__(self) -> None:
        object.__setattr__(self, "timing", Timing.parse(self.timing))
        object.__setattr__(self, "eps", _finite_or_none(self.eps))
        object.__setattr__(self, "revenue", _finite_or_none(self.revenue))

    def with_eps(self, eps: float | None) -> EarningsRecord:
        return replace(self, eps=eps)


@dataclass(frozen=True)
class SplitEvent:
    """Forward split multiplying share count by ``ratio`` on ``date``."""

    date: date
    ratio: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.ratio) or self.ratio <= 0:
            raise ValueError(f"Split ratio must be finite and > 0, got {self.ratio}")


@dataclass(frozen=True)
class EpsFact:
    """Date-keyed EPS fact (fiscal period end or filing date)."""

    date: date
    eps: float


@dataclass(frozen=True)
class EpsFactSources:
    """Fact series consulted by the EPS normalizer, in priority order."""

    structured: tuple[EpsFact, ...] = ()
    ratio: tuple[EpsFact, ...] = ()


@dataclass(frozen=True)
class NormalizedEpsPoint:
    """EPS chosen for one earnings date after source selection and split adjustment."""

    date: date
    eps: float | None
    source: str | None = None  # "structured" | "ratio" | "vendor"
    raw_eps: float | None = None
    split_factor: float = 1.0
    relaxed_match: bool = False


@dataclass(frozen=True)
class BreakpointFlags:
    eps_yoy_nm: bool = False
    rev_yoy_nm: bool = False
    eps_significant: bool = False
    rev_significant: bool = False


@dataclass(frozen=True)
class Breakpoint:
    """Earnings event whose YoY move crossed a significance threshold."""

    announce_date: date
    timing: Timing
    eps_yoy: float | None
    rev_yoy: float | None
    eps: float | None
    revenue: float | None
    anchor_date: date | None = None
    anchor_kind: str | None = None  # "same_quarter" | "four_back" | "previous"
    flags: BreakpointFlags = field(default_factory=BreakpointFlags)


def _finite_or_none(value: float | None) -> float | None:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def earnings_records_from_frame(
    df: pl.DataFrame,
    provenance: str,
    date_col: str = "date",
) -> list[EarningsRecord]:
    """Build EarningsRecords from a provider DataFrame.

    Optional columns: ``timing`` (or ``when``), ``eps``, ``revenue``.

    Raises:
        ValueError: If the date column is missing.
    """
    if date_col not in df.columns:
        raise ValueError(f"DataFrame missing required column: {date_col}")

    timing_col = next((c for c in ("timing", "when", "time", "hour") if c in df.columns), None)
    records: list[EarningsRecord] = []
    for row in df.iter_rows(named=True):
        raw_date = row[date_col]
        if raw_date is None:
            continue
        records.append(
            EarningsRecord(
                date=to_date(raw_date),
                timing=Timing.parse(row[timing_col] if timing_col else None),
                eps=row.get("eps"),
                revenue=row.get("revenue"),
                provenance=provenance,
            )
        )
    return sorted(records, key=lambda r: r.date)


def eps_facts_from_pairs(pairs: Iterable[tuple[date | str, float]]) -> tuple[EpsFact, ...]:
    """Build a date-sorted EPS fact series, skipping non-finite values."""
    facts = [
        EpsFact(to_date(d), float(v))
        for d, v in pairs
        if v is not None and math.isfinite(float(v))
    ]
    return tuple(sorted(facts, key=lambda f: f.date))


__all__ = [
    "Timing",
    "Provenance",
    "EarningsRecord",
    "SplitEvent",
    "EpsFact",
    "EpsFactSources",
    "NormalizedEpsPoint",
    "Breakpoint",
    "BreakpointFlags",
    "earnings_records_from_frame",
    "eps_facts_from_pairs",
]
