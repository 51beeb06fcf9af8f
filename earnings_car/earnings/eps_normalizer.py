"""GAAP-diluted EPS selection and split adjustment.

For every earnings date the normalizer picks one EPS value, in strict priority:

1. structured (audited, regulator-sourced) fact, nearest prior within tolerance
2. ratio-derived fact (net income / diluted shares), same rule
3. vendor-reported EPS, only when explicitly allowed or when the record is a
   pre-vetted press-release figure

Structured and ratio facts are stated in the share count of their period and
are divided by the product of all split ratios dated strictly after the
earnings date. Vendor EPS is already published in current-share terms and is
left as is.
"""

from __future__ import annotations

import bisect
import logging
import math
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from earnings_car.earnings.models import (
    EarningsRecord,
    EpsFact,
    EpsFactSources,
    NormalizedEpsPoint,
    Provenance,
    SplitEvent,
)

if TYPE_CHECKING:
    from earnings_car.config import EventStudySettings

logger = logging.getLogger(__name__)

SOURCE_STRUCTURED = "structured"
SOURCE_RATIO = "ratio"
SOURCE_VENDOR = "vendor"


@dataclass(frozen=True)
class EpsNormalizationOptions:
    """Source-selection knobs for ``normalize_eps``."""

    allow_vendor_eps: bool = False
    tolerance_days: int = 120
    relaxed_tolerance_days: int = 180
    max_gap_days: int = 200

    def __post_init__(self) -> None:
        if not 0 <= self.tolerance_days <= self.relaxed_tolerance_days:
            raise ValueError("Require 0 <= tolerance_days <= relaxed_tolerance_days")

    @classmethod
    def from_settings(cls, settings: EventStudySettings) -> EpsNormalizationOptions:
        return cls(
            allow_vendor_eps=settings.allow_vendor_eps,
            tolerance_days=settings.eps_fact_tolerance_days,
            relaxed_tolerance_days=settings.eps_fact_relaxed_tolerance_days,
            max_gap_days=settings.eps_fact_max_gap_days,
        )


class _FactIndex:
    """Date-sorted fact series supporting nearest-prior lookups."""

    def __init__(self, facts: Iterable[EpsFact]) -> None:
        self._facts = sorted(
            (f for f in facts if math.isfinite(f.eps)),
            key=lambda f: f.date,
        )
        self._dates = [f.date for f in self._facts]

    def nearest_prior(
        self,
        event_date: date,
        options: EpsNormalizationOptions,
    ) -> tuple[EpsFact, bool] | None:
        """Latest fact on or before ``event_date`` within tolerance.

        Returns (fact, relaxed) where ``relaxed`` marks a match that only
        passed the relaxed tolerance.
        """
        idx = bisect.bisect_right(self._dates, event_date) - 1
        if idx < 0:
            return None
        fact = self._facts[idx]
        gap = (event_date - fact.date).days
        if gap <= options.tolerance_days:
            return fact, False
        if gap <= min(options.relaxed_tolerance_days, options.max_gap_days):
            return fact, True
        return None


def split_adjustment_factor(day: date, splits: Iterable[SplitEvent]) -> float:
    """Product of the ratios of every split dated strictly after ``day``."""
    factor = 1.0
    for split in splits:
        if split.date > day:
            factor *= split.ratio
    return factor


def apply_split_adjustment(day: date, value: float, splits: Iterable[SplitEvent]) -> float:
    """Express a per-share ``value`` reported on ``day`` in current-share terms.

    Example:
        >>> splits = [SplitEvent(date(2022, 7, 15), 20.0), SplitEvent(date(2014, 4, 3), 2.0)]
        >>> apply_split_adjustment(date(2009, 12, 31), 10.0, splits)
        0.25
    """
    factor = split_adjustment_factor(day, splits)
    return value / factor if factor != 1.0 else value


def eps_from_net_income(
    net_income: float | None,
    diluted_shares: float | None,
) -> float | None:
    """Ratio-derived EPS; None when either operand is missing or shares are zero."""
    if net_income is None or diluted_shares is None:
        return None
    if not math.isfinite(net_income) or not math.isfinite(diluted_shares) or diluted_shares == 0:
        return None
    return net_income / diluted_shares


def ratio_eps_facts(
    rows: Iterable[tuple[date, float | None, float | None]],
) -> tuple[EpsFact, ...]:
    """Build a ratio fact series from (date, net_income, diluted_shares) rows."""
    facts = []
    for day, net_income, shares in rows:
        eps = eps_from_net_income(net_income, shares)
        if eps is not None:
            facts.append(EpsFact(day, eps))
    return tuple(sorted(facts, key=lambda f: f.date))


def normalize_eps(
    records: Sequence[EarningsRecord],
    splits: Iterable[SplitEvent],
    fact_sources: EpsFactSources,
    options: EpsNormalizationOptions | None = None,
) -> list[NormalizedEpsPoint]:
    """Choose and split-adjust one EPS per earnings record.

    Args:
        records: Reconciled earnings records.
        splits: Split events for the ticker (any date range).
        fact_sources: Structured and ratio-derived fact series.
        options: Source-selection options (defaults: vendor EPS disallowed,
            120/180/200-day tolerances).

    Returns:
        One NormalizedEpsPoint per record, in input order. ``eps`` is None
        when no source qualifies.
    """
    options = options or EpsNormalizationOptions()
    split_list = list(splits)
    structured = _FactIndex(fact_sources.structured)
    ratio = _FactIndex(fact_sources.ratio)

    points: list[NormalizedEpsPoint] = []
    for rec in records:
        chosen: float | None = None
        source: str | None = None
        relaxed = False

        match = structured.nearest_prior(rec.date, options)
        if match is not None:
            chosen, source, relaxed = match[0].eps, SOURCE_STRUCTURED, match[1]
        else:
            match = ratio.nearest_prior(rec.date, options)
            if match is not None:
                chosen, source, relaxed = match[0].eps, SOURCE_RATIO, match[1]
            elif rec.eps is not None and (
                options.allow_vendor_eps or rec.provenance == Provenance.SEC_PRESS_RELEASE
            ):
                chosen, source = rec.eps, SOURCE_VENDOR

        if chosen is None:
            points.append(NormalizedEpsPoint(date=rec.date, eps=None))
            continue

        # vendor EPS is already split-adjusted by the vendor
        factor = 1.0 if source == SOURCE_VENDOR else split_adjustment_factor(rec.date, split_list)
        points.append(
            NormalizedEpsPoint(
                date=rec.date,
                eps=chosen / factor if factor != 1.0 else chosen,
                source=source,
                raw_eps=chosen,
                split_factor=factor,
                relaxed_match=relaxed,
            )
        )

    counts = Counter(p.source or "none" for p in points)
    logger.debug("eps_normalized", extra={"n_records": len(points), "sources": dict(counts)})
    return points


def apply_normalized_eps(
    records: Sequence[EarningsRecord],
    points: Sequence[NormalizedEpsPoint],
) -> list[EarningsRecord]:
    """Replace each record's EPS with its normalized value.

    Raises:
        ValueError: If ``points`` does not line up with ``records``.
    """
    if len(records) != len(points):
        raise ValueError(f"Length mismatch: {len(records)} records vs {len(points)} points")
    out = []
    for rec, point in zip(records, points):
        if rec.date != point.date:
            raise ValueError(f"Date mismatch: record {rec.date} vs point {point.date}")
        out.append(rec.with_eps(point.eps))
    return out


__all__ = [
    "EpsNormalizationOptions",
    "SOURCE_STRUCTURED",
    "SOURCE_RATIO",
    "SOURCE_VENDOR",
    "normalize_eps",
    "apply_normalized_eps",
    "split_adjustment_factor",
    "apply_split_adjustment",
    "eps_from_net_income",
    "ratio_eps_facts",
]
