"""Year-over-year breakpoint detection on the normalized earnings timeline.

Anchor priority for each current record:

1. ``same_quarter``: a record one year earlier in the same calendar month
2. ``four_back``: the record four positions back (four quarters)
3. ``previous``: the immediately preceding record (quarter-over-quarter)

YoY = current / anchor - 1, only when both operands exist and the anchor is
non-zero; otherwise the metric is None and its "not meaningful" flag is set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from earnings_car.common.dates import days_between, today_utc
from earnings_car.earnings.models import Breakpoint, BreakpointFlags, EarningsRecord

if TYPE_CHECKING:
    from earnings_car.config import EventStudySettings

logger = logging.getLogger(__name__)

ANCHOR_SAME_QUARTER = "same_quarter"
ANCHOR_FOUR_BACK = "four_back"
ANCHOR_PREVIOUS = "previous"


@dataclass(frozen=True)
class BreakpointThresholds:
    """Absolute YoY change at or above which an event is significant."""

    eps: float = 0.15
    revenue: float = 0.15

    def __post_init__(self) -> None:
        if self.eps < 0 or self.revenue < 0:
            raise ValueError("Breakpoint thresholds must be >= 0")

    @classmethod
    def from_settings(cls, settings: EventStudySettings) -> BreakpointThresholds:
        return cls(eps=settings.eps_yoy_threshold, revenue=settings.rev_yoy_threshold)


def _one_year_earlier(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:  # Feb 29
        return day.replace(year=day.year - 1, day=28)


def _yoy(current: float | None, anchor: float | None) -> float | None:
    if current is None or anchor is None or anchor == 0:
        return None
    return current / anchor - 1.0


def find_anchor(timeline: list[EarningsRecord], index: int) -> tuple[int, str] | None:
    """Index and kind of the YoY anchor for ``timeline[index]``.

    ``timeline`` must be sorted ascending and contain past records only.
    """
    current = timeline[index]
    target = _one_year_earlier(current.date)

    best: int | None = None
    for j in range(index):
        candidate = timeline[j].date
        if candidate.year == target.year and candidate.month == target.month:
            if best is None or days_between(candidate, target) < days_between(
                timeline[best].date, target
            ):
                best = j
    if best is not None:
        return best, ANCHOR_SAME_QUARTER
    if index >= 4:
        return index - 4, ANCHOR_FOUR_BACK
    if index >= 1:
        return index - 1, ANCHOR_PREVIOUS
    return None


def compute_yoy_metrics(
    records: Iterable[EarningsRecord],
    thresholds: BreakpointThresholds | None = None,
    *,
    as_of: date | None = None,
) -> list[Breakpoint]:
    """Evaluate every past record, significant or not.

    Future-dated records are removed before any anchor search.
    """
    thresholds = thresholds or BreakpointThresholds()
    now = as_of or today_utc()
    timeline = sorted((r for r in records if r.date <= now), key=lambda r: r.date)

    evaluations: list[Breakpoint] = []
    for i, current in enumerate(timeline):
        anchor_info = find_anchor(timeline, i)
        anchor = timeline[anchor_info[0]] if anchor_info else None

        eps_yoy = _yoy(current.eps, anchor.eps if anchor else None)
        rev_yoy = _yoy(current.revenue, anchor.revenue if anchor else None)

        flags = BreakpointFlags(
            eps_yoy_nm=eps_yoy is None,
            rev_yoy_nm=rev_yoy is None,
            eps_significant=eps_yoy is not None and abs(eps_yoy) >= thresholds.eps,
            rev_significant=rev_yoy is not None and abs(rev_yoy) >= thresholds.revenue,
        )
        evaluations.append(
            Breakpoint(
                announce_date=current.date,
                timing=current.timing,
                eps_yoy=eps_yoy,
                rev_yoy=rev_yoy,
                eps=current.eps,
                revenue=current.revenue,
                anchor_date=anchor.date if anchor else None,
                anchor_kind=anchor_info[1] if anchor_info else None,
                flags=flags,
            )
        )
    return evaluations


def detect_breakpoints(
    records: Iterable[EarningsRecord],
    thresholds: BreakpointThresholds | None = None,
    *,
    as_of: date | None = None,
) -> list[Breakpoint]:
    """Past records whose |EPS YoY| or |Revenue YoY| crosses its threshold.

    Example:
        >>> bps = detect_breakpoints(timeline, BreakpointThresholds(eps=0.05, revenue=0.05))
        >>> [bp.announce_date for bp in bps]
    """
    evaluations = compute_yoy_metrics(records, thresholds, as_of=as_of)
    breakpoints = [
        bp for bp in evaluations if bp.flags.eps_significant or bp.flags.rev_significant
    ]
    logger.info(
        "breakpoints_detected",
        extra={"n_records": len(evaluations), "n_breakpoints": len(breakpoints)},
    )
    return breakpoints


__all__ = [
    "ANCHOR_SAME_QUARTER",
    "ANCHOR_FOUR_BACK",
    "ANCHOR_PREVIOUS",
    "BreakpointThresholds",
    "find_anchor",
    "compute_yoy_metrics",
    "detect_breakpoints",
]
