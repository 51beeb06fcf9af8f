"""Trading-day sequences and Day0 resolution.

Day0 is the first session in which the market could react to an earnings
announcement:

- before-open: the announcement date itself, if it is a session.
- after-close / during-hours / unknown: the first session strictly after the
  announcement date.

When the preferred session is not in the loaded sequence the resolver still
produces an index but reports how it got there (``fallback_used`` and
``fallback_reason``), so callers can flag degraded results.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Literal

from earnings_car.common.dates import to_date, today_utc
from earnings_car.common.exceptions import InvalidSeriesError
from earnings_car.earnings.models import Timing
from earnings_car.market_data.prices import PricePoint

logger = logging.getLogger(__name__)

SnapRule = Literal["same", "next", "prev"]


class FallbackReason(str, Enum):
    """How Day0 was chosen when the preferred session was unavailable.

    ``resolve_day0`` never returns ``SAME_DAY_SESSION``: a before-open release
    on a loaded session is an exact match whether or not it carries a time.
    """

    NONE = "none"
    SAME_DAY_SESSION = "same-day-session"
    CLOSEST_FUTURE_DAY = "closest-future-day"
    NO_FUTURE_AVAILABLE = "no-future-available"


class Day0Failure(str, Enum):
    """Why Day0 could not be resolved at all."""

    FUTURE_ANNOUNCEMENT = "future_announcement"
    EMPTY_CALENDAR = "empty_calendar"


@dataclass(frozen=True)
class Day0Resolution:
    """Result of ``resolve_day0``.

    ``trading_index`` is None when resolution failed (see ``failure``);
    otherwise it is a valid index into the sequence passed to the resolver.
    """

    trading_index: int | None
    fallback_used: bool = False
    fallback_reason: FallbackReason = FallbackReason.NONE
    failure: Day0Failure | None = None

    @property
    def resolved(self) -> bool:
        return self.trading_index is not None


def trading_dates_from_prices(series: Sequence[PricePoint]) -> list[date]:
    """Trading-date sequence builder: one date per session, ascending."""
    return sorted({p.date for p in series})


def resolve_day0(
    announce_date: date | datetime | str,
    timing: Timing | str,
    trading_dates: Sequence[date],
    *,
    as_of: date | None = None,
) -> Day0Resolution:
    """Map an announcement onto an index in ``trading_dates``.

    Args:
        announce_date: Announcement date. A ``datetime`` is accepted for
            timestamped announcements; only its calendar day is used.
        timing: Timing flag (enum or vendor token).
        trading_dates: Ascending trading dates, one per session.
        as_of: "Now" for the future-date check (default: today, UTC).

    Returns:
        Day0Resolution. A null index means the caller should skip the event.

    Example:
        >>> dates = [date(2023, 5, 2), date(2023, 5, 3), date(2023, 5, 4), date(2023, 5, 5)]
        >>> resolve_day0(date(2023, 5, 3), Timing.AFTER_CLOSE, dates).trading_index
        2
    """
    timing = Timing.parse(timing)
    announce_day = to_date(announce_date)
    now = as_of or today_utc()

    if announce_day > now:
        logger.info(
            "day0_future_announcement",
            extra={"announce_date": announce_day.isoformat(), "as_of": now.isoformat()},
        )
        return Day0Resolution(None, failure=Day0Failure.FUTURE_ANNOUNCEMENT)

    dates = [to_date(d) for d in trading_dates]
    if not dates:
        logger.warning("day0_empty_calendar", extra={"announce_date": announce_day.isoformat()})
        return Day0Resolution(None, failure=Day0Failure.EMPTY_CALENDAR)
    if any(curr <= prev for prev, curr in zip(dates, dates[1:])):
        raise InvalidSeriesError("trading_dates must be strictly increasing")

    if timing is Timing.BEFORE_OPEN:
        resolution = _resolve_before_open(announce_day, dates)
    else:
        # after-close, during-hours and unknown all react on the next session
        next_idx = bisect.bisect_right(dates, announce_day)
        if next_idx < len(dates):
            resolution = Day0Resolution(next_idx)
        else:
            resolution = _last_available(dates)

    if resolution.fallback_used:
        logger.info(
            "day0_fallback_used",
            extra={
                "announce_date": announce_day.isoformat(),
                "timing": timing.value,
                "reason": resolution.fallback_reason.value,
                "day0": (
                    dates[resolution.trading_index].isoformat()
                    if resolution.trading_index is not None
                    else None
                ),
            },
        )
    return resolution


def _resolve_before_open(announce_day: date, dates: list[date]) -> Day0Resolution:
    idx = bisect.bisect_left(dates, announce_day)
    on_session = idx < len(dates) and dates[idx] == announce_day

    if on_session:
        return Day0Resolution(idx)

    if idx < len(dates):
        return Day0Resolution(
            idx, fallback_used=True, fallback_reason=FallbackReason.CLOSEST_FUTURE_DAY
        )
    return _last_available(dates)


def _last_available(dates: list[date]) -> Day0Resolution:
    return Day0Resolution(
        len(dates) - 1,
        fallback_used=True,
        fallback_reason=FallbackReason.NO_FUTURE_AVAILABLE,
    )


def format_date_range(
    start_idx: int,
    end_idx: int,
    trading_dates: Sequence[date],
) -> tuple[date, date] | None:
    """Trading dates at ``start_idx`` and ``end_idx``, clamped to the sequence.

    Returns None for an empty sequence.
    """
    if not trading_dates:
        return None
    last = len(trading_dates) - 1
    start = trading_dates[min(max(start_idx, 0), last)]
    end = trading_dates[min(max(end_idx, 0), last)]
    return start, end


# =============================================================================
# Calendar snapping (no price history required)
# =============================================================================


def is_minimal_nyse_holiday(day: date) -> bool:
    """New Year, Independence Day and Christmas, including observed weekdays."""
    m, d, weekday = day.month, day.day, day.weekday()
    if (m == 1 and d == 1) or (m == 12 and d == 31 and weekday == 4):
        return True
    if (m == 7 and d == 4) or (m == 7 and d == 5 and weekday == 0) or (
        m == 7 and d == 3 and weekday == 4
    ):
        return True
    if (m == 12 and d == 25) or (m == 12 and d == 26 and weekday == 0) or (
        m == 12 and d == 24 and weekday == 4
    ):
        return True
    return False


def _is_session(day: date) -> bool:
    return day.weekday() < 5 and not is_minimal_nyse_holiday(day)


def snap_to_trading_day(day: date, rule: SnapRule) -> date:
    """Snap a calendar date to a trading day using weekends and minimal holidays.

    - ``same``: ``day`` if it is a session, else the next session.
    - ``next``: the first session strictly after ``day``.
    - ``prev``: the last session strictly before ``day``.

    Example:
        >>> snap_to_trading_day(date(2024, 6, 1), "same")  # Saturday
        datetime.date(2024, 6, 3)
    """
    if rule == "same":
        step, candidate = 1, day
    elif rule == "next":
        step, candidate = 1, day + timedelta(days=1)
    elif rule == "prev":
        step, candidate = -1, day - timedelta(days=1)
    else:
        raise ValueError(f"Unknown snap rule: {rule}")

    while not _is_session(candidate):
        candidate += timedelta(days=step)
    return candidate


__all__ = [
    "Day0Resolution",
    "Day0Failure",
    "FallbackReason",
    "SnapRule",
    "resolve_day0",
    "trading_dates_from_prices",
    "format_date_range",
    "snap_to_trading_day",
    "is_minimal_nyse_holiday",
]
