"""Tests for Day0 resolution and calendar snapping."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from earnings_car.common.exceptions import InvalidSeriesError
from earnings_car.earnings.models import Timing
from earnings_car.market_data.prices import PricePoint
from earnings_car.market_data.trading_calendar import (
    Day0Failure,
    FallbackReason,
    format_date_range,
    is_minimal_nyse_holiday,
    resolve_day0,
    snap_to_trading_day,
    trading_dates_from_prices,
)

AS_OF = date(2024, 1, 1)


@pytest.fixture
def trading_dates() -> list[date]:
    """Tue 2023-05-02 through Fri 2023-05-05."""
    return [date(2023, 5, 2), date(2023, 5, 3), date(2023, 5, 4), date(2023, 5, 5)]


class TestResolveDay0:
    """Tests for resolve_day0."""

    def test_after_close_resolves_to_next_session(self, trading_dates: list[date]) -> None:
        """After-close announcement on 2023-05-03 reacts on 2023-05-04 (index 2)."""
        resolution = resolve_day0(date(2023, 5, 3), Timing.AFTER_CLOSE, trading_dates, as_of=AS_OF)

        assert resolution.trading_index == 2
        assert trading_dates[resolution.trading_index] == date(2023, 5, 4)
        assert resolution.fallback_used is False
        assert resolution.fallback_reason is FallbackReason.NONE

    def test_string_date_and_vendor_token(self, trading_dates: list[date]) -> None:
        """ISO strings and vendor tokens are accepted."""
        resolution = resolve_day0("2023-05-03", "amc", trading_dates, as_of=AS_OF)
        assert resolution.trading_index == 2

    def test_before_open_uses_same_session(self, trading_dates: list[date]) -> None:
        """Before-open announcement on a session reacts that day."""
        resolution = resolve_day0(date(2023, 5, 3), "bmo", trading_dates, as_of=AS_OF)

        assert resolution.trading_index == 1
        assert resolution.fallback_used is False

    def test_before_open_timestamp_on_session_is_exact(
        self, trading_dates: list[date]
    ) -> None:
        """A timestamped before-open release on a session is not a fallback."""
        resolution = resolve_day0(
            datetime(2023, 5, 3, 7, 0), Timing.BEFORE_OPEN, trading_dates, as_of=AS_OF
        )

        assert resolution.trading_index == 1
        assert resolution.fallback_used is False
        assert resolution.fallback_reason is FallbackReason.NONE

    def test_before_open_on_non_session_uses_closest_future_day(
        self, trading_dates: list[date]
    ) -> None:
        """Saturday before-open announcement moves to the next loaded session."""
        resolution = resolve_day0(date(2023, 4, 29), Timing.BEFORE_OPEN, trading_dates, as_of=AS_OF)

        assert resolution.trading_index == 0
        assert resolution.fallback_used is True
        assert resolution.fallback_reason is FallbackReason.CLOSEST_FUTURE_DAY

    @pytest.mark.parametrize("timing", [Timing.AFTER_CLOSE, Timing.DURING_HOURS, Timing.UNKNOWN])
    def test_no_future_session_uses_last_available(
        self, trading_dates: list[date], timing: Timing
    ) -> None:
        """With no later session loaded, the last one is used and flagged."""
        resolution = resolve_day0(date(2023, 5, 5), timing, trading_dates, as_of=AS_OF)

        assert resolution.trading_index == 3
        assert resolution.fallback_used is True
        assert resolution.fallback_reason is FallbackReason.NO_FUTURE_AVAILABLE

    def test_before_open_after_last_session(self, trading_dates: list[date]) -> None:
        """Before-open past the loaded range falls back to the last session."""
        resolution = resolve_day0(date(2023, 5, 8), Timing.BEFORE_OPEN, trading_dates, as_of=AS_OF)

        assert resolution.trading_index == 3
        assert resolution.fallback_reason is FallbackReason.NO_FUTURE_AVAILABLE

    @pytest.mark.parametrize("timing", [Timing.DURING_HOURS, Timing.UNKNOWN])
    def test_during_hours_and_unknown_react_next_session(
        self, trading_dates: list[date], timing: Timing
    ) -> None:
        """During-hours and unknown timing are treated like after-close."""
        resolution = resolve_day0(date(2023, 5, 2), timing, trading_dates, as_of=AS_OF)
        assert resolution.trading_index == 1

    def test_future_announcement_is_unresolved(self, trading_dates: list[date]) -> None:
        """Announcements after as_of produce a null index."""
        resolution = resolve_day0(
            date(2023, 5, 3), Timing.AFTER_CLOSE, trading_dates, as_of=date(2023, 5, 1)
        )

        assert resolution.trading_index is None
        assert resolution.resolved is False
        assert resolution.failure is Day0Failure.FUTURE_ANNOUNCEMENT

    def test_empty_calendar_is_unresolved(self) -> None:
        """An empty trading-date sequence produces a null index."""
        resolution = resolve_day0(date(2023, 5, 3), Timing.AFTER_CLOSE, [], as_of=AS_OF)

        assert resolution.trading_index is None
        assert resolution.failure is Day0Failure.EMPTY_CALENDAR

    def test_unsorted_dates_raise(self) -> None:
        """Trading dates must be strictly increasing."""
        with pytest.raises(InvalidSeriesError):
            resolve_day0(
                date(2023, 5, 3),
                Timing.AFTER_CLOSE,
                [date(2023, 5, 4), date(2023, 5, 2)],
                as_of=AS_OF,
            )

    @pytest.mark.parametrize(
        "timing", [Timing.BEFORE_OPEN, Timing.AFTER_CLOSE, Timing.DURING_HOURS, Timing.UNKNOWN]
    )
    def test_monotonic_in_announce_date(self, trading_dates: list[date], timing: Timing) -> None:
        """Later announcements never resolve to an earlier session."""
        days = [date(2023, 4, 26) + timedelta(days=i) for i in range(16)]
        indices = [
            resolve_day0(d, timing, trading_dates, as_of=AS_OF).trading_index for d in days
        ]

        assert all(i is not None and 0 <= i < len(trading_dates) for i in indices)
        assert indices == sorted(indices)


class TestCalendarHelpers:
    """Tests for trading-date helpers and calendar snapping."""

    def test_trading_dates_from_prices_sorted_unique(self) -> None:
        """Builder returns one ascending date per session."""
        points = [PricePoint(date(2023, 5, 3), 10.0), PricePoint(date(2023, 5, 2), 9.0)]
        assert trading_dates_from_prices(points) == [date(2023, 5, 2), date(2023, 5, 3)]

    def test_format_date_range_clamps(self, trading_dates: list[date]) -> None:
        """Out-of-range indices are clamped to the sequence."""
        assert format_date_range(-2, 10, trading_dates) == (date(2023, 5, 2), date(2023, 5, 5))
        assert format_date_range(1, 2, trading_dates) == (date(2023, 5, 3), date(2023, 5, 4))

    def test_format_date_range_empty(self) -> None:
        """Empty sequence has no range."""
        assert format_date_range(0, 1, []) is None

    def test_snap_weekend(self) -> None:
        """Saturday snaps forward to Monday under the same-day rule."""
        assert snap_to_trading_day(date(2024, 6, 1), "same") == date(2024, 6, 3)
        assert snap_to_trading_day(date(2024, 6, 3), "same") == date(2024, 6, 3)

    def test_snap_next_and_prev(self) -> None:
        """Next and prev are strict."""
        assert snap_to_trading_day(date(2024, 5, 31), "next") == date(2024, 6, 3)
        assert snap_to_trading_day(date(2024, 6, 3), "prev") == date(2024, 5, 31)

    def test_snap_skips_observed_holidays(self) -> None:
        """Observed Christmas and Independence Day are skipped."""
        # Christmas 2022 fell on Sunday, observed Monday 12-26
        assert snap_to_trading_day(date(2022, 12, 26), "same") == date(2022, 12, 27)
        # Independence Day 2026 falls on Saturday, observed Friday 07-03
        assert snap_to_trading_day(date(2026, 7, 6), "prev") == date(2026, 7, 2)

    def test_minimal_holidays(self) -> None:
        """Only the minimal holiday set is recognized."""
        assert is_minimal_nyse_holiday(date(2024, 1, 1)) is True
        assert is_minimal_nyse_holiday(date(2024, 12, 25)) is True
        assert is_minimal_nyse_holiday(date(2024, 1, 2)) is False

    def test_snap_unknown_rule_raises(self) -> None:
        """Unknown rules are rejected."""
        with pytest.raises(ValueError, match="Unknown snap rule"):
            snap_to_trading_day(date(2024, 6, 3), "nearest")  # type: ignore[arg-type]
