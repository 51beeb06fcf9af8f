"""Calendar-date coercion shared by the earnings and market-data modules."""

from __future__ import annotations

from datetime import UTC, date, datetime


def to_date(value: date | datetime | str) -> date:
    """Coerce an ISO string, datetime or date into a calendar date.

    Example:
        >>> to_date("2024-03-31T21:05:00Z")
        datetime.date(2024, 3, 31)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def today_utc() -> date:
    """Current calendar date in UTC, the default "now" for future-date checks."""
    return datetime.now(UTC).date()


def days_between(a: date, b: date) -> int:
    """Absolute calendar-day distance between two dates."""
    return abs((a - b).days)
