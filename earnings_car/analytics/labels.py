"""Human-readable labels for event-study segments."""

from __future__ import annotations

import math
from datetime import date

from earnings_car.common.dates import to_date
from earnings_car.earnings.models import Breakpoint

MISSING = "—"
SEPARATOR = " • "


def _finite(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


def format_percent(value: float | None) -> str:
    """Signed whole-percent string: ``0.12 -> "+12%"``, missing -> ``"—"``."""
    value = _finite(value)
    if value is None:
        return MISSING
    sign = "+" if value >= 0 else ""
    return f"{sign}{value * 100:.0f}%"


def build_segment_label(breakpoint: Breakpoint) -> str:
    """``"2024-01-25 EPS YoY 23% Rev YoY NM"``.

    A missing YoY metric renders as ``NM`` only when flagged not meaningful.
    """
    parts: list[str] = []
    eps_yoy = _finite(breakpoint.eps_yoy)
    if eps_yoy is not None:
        parts.append(f"EPS YoY {eps_yoy * 100:.0f}%")
    elif breakpoint.flags.eps_yoy_nm:
        parts.append("EPS YoY NM")

    rev_yoy = _finite(breakpoint.rev_yoy)
    if rev_yoy is not None:
        parts.append(f"Rev YoY {rev_yoy * 100:.0f}%")
    elif breakpoint.flags.rev_yoy_nm:
        parts.append("Rev YoY NM")

    return f"{breakpoint.announce_date.isoformat()} {' '.join(parts)}".strip()


def build_label_with_window(
    announce_date: date,
    eps_yoy: float | None,
    rev_yoy: float | None,
    window_label: str,
    car: float | None,
) -> str:
    """Compact label including the CAR.

    Example:
        >>> build_label_with_window(date(2024, 1, 25), 0.23, 0.08, "[-1,+5]", 0.034)
        '2024-01-25 • EPS YoY +23% • Rev YoY +8% • CAR[-1,+5] +3.4%'
    """
    parts = [announce_date.isoformat(), f"EPS YoY {format_percent(eps_yoy)}"]
    if _finite(rev_yoy) is not None:
        parts.append(f"Rev YoY {format_percent(rev_yoy)}")
    car = _finite(car)
    if car is not None:
        sign = "+" if car >= 0 else ""
        parts.append(f"CAR{window_label} {sign}{car * 100:.1f}%")
    return SEPARATOR.join(parts)


def ranges_overlap(
    a_start: date | str,
    a_end: date | str,
    b_start: date | str,
    b_end: date | str,
) -> bool:
    """True if the inclusive ranges share at least one day.

    Unparseable dates never overlap.
    """
    try:
        a0, a1, b0, b1 = (to_date(d) for d in (a_start, a_end, b_start, b_end))
    except (AttributeError, TypeError, ValueError):
        return False
    return max(a0, b0) <= min(a1, b1)


__all__ = [
    "format_percent",
    "build_segment_label",
    "build_label_with_window",
    "ranges_overlap",
]
