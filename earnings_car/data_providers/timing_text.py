"""Best-effort announcement timing from press-release text.

Filing-based earnings sources carry no timing flag, but the attached press
release usually says when results go out ("after the market closes",
"at 7:00 a.m. ET"). This heuristic is only used at the provider boundary to
fill ``EarningsRecord.timing``; the computation core never parses text.

Example:
    >>> infer_timing_from_text("results will be released after the market closes")
    <Timing.AFTER_CLOSE: 'after-close'>
"""

from __future__ import annotations

import re

from earnings_car.earnings.models import Timing

_AFTER_CLOSE_PATTERNS = (
    re.compile(r"after\s+(the\s+)?market\s+(close|closes)", re.IGNORECASE),
    re.compile(r"\bafter-hours?\b", re.IGNORECASE),
)
_BEFORE_OPEN_PATTERNS = (
    re.compile(r"before\s+(the\s+)?market\s+(open|opens)", re.IGNORECASE),
    re.compile(r"\bpre-market\b", re.IGNORECASE),
)
# Eastern-time clock reference, e.g. "4:05 p.m. ET", "7am EDT"
_ET_TIME_PATTERN = re.compile(
    r"\b([0-1]?\d)(?::([0-5]\d))?\s*(a\.m\.|p\.m\.|am|pm)\s*(et|edt|est)\b",
    re.IGNORECASE,
)

SESSION_OPEN_MINUTES = 9 * 60 + 30
SESSION_CLOSE_MINUTES = 16 * 60


def _timing_from_clock(hour: int, minute: int, meridiem: str) -> Timing:
    if meridiem.startswith("p") and hour != 12:
        hour += 12
    if meridiem.startswith("a") and hour == 12:
        hour = 0
    minutes = hour * 60 + minute
    if minutes >= SESSION_CLOSE_MINUTES:
        return Timing.AFTER_CLOSE
    if minutes < SESSION_OPEN_MINUTES:
        return Timing.BEFORE_OPEN
    return Timing.DURING_HOURS


def infer_timing_from_text(text: str | None) -> Timing:
    """Infer announcement timing from press-release text.

    Explicit phrases win over clock times. Clock times are only trusted with
    an Eastern-time suffix. Returns UNKNOWN when nothing matches.
    """
    if not text:
        return Timing.UNKNOWN
    if any(p.search(text) for p in _AFTER_CLOSE_PATTERNS):
        return Timing.AFTER_CLOSE
    if any(p.search(text) for p in _BEFORE_OPEN_PATTERNS):
        return Timing.BEFORE_OPEN

    match = _ET_TIME_PATTERN.search(text)
    if match is None:
        return Timing.UNKNOWN
    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    return _timing_from_clock(hour, minute, match.group(3).lower())


__all__ = ["infer_timing_from_text"]
