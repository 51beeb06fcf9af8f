"""Merge earnings timelines from several providers into one record per date.

Providers disagree on the calendar date of the same event (report date vs
filing date vs press-release date), so an exact-date join silently loses
data. Reconciliation overlays exact matches first, then merges the remaining
primary records into the nearest unmatched record within a tolerance, and
only then inserts what is left.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from earnings_car.common.dates import days_between
from earnings_car.earnings.models import EarningsRecord, Timing

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_DAYS = 45


@dataclass
class _Slot:
    record: EarningsRecord
    matched: bool = False


def _overlay(
    primary: EarningsRecord,
    secondary: EarningsRecord,
    on_date: date | None = None,
) -> EarningsRecord:
    """Primary non-null fields win; primary nulls are filled from secondary."""
    eps_from_secondary = primary.eps is None and secondary.eps is not None
    return EarningsRecord(
        date=on_date or primary.date,
        timing=primary.timing if primary.timing is not Timing.UNKNOWN else secondary.timing,
        eps=secondary.eps if eps_from_secondary else primary.eps,
        revenue=primary.revenue if primary.revenue is not None else secondary.revenue,
        # provenance follows the EPS figure, which the normalizer inspects
        provenance=secondary.provenance if eps_from_secondary else primary.provenance,
    )


def _nearest_unmatched(
    slots: dict[date, _Slot],
    target: date,
    tolerance_days: int,
) -> date | None:
    best_key: date | None = None
    best_distance = tolerance_days + 1
    for key in sorted(slots):
        slot = slots[key]
        if slot.matched:
            continue
        distance = days_between(key, target)
        # strict "<" keeps the first candidate on ties
        if distance <= tolerance_days and distance < best_distance:
            best_key, best_distance = key, distance
    return best_key


def _in_range(day: date, date_range: tuple[date, date] | None) -> bool:
    if date_range is None:
        return True
    start, end = date_range
    return start <= day <= end


def reconcile_earnings(
    primary: Iterable[EarningsRecord],
    secondary: Iterable[EarningsRecord],
    tolerance_days: int = DEFAULT_TOLERANCE_DAYS,
    *,
    date_range: tuple[date, date] | None = None,
) -> list[EarningsRecord]:
    """Merge ``primary`` onto ``secondary`` producing one record per date.

    Args:
        primary: Records from the designated primary provider.
        secondary: Records from the secondary provider (timeline seed).
        tolerance_days: Max calendar-day distance for proximity matching.
        date_range: Inclusive (start, end). Unmatched primary records outside
            it are dropped, and a proximity merge never moves an in-range
            record outside it. None keeps all of them.

    Returns:
        Reconciled records sorted ascending by date.

    Raises:
        ValueError: If tolerance_days is negative.
    """
    if tolerance_days < 0:
        raise ValueError(f"tolerance_days must be >= 0, got {tolerance_days}")

    slots: dict[date, _Slot] = {}
    for rec in sorted(secondary, key=lambda r: r.date):
        existing = slots.get(rec.date)
        if existing is None:
            slots[rec.date] = _Slot(rec)
        else:
            existing.record = _overlay(existing.record, rec)

    # Exact-date matches first so proximity merges cannot steal their slot.
    pending: list[EarningsRecord] = []
    for rec in sorted(primary, key=lambda r: r.date):
        slot = slots.get(rec.date)
        if slot is None:
            pending.append(rec)
            continue
        slot.record = _overlay(rec, slot.record)
        slot.matched = True

    n_proximity = 0
    n_dropped = 0
    for rec in pending:
        slot = slots.get(rec.date)
        if slot is not None:
            slot.record = _overlay(rec, slot.record)
            slot.matched = True
            continue

        nearest = _nearest_unmatched(slots, rec.date, tolerance_days)
        if nearest is not None:
            absorbed = slots.pop(nearest)
            # the primary date wins unless it would move an in-range event out
            on_date = rec.date
            if not _in_range(rec.date, date_range) and _in_range(nearest, date_range):
                on_date = nearest
            slots[on_date] = _Slot(_overlay(rec, absorbed.record, on_date=on_date), matched=True)
            n_proximity += 1
            logger.debug(
                "earnings_proximity_merge",
                extra={
                    "primary_date": rec.date.isoformat(),
                    "secondary_date": nearest.isoformat(),
                    "merged_date": on_date.isoformat(),
                    "distance_days": days_between(rec.date, nearest),
                },
            )
        elif _in_range(rec.date, date_range):
            slots[rec.date] = _Slot(rec, matched=True)
        else:
            n_dropped += 1

    merged = [slots[key].record for key in sorted(slots)]
    logger.debug(
        "earnings_reconciled",
        extra={
            "n_records": len(merged),
            "n_proximity_merges": n_proximity,
            "n_dropped_out_of_range": n_dropped,
        },
    )
    return merged


def reconcile_providers(
    primary: Iterable[EarningsRecord],
    secondaries: Sequence[Iterable[EarningsRecord]],
    tolerance_days: int = DEFAULT_TOLERANCE_DAYS,
    *,
    date_range: tuple[date, date] | None = None,
) -> list[EarningsRecord]:
    """Reconcile N providers; earlier secondaries take precedence over later ones."""
    if not secondaries:
        return reconcile_earnings(primary, [], tolerance_days, date_range=date_range)

    merged = sorted(secondaries[0], key=lambda r: r.date)
    for other in secondaries[1:]:
        merged = reconcile_earnings(merged, other, tolerance_days, date_range=date_range)
    return reconcile_earnings(primary, merged, tolerance_days, date_range=date_range)


def filter_earnings_by_range(
    records: Iterable[EarningsRecord],
    start: date,
    end: date,
) -> list[EarningsRecord]:
    """Records dated within ``[start, end]`` inclusive."""
    return [r for r in records if start <= r.date <= end]


__all__ = [
    "DEFAULT_TOLERANCE_DAYS",
    "reconcile_earnings",
    "reconcile_providers",
    "filter_earnings_by_range",
]
