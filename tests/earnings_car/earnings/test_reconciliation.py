"""Tests for multi-provider earnings reconciliation."""

from __future__ import annotations

from datetime import date

import pytest

from earnings_car.earnings.models import EarningsRecord, Provenance, Timing
from earnings_car.earnings.reconciliation import (
    filter_earnings_by_range,
    reconcile_earnings,
    reconcile_providers,
)


def _rec(
    day: date,
    eps: float | None = None,
    revenue: float | None = None,
    timing: Timing = Timing.UNKNOWN,
    provenance: str = Provenance.FINNHUB,
) -> EarningsRecord:
    return EarningsRecord(day, timing, eps, revenue, provenance)


class TestReconcileEarnings:
    """Tests for reconcile_earnings."""

    def test_exact_match_overlays_fields(self) -> None:
        """Primary non-null fields win; nulls and unknown timing are filled."""
        primary = [_rec(date(2023, 5, 1), eps=1.0)]
        secondary = [
            _rec(
                date(2023, 5, 1),
                eps=0.9,
                revenue=100.0,
                timing=Timing.AFTER_CLOSE,
                provenance=Provenance.ALPHA_VANTAGE,
            )
        ]

        (merged,) = reconcile_earnings(primary, secondary)

        assert merged.eps == 1.0
        assert merged.revenue == 100.0
        assert merged.timing is Timing.AFTER_CLOSE
        assert merged.provenance == Provenance.FINNHUB

    def test_provenance_follows_eps(self) -> None:
        """When EPS comes from the secondary, so does provenance."""
        primary = [_rec(date(2023, 5, 1), revenue=100.0)]
        secondary = [_rec(date(2023, 5, 1), eps=0.9, provenance=Provenance.SEC_PRESS_RELEASE)]

        (merged,) = reconcile_earnings(primary, secondary)

        assert merged.eps == 0.9
        assert merged.provenance == Provenance.SEC_PRESS_RELEASE

    def test_proximity_merge_takes_primary_date(self) -> None:
        """A primary record 11 days from a secondary one merges under the primary date."""
        primary = [_rec(date(2023, 5, 1), eps=1.0, timing=Timing.AFTER_CLOSE)]
        secondary = [_rec(date(2023, 4, 20), revenue=100.0, provenance=Provenance.YAHOO)]

        merged = reconcile_earnings(primary, secondary, tolerance_days=45)

        assert merged == [
            EarningsRecord(date(2023, 5, 1), Timing.AFTER_CLOSE, 1.0, 100.0, Provenance.FINNHUB)
        ]

    def test_beyond_tolerance_inserts(self) -> None:
        """Records farther apart than the tolerance stay separate."""
        primary = [_rec(date(2023, 5, 1), eps=1.0)]
        secondary = [_rec(date(2023, 2, 1), eps=0.8)]

        merged = reconcile_earnings(primary, secondary, tolerance_days=45)

        assert [r.date for r in merged] == [date(2023, 2, 1), date(2023, 5, 1)]

    def test_tolerance_is_inclusive(self) -> None:
        """A distance equal to the tolerance still matches."""
        primary = [_rec(date(2023, 5, 1), eps=1.0)]
        secondary = [_rec(date(2023, 4, 21), revenue=10.0)]

        merged = reconcile_earnings(primary, secondary, tolerance_days=10)

        assert len(merged) == 1

    def test_tie_prefers_earlier_candidate(self) -> None:
        """Equidistant candidates: the first in date order absorbs the primary."""
        primary = [_rec(date(2023, 5, 10), eps=1.0)]
        secondary = [_rec(date(2023, 5, 5), revenue=1.0), _rec(date(2023, 5, 15), revenue=2.0)]

        merged = reconcile_earnings(primary, secondary)

        assert [(r.date, r.revenue) for r in merged] == [
            (date(2023, 5, 10), 1.0),
            (date(2023, 5, 15), 2.0),
        ]

    def test_exact_match_not_stolen_by_proximity(self) -> None:
        """A slot claimed by an exact match is not reused for a nearby record."""
        primary = [_rec(date(2023, 5, 1), eps=1.0), _rec(date(2023, 5, 3), eps=2.0)]
        secondary = [_rec(date(2023, 5, 3), revenue=50.0)]

        merged = reconcile_earnings(primary, secondary)

        assert [(r.date, r.eps, r.revenue) for r in merged] == [
            (date(2023, 5, 1), 1.0, None),
            (date(2023, 5, 3), 2.0, 50.0),
        ]

    def test_date_range_drops_unmatched_outside(self) -> None:
        """Unmatched primary records outside the range are dropped."""
        primary = [_rec(date(2021, 1, 1), eps=1.0), _rec(date(2023, 5, 1), eps=2.0)]

        merged = reconcile_earnings(
            primary, [], date_range=(date(2022, 1, 1), date(2023, 12, 31))
        )

        assert [r.date for r in merged] == [date(2023, 5, 1)]

    def test_proximity_merge_keeps_in_range_date(self) -> None:
        """An out-of-range primary merging into an in-range record keeps the in-range date."""
        primary = [_rec(date(2024, 1, 5), eps=1.0)]
        secondary = [_rec(date(2023, 12, 20), revenue=5.0)]

        merged = reconcile_earnings(
            primary,
            secondary,
            tolerance_days=45,
            date_range=(date(2023, 1, 1), date(2023, 12, 31)),
        )

        assert merged == [
            EarningsRecord(date(2023, 12, 20), Timing.UNKNOWN, 1.0, 5.0, Provenance.FINNHUB)
        ]

    def test_proximity_merge_outside_range_keeps_primary_date(self) -> None:
        """With both dates outside the range the primary date still wins."""
        primary = [_rec(date(2024, 1, 5), eps=1.0)]
        secondary = [_rec(date(2024, 1, 2), revenue=5.0)]

        merged = reconcile_earnings(
            primary, secondary, date_range=(date(2023, 1, 1), date(2023, 12, 31))
        )

        assert [(r.date, r.eps, r.revenue) for r in merged] == [(date(2024, 1, 5), 1.0, 5.0)]

    def test_duplicate_secondary_dates_collapse(self) -> None:
        """Duplicates within one provider collapse with fill-if-null."""
        secondary = [_rec(date(2023, 5, 1), eps=1.0), _rec(date(2023, 5, 1), revenue=10.0)]

        (merged,) = reconcile_earnings([], secondary)

        assert (merged.eps, merged.revenue) == (1.0, 10.0)

    def test_output_sorted_and_unique(self) -> None:
        """Output is ascending with one record per date."""
        primary = [_rec(date(2023, 8, 1), eps=1.0), _rec(date(2023, 2, 1), eps=2.0)]
        secondary = [_rec(date(2023, 5, 1), eps=3.0), _rec(date(2023, 8, 1), revenue=4.0)]

        merged = reconcile_earnings(primary, secondary)
        dates = [r.date for r in merged]

        assert dates == sorted(set(dates))

    def test_idempotent_with_itself(self) -> None:
        """Reconciling a timeline with itself returns it unchanged."""
        timeline = [
            _rec(date(2023, 2, 1), eps=1.0, revenue=10.0, timing=Timing.BEFORE_OPEN),
            _rec(date(2023, 5, 1), eps=None, revenue=11.0),
            _rec(date(2023, 8, 1), eps=1.2, timing=Timing.AFTER_CLOSE),
        ]

        assert reconcile_earnings(timeline, timeline) == timeline

    def test_negative_tolerance_raises(self) -> None:
        """Negative tolerance is rejected."""
        with pytest.raises(ValueError, match="tolerance_days"):
            reconcile_earnings([], [], tolerance_days=-1)


class TestReconcileProviders:
    """Tests for folding several providers."""

    def test_earlier_secondary_has_priority(self) -> None:
        """The first secondary wins over later ones; primary wins over all."""
        first = [_rec(date(2023, 5, 1), eps=1.0, provenance=Provenance.ALPHA_VANTAGE)]
        second = [_rec(date(2023, 5, 1), eps=2.0, revenue=20.0, provenance=Provenance.YAHOO)]
        primary = [_rec(date(2023, 5, 1), timing=Timing.AFTER_CLOSE)]

        (merged,) = reconcile_providers(primary, [first, second])

        assert merged.eps == 1.0
        assert merged.revenue == 20.0
        assert merged.timing is Timing.AFTER_CLOSE
        assert merged.provenance == Provenance.ALPHA_VANTAGE

    def test_no_secondaries(self) -> None:
        """Primary alone is returned sorted."""
        primary = [_rec(date(2023, 8, 1)), _rec(date(2023, 5, 1))]
        assert [r.date for r in reconcile_providers(primary, [])] == [
            date(2023, 5, 1),
            date(2023, 8, 1),
        ]


def test_filter_earnings_by_range() -> None:
    """Range filter is inclusive on both ends."""
    records = [_rec(date(2023, 1, 1)), _rec(date(2023, 6, 1)), _rec(date(2023, 12, 31))]
    kept = filter_earnings_by_range(records, date(2023, 1, 1), date(2023, 6, 1))
    assert [r.date for r in kept] == [date(2023, 1, 1), date(2023, 6, 1)]
