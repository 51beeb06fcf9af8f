"""End-to-end event study for one ticker.

Pipeline:

    providers -> reconcile -> normalize EPS -> detect breakpoints
              -> resolve Day0 per breakpoint -> CAR per window -> segments

All inputs are in memory (see ``earnings_car.data_providers.loader`` for the
fetching boundary). Failures local to one breakpoint or one window are
recorded in the report notes and do not abort the study.

Example:
    >>> inputs = EventStudyInputs(
    ...     ticker="NVDA",
    ...     subject=nvda_prices,
    ...     benchmark=spy_prices,
    ...     primary_earnings=finnhub_records,
    ...     secondary_earnings=[alpha_vantage_records],
    ... )
    >>> report = run_event_study(inputs, as_of=date(2024, 6, 30))
    >>> report.to_frame().select("label", "window", "car")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

import polars as pl

from earnings_car.analytics.car import (
    CARResult,
    CARWindow,
    compute_car,
    compute_market_model_car,
)
from earnings_car.analytics.labels import build_segment_label
from earnings_car.common.dates import today_utc
from earnings_car.common.exceptions import ConfigurationError, WindowUnsatisfiableError
from earnings_car.common.logging import AnalysisContext
from earnings_car.config import EventStudySettings, get_settings
from earnings_car.earnings.breakpoints import BreakpointThresholds, detect_breakpoints
from earnings_car.earnings.eps_normalizer import (
    SOURCE_VENDOR,
    EpsNormalizationOptions,
    apply_normalized_eps,
    normalize_eps,
)
from earnings_car.earnings.models import Breakpoint, EarningsRecord, EpsFactSources, SplitEvent
from earnings_car.earnings.reconciliation import reconcile_providers
from earnings_car.market_data.prices import PricePoint, align_price_series
from earnings_car.market_data.trading_calendar import (
    FallbackReason,
    format_date_range,
    resolve_day0,
)

logger = logging.getLogger(__name__)

NOTE_NO_EARNINGS = "No earnings data available for the specified period"
NOTE_NO_BREAKPOINTS = "No significant earnings breakpoints detected"
NOTE_NO_PRICES = "No overlapping subject/benchmark price data"
NOTE_ASSUME_AMC = "assume_AMC_if_unknown"
NOTE_ADJUSTED_CLOSE = "adjusted_close=true"
NOTE_DAY0_FALLBACK = "day0_fallback"
NOTE_DAY0_UNRESOLVED = "day0_unresolved"
NOTE_WINDOW_CLAMPED = "window_clamped"
NOTE_WINDOW_UNSATISFIABLE = "window_unsatisfiable"
NOTE_MARKET_MODEL_FALLBACK = "market_model_fallback"
NOTE_EPS_VENDOR_FALLBACK = "eps_vendor_fallback"


@dataclass(frozen=True)
class EventStudyInputs:
    """Everything a study needs, already fetched.

    Attributes:
        ticker: Subject ticker (for reporting only)
        subject: Subject adjusted closes
        benchmark: Benchmark adjusted closes
        benchmark_symbol: Requested benchmark; unknown symbols fall back to
            the configured default
        primary_earnings: Records from the primary (date-authoritative) provider
        secondary_earnings: Records from other providers, highest priority first
        splits: Split events for the ticker
        eps_facts: Structured and ratio-derived EPS fact series
        date_range: Inclusive study range; unmatched primary records outside
            it are dropped during reconciliation
    """

    ticker: str
    subject: Sequence[PricePoint]
    benchmark: Sequence[PricePoint]
    benchmark_symbol: str | None = None
    primary_earnings: Sequence[EarningsRecord] = ()
    secondary_earnings: Sequence[Sequence[EarningsRecord]] = ()
    splits: Sequence[SplitEvent] = ()
    eps_facts: EpsFactSources = field(default_factory=EpsFactSources)
    date_range: tuple[date, date] | None = None


@dataclass(frozen=True)
class EventSegment:
    """CAR of one breakpoint over one window."""

    label: str
    breakpoint: Breakpoint
    day0: date
    period_start: date
    period_end: date
    result: CARResult
    fallback_used: bool = False
    fallback_reason: FallbackReason = FallbackReason.NONE

    @property
    def window(self) -> str:
        return self.result.window.label

    @property
    def partial(self) -> bool:
        return self.result.partial

    @property
    def short_window(self) -> bool:
        return self.result.short_window


@dataclass(frozen=True)
class EventStudyReport:
    """Segments plus report-level notes (degradation markers, benchmark used)."""

    ticker: str
    as_of: date
    benchmark_symbol: str
    segments: tuple[EventSegment, ...] = ()
    breakpoints: tuple[Breakpoint, ...] = ()
    notes: tuple[str, ...] = ()
    analysis_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.segments

    def to_frame(self) -> pl.DataFrame:
        """One row per segment."""
        rows = []
        for seg in self.segments:
            fit = seg.result.market_model
            rows.append(
                {
                    "label": seg.label,
                    "announce_date": seg.breakpoint.announce_date,
                    "timing": seg.breakpoint.timing.value,
                    "eps": seg.breakpoint.eps,
                    "eps_yoy": seg.breakpoint.eps_yoy,
                    "rev_yoy": seg.breakpoint.rev_yoy,
                    "day0": seg.day0,
                    "period_start": seg.period_start,
                    "period_end": seg.period_end,
                    "window": seg.window,
                    "car": seg.result.car,
                    "ret_sum": seg.result.ret_sum,
                    "bench_sum": seg.result.bench_sum,
                    "window_days": seg.result.window_days,
                    "t_stat": fit.t_stat if fit else None,
                    "p_value": fit.p_value if fit else None,
                    "partial": seg.partial,
                    "short_window": seg.short_window,
                    "fallback_used": seg.fallback_used,
                    "fallback_reason": seg.fallback_reason.value,
                }
            )
        return pl.DataFrame(rows, schema=_FRAME_SCHEMA)


_FRAME_SCHEMA: dict[str, pl.DataType | type[pl.DataType]] = {
    "label": pl.String,
    "announce_date": pl.Date,
    "timing": pl.String,
    "eps": pl.Float64,
    "eps_yoy": pl.Float64,
    "rev_yoy": pl.Float64,
    "day0": pl.Date,
    "period_start": pl.Date,
    "period_end": pl.Date,
    "window": pl.String,
    "car": pl.Float64,
    "ret_sum": pl.Float64,
    "bench_sum": pl.Float64,
    "window_days": pl.Int64,
    "t_stat": pl.Float64,
    "p_value": pl.Float64,
    "partial": pl.Boolean,
    "short_window": pl.Boolean,
    "fallback_used": pl.Boolean,
    "fallback_reason": pl.String,
}


def _parse_windows(settings: EventStudySettings) -> list[CARWindow]:
    try:
        return [CARWindow.parse(label) for label in settings.car_windows]
    except ValueError as e:
        raise ConfigurationError(f"Invalid car_windows {settings.car_windows}: {e}") from e


def run_event_study(
    inputs: EventStudyInputs,
    settings: EventStudySettings | None = None,
    *,
    as_of: date | None = None,
) -> EventStudyReport:
    """Run the full event study for one ticker.

    Args:
        inputs: Pre-fetched prices, earnings, splits and EPS facts.
        settings: Configuration (default: ``get_settings()``).
        as_of: "Now" for future-date filtering (default: today, UTC).

    Returns:
        EventStudyReport. Empty earnings or no breakpoints produce an empty
        report with an explanatory note, not an exception.

    Raises:
        ConfigurationError: If the configured windows cannot be parsed.
    """
    settings = settings or get_settings()
    now = as_of or today_utc()
    windows = _parse_windows(settings)
    bench_symbol = settings.resolve_benchmark(inputs.benchmark_symbol)

    notes: dict[str, None] = dict.fromkeys(
        [NOTE_ASSUME_AMC, NOTE_ADJUSTED_CLOSE, f"bench={bench_symbol}"]
    )

    with AnalysisContext() as analysis_id:
        logger.info(
            "event_study_started",
            extra={
                "ticker": inputs.ticker,
                "benchmark": bench_symbol,
                "windows": [w.label for w in windows],
                "market_model": settings.use_market_model,
                "as_of": now.isoformat(),
            },
        )

        def empty(note: str, breakpoints: Sequence[Breakpoint] = ()) -> EventStudyReport:
            logger.info("event_study_empty", extra={"ticker": inputs.ticker, "reason": note})
            return EventStudyReport(
                ticker=inputs.ticker,
                as_of=now,
                benchmark_symbol=bench_symbol,
                breakpoints=tuple(breakpoints),
                notes=(note, *notes),
                analysis_id=analysis_id,
            )

        reconciled = reconcile_providers(
            inputs.primary_earnings,
            list(inputs.secondary_earnings),
            settings.reconcile_tolerance_days,
            date_range=inputs.date_range,
        )
        if not reconciled:
            return empty(NOTE_NO_EARNINGS)

        points = normalize_eps(
            reconciled,
            inputs.splits,
            inputs.eps_facts,
            EpsNormalizationOptions.from_settings(settings),
        )
        if any(p.source == SOURCE_VENDOR for p in points):
            notes[NOTE_EPS_VENDOR_FALLBACK] = None
        timeline = apply_normalized_eps(reconciled, points)

        breakpoints = detect_breakpoints(
            timeline, BreakpointThresholds.from_settings(settings), as_of=now
        )
        if not breakpoints:
            return empty(NOTE_NO_BREAKPOINTS)

        aligned = align_price_series(inputs.subject, inputs.benchmark)
        trading_dates = aligned.dates
        if not trading_dates:
            return empty(NOTE_NO_PRICES, breakpoints)

        segments: list[EventSegment] = []
        for bp in breakpoints:
            resolution = resolve_day0(bp.announce_date, bp.timing, trading_dates, as_of=now)
            if resolution.fallback_used:
                notes[NOTE_DAY0_FALLBACK] = None
            if resolution.trading_index is None:
                notes[NOTE_DAY0_UNRESOLVED] = None
                continue
            day0 = resolution.trading_index

            for window in windows:
                try:
                    if settings.use_market_model:
                        result = compute_market_model_car(
                            aligned,
                            day0,
                            window,
                            settings.estimation_window,
                            min_observations=settings.min_estimation_obs,
                        )
                    else:
                        result = compute_car(aligned, day0, window)
                except WindowUnsatisfiableError as e:
                    logger.warning(
                        "car_window_skipped",
                        extra={
                            "announce_date": bp.announce_date.isoformat(),
                            "window": e.window_label,
                        },
                    )
                    notes[NOTE_WINDOW_UNSATISFIABLE] = None
                    continue

                if result.partial:
                    notes[NOTE_WINDOW_CLAMPED] = None
                if result.market_model is not None and result.market_model.fallback:
                    notes[NOTE_MARKET_MODEL_FALLBACK] = None

                period = format_date_range(
                    day0 + window.start_offset, day0 + window.end_offset, trading_dates
                )
                # trading_dates is non-empty here, so period is always set
                period_start, period_end = period or (trading_dates[0], trading_dates[-1])
                segments.append(
                    EventSegment(
                        label=build_segment_label(bp),
                        breakpoint=bp,
                        day0=trading_dates[day0],
                        period_start=period_start,
                        period_end=period_end,
                        result=result,
                        fallback_used=resolution.fallback_used,
                        fallback_reason=resolution.fallback_reason,
                    )
                )

        logger.info(
            "event_study_completed",
            extra={
                "ticker": inputs.ticker,
                "n_breakpoints": len(breakpoints),
                "n_segments": len(segments),
                "notes": list(notes),
            },
        )
        return EventStudyReport(
            ticker=inputs.ticker,
            as_of=now,
            benchmark_symbol=bench_symbol,
            segments=tuple(segments),
            breakpoints=tuple(breakpoints),
            notes=tuple(notes),
            analysis_id=analysis_id,
        )


__all__ = [
    "EventStudyInputs",
    "EventSegment",
    "EventStudyReport",
    "run_event_study",
]
