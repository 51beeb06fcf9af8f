"""Cumulative abnormal return (CAR) around Day0.

Two models share the same window handling:

- Simple CAR: sum of daily subject returns minus sum of daily benchmark
  returns, ``car = ret_sum - bench_sum``.
- Market-model CAR: alpha/beta estimated by OLS of subject log returns on
  benchmark log returns over an estimation window ending at Day0; abnormal
  return ``ar_i = r_i - (alpha + beta * m_i)``; ``car = sum(ar_i)`` with a
  t-statistic from the estimation residual standard deviation.

Window handling: ``start = day0 + start_offset`` and ``end = day0 + end_offset``
are clamped to ``[0, len - 1]``; any clamping marks the result partial. A window
that cannot cover a single daily return after clamping raises
``WindowUnsatisfiableError``.

References:
- MacKinlay (1997): Event Studies in Economics and Finance
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any

import numpy as np
from scipy.stats import t as t_dist  # type: ignore[import-untyped]

from earnings_car.common.exceptions import WindowUnsatisfiableError
from earnings_car.config import WINDOW_LABEL_PATTERN
from earnings_car.market_data.prices import AlignedSeries

logger = logging.getLogger(__name__)

DEFAULT_ESTIMATION_WINDOW = 252
MIN_ESTIMATION_OBS = 20


# =============================================================================
# Windows and results
# =============================================================================


def _format_offset(offset: int) -> str:
    return "0" if offset == 0 else f"{offset:+d}"


@dataclass(frozen=True)
class CARWindow:
    """Trading-day offsets relative to Day0, e.g. ``CARWindow(-1, 5)``."""

    start_offset: int
    end_offset: int

    def __post_init__(self) -> None:
        if self.start_offset >= self.end_offset:
            raise ValueError(
                f"start_offset ({self.start_offset}) must be < end_offset ({self.end_offset})"
            )

    @property
    def nominal_days(self) -> int:
        """Daily returns in a fully covered window."""
        return self.end_offset - self.start_offset

    @property
    def label(self) -> str:
        return f"[{_format_offset(self.start_offset)},{_format_offset(self.end_offset)}]"

    @classmethod
    def parse(cls, label: str) -> CARWindow:
        """Parse ``"[-1,+5]"`` into ``CARWindow(-1, 5)``."""
        match = WINDOW_LABEL_PATTERN.match(label.strip())
        if match is None:
            raise ValueError(f"Invalid window label: {label!r}")
        return cls(int(match.group(1)), int(match.group(2)))


@dataclass(frozen=True)
class MarketModelFit:
    """Market-model parameters and CAR significance.

    ``fallback`` is True when there was not enough estimation data; alpha and
    beta are then the neutral 0 and 1 and the CAR is the simple CAR.
    """

    alpha: float
    beta: float
    n: int  # paired observations in the estimation window
    t_stat: float | None = None
    p_value: float | None = None
    residual_std: float | None = None
    r_squared: float | None = None
    fallback: bool = False


@dataclass(frozen=True)
class CARResult:
    """CAR for one (Day0, window) pair.

    Attributes:
        car: Cumulative abnormal return (decimal)
        ret_sum: Sum of daily simple subject returns over the window
        bench_sum: Sum of daily simple benchmark returns over the window
        window_days: Daily observations actually accumulated
        partial: Window was clamped or covers fewer days than nominal
        short_window: Market-model estimation used fewer days than requested
        start_index: First price index of the (clamped) window
        end_index: Last price index of the (clamped) window
        window: The requested window
        market_model: Fit details for market-model CAR, None for simple CAR
    """

    car: float
    ret_sum: float
    bench_sum: float
    window_days: int
    partial: bool
    start_index: int
    end_index: int
    window: CARWindow
    short_window: bool = False
    market_model: MarketModelFit | None = None


# =============================================================================
# Helper Functions
# =============================================================================


def _clamp_window(n_points: int, day0: int, window: CARWindow) -> tuple[int, int, bool]:
    """Return (start_idx, end_idx, clamped) or raise if nothing overlaps."""
    if n_points > 0 and not 0 <= day0 < n_points:
        raise ValueError(f"day0 index {day0} outside series of length {n_points}")

    max_index = n_points - 1
    start_idx = day0 + window.start_offset
    end_idx = day0 + window.end_offset
    clamped = False

    if start_idx < 0:
        start_idx = 0
        clamped = True
    if end_idx > max_index:
        end_idx = max_index
        clamped = True

    if start_idx > max_index or start_idx >= end_idx:
        logger.warning(
            "car_window_unsatisfiable",
            extra={
                "window": window.label,
                "day0": day0,
                "start_idx": start_idx,
                "end_idx": end_idx,
                "n_points": n_points,
            },
        )
        raise WindowUnsatisfiableError(window.label, start_idx, end_idx)
    return start_idx, end_idx, clamped


def _log_returns(
    aligned: AlignedSeries, start_idx: int, end_idx: int
) -> tuple[np.ndarray[Any, np.dtype[np.floating[Any]]], np.ndarray[Any, np.dtype[np.floating[Any]]]]:
    """Subject and benchmark log returns for price pairs (i, i+1), start <= i < end."""
    subject = np.array(
        [p.adjusted_close for p in aligned.subject[start_idx : end_idx + 1]], dtype=float
    )
    bench = np.array(
        [p.adjusted_close for p in aligned.benchmark[start_idx : end_idx + 1]], dtype=float
    )
    return np.log(subject[1:] / subject[:-1]), np.log(bench[1:] / bench[:-1])


def _run_ols_regression(
    y: np.ndarray[Any, np.dtype[np.floating[Any]]],
    x: np.ndarray[Any, np.dtype[np.floating[Any]]],
) -> tuple[float, float, float, float]:
    """Single-factor OLS ``y = alpha + beta * x + e``.

    Returns:
        Tuple of (alpha, beta, r_squared, residual_std) where residual_std
        uses n - 2 degrees of freedom.
    """
    n = len(y)
    X = np.column_stack([np.ones(n), x])
    # lstsq for numerical stability instead of explicit matrix inversion
    coefficients, _, _, _ = np.linalg.lstsq(X, y, rcond=None)
    alpha, beta = float(coefficients[0]), float(coefficients[1])

    residuals = y - (alpha + beta * x)
    ss_res = float(np.sum(residuals**2))
    ss_tot = float(np.sum((y - np.mean(y)) ** 2))
    dof = max(1, n - 2)
    residual_std = math.sqrt(ss_res / dof)
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
    return alpha, beta, r_squared, residual_std


# =============================================================================
# CAR computation
# =============================================================================


def compute_car(aligned: AlignedSeries, day0: int, window: CARWindow) -> CARResult:
    """Simple CAR: subject return sum minus benchmark return sum.

    Args:
        aligned: Subject and benchmark on identical trading dates.
        day0: Index of Day0 in ``aligned``.
        window: Offsets relative to Day0.

    Returns:
        CARResult with ``car == ret_sum - bench_sum``.

    Raises:
        WindowUnsatisfiableError: If no daily return fits after clamping.
        ValueError: If day0 is outside the series.
    """
    n_points = min(len(aligned.subject), len(aligned.benchmark))
    start_idx, end_idx, clamped = _clamp_window(n_points, day0, window)

    ret_sum = 0.0
    bench_sum = 0.0
    window_days = 0
    for i in range(start_idx, end_idx):
        if i + 1 >= n_points:
            break
        ret_sum += aligned.subject[i + 1].adjusted_close / aligned.subject[i].adjusted_close - 1
        bench_sum += (
            aligned.benchmark[i + 1].adjusted_close / aligned.benchmark[i].adjusted_close - 1
        )
        window_days += 1

    partial = clamped or window_days < window.nominal_days
    if partial:
        logger.info(
            "car_window_clamped",
            extra={"window": window.label, "day0": day0, "window_days": window_days},
        )

    return CARResult(
        car=ret_sum - bench_sum,
        ret_sum=ret_sum,
        bench_sum=bench_sum,
        window_days=window_days,
        partial=partial,
        start_index=start_idx,
        end_index=end_idx,
        window=window,
    )


def estimate_market_model(
    aligned: AlignedSeries,
    day0: int,
    estimation_window: int = DEFAULT_ESTIMATION_WINDOW,
    *,
    min_observations: int = MIN_ESTIMATION_OBS,
) -> MarketModelFit:
    """Estimate alpha/beta on log returns over the window ending at Day0.

    The estimation uses price pairs (i, i+1) for
    ``max(0, day0 - estimation_window) <= i < day0``. With fewer than
    ``min_observations`` pairs, or a constant benchmark, the neutral fit
    (alpha=0, beta=1, fallback=True) is returned.
    """
    if estimation_window < 1:
        raise ValueError(f"estimation_window must be >= 1, got {estimation_window}")

    est_start = max(0, day0 - estimation_window)
    n_points = min(len(aligned.subject), len(aligned.benchmark))
    est_end = min(day0, n_points - 1)
    if est_end <= est_start:
        return MarketModelFit(alpha=0.0, beta=1.0, n=0, fallback=True)

    ri, rm = _log_returns(aligned, est_start, est_end)
    mask = np.isfinite(ri) & np.isfinite(rm)
    ri, rm = ri[mask], rm[mask]
    n = int(len(ri))

    if n < min_observations or float(np.var(rm)) <= 0.0:
        logger.info(
            "market_model_insufficient_data",
            extra={"day0": day0, "n_observations": n, "min_observations": min_observations},
        )
        return MarketModelFit(alpha=0.0, beta=1.0, n=n, fallback=True)

    alpha, beta, r_squared, residual_std = _run_ols_regression(ri, rm)
    return MarketModelFit(
        alpha=alpha,
        beta=beta,
        n=n,
        residual_std=residual_std,
        r_squared=r_squared,
    )


def compute_market_model_car(
    aligned: AlignedSeries,
    day0: int,
    window: CARWindow,
    estimation_window: int = DEFAULT_ESTIMATION_WINDOW,
    *,
    min_observations: int = MIN_ESTIMATION_OBS,
) -> CARResult:
    """Market-model CAR with a t-statistic.

    ``t_stat = car / (residual_std / sqrt(n))`` where ``n`` is the number of
    abnormal returns in the event window; defined only when ``n > 1`` and
    ``residual_std > 0``. The two-sided p-value uses Student's t with
    ``n_estimation - 2`` degrees of freedom.

    Insufficient estimation data is not an error: the simple CAR is returned
    with a neutral fit (alpha=0, beta=1, fallback=True).

    Raises:
        WindowUnsatisfiableError: If no daily return fits after clamping.
    """
    base = compute_car(aligned, day0, window)
    fit = estimate_market_model(
        aligned, day0, estimation_window, min_observations=min_observations
    )
    short_window = fit.n < estimation_window

    if fit.fallback:
        return replace(base, market_model=fit, short_window=short_window)

    ri, rm = _log_returns(aligned, base.start_index, base.end_index)
    car = 0.0
    for r_subject, r_bench in zip(ri.tolist(), rm.tolist()):
        car += r_subject - (fit.alpha + fit.beta * r_bench)
    n = len(ri)

    t_stat: float | None = None
    p_value: float | None = None
    if n > 1 and fit.residual_std is not None and fit.residual_std > 0:
        t_stat = car / (fit.residual_std / math.sqrt(n))
        p_value = float(2 * t_dist.sf(abs(t_stat), df=max(1, fit.n - 2)))

    logger.debug(
        "market_model_car_computed",
        extra={
            "window": window.label,
            "day0": day0,
            "alpha": fit.alpha,
            "beta": fit.beta,
            "car": car,
            "t_stat": t_stat,
        },
    )
    return CARResult(
        car=car,
        ret_sum=base.ret_sum,
        bench_sum=base.bench_sum,
        window_days=n,
        partial=base.partial,
        start_index=base.start_index,
        end_index=base.end_index,
        window=window,
        short_window=short_window,
        market_model=replace(fit, t_stat=t_stat, p_value=p_value),
    )


__all__ = [
    "DEFAULT_ESTIMATION_WINDOW",
    "MIN_ESTIMATION_OBS",
    "CARWindow",
    "CARResult",
    "MarketModelFit",
    "compute_car",
    "compute_market_model_car",
    "estimate_market_model",
]
