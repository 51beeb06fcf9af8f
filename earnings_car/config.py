"""
Configuration for the earnings event-study library.

Settings use Pydantic Settings and can be overridden via ``EVENT_STUDY_*``
environment variables or a ``.env`` file.

Example:
    >>> from earnings_car.config import get_settings
    >>> settings = get_settings()
    >>> settings.car_windows
    ['[-1,+5]', '[-5,+20]']

    # Via environment variables
    export EVENT_STUDY_EPS_YOY_THRESHOLD=0.05
    export EVENT_STUDY_USE_MARKET_MODEL=true
"""

from __future__ import annotations

import re
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WINDOW_LABEL_PATTERN = re.compile(r"^\[\s*([+-]?\d+)\s*,\s*([+-]?\d+)\s*\]$")


class EventStudySettings(BaseSettings):
    """
    Event-study configuration settings.

    Attributes:
        benchmark_symbol: Default benchmark ticker for CAR
        allowed_benchmarks: Benchmarks a caller may request
        car_windows: CAR windows as "[start,end]" trading-day offset labels
        use_market_model: Compute market-model CAR instead of simple CAR
        estimation_window: Trading days in the market-model estimation window
        min_estimation_obs: Minimum paired observations for the market model
        eps_yoy_threshold: |EPS YoY| at or above which an event is a breakpoint
        rev_yoy_threshold: |Revenue YoY| at or above which an event is a breakpoint
        reconcile_tolerance_days: Proximity-matching tolerance between providers
        eps_fact_tolerance_days: Preferred max gap for nearest-prior EPS facts
        eps_fact_relaxed_tolerance_days: Relaxed max gap when nothing closer exists
        eps_fact_max_gap_days: Facts older than this are never considered
        allow_vendor_eps: Allow vendor-reported EPS as the last-resort source
        log_level: Logging level for configure_logging
    """

    # ========================================================================
    # Benchmark and windows
    # ========================================================================

    benchmark_symbol: str = "SPY"
    """Benchmark used when the caller does not choose one."""

    allowed_benchmarks: list[str] = Field(default_factory=lambda: ["SPY", "XLE", "QQQ", "IWM"])
    """Benchmarks accepted from callers. Anything else falls back to benchmark_symbol."""

    car_windows: list[str] = Field(default_factory=lambda: ["[-1,+5]", "[-5,+20]"])
    """
    CAR windows computed for every breakpoint.

    Format: "[start,end]" with start < end, offsets in trading days from Day0.
    """

    # ========================================================================
    # Market model
    # ========================================================================

    use_market_model: bool = False
    """Use the market-model (alpha/beta) CAR with t-statistics."""

    estimation_window: int = Field(default=252, ge=1)
    """Trading days of log returns ending at Day0 used to estimate alpha/beta."""

    min_estimation_obs: int = Field(default=20, ge=3)
    """Below this many paired observations the market model falls back to simple CAR."""

    # ========================================================================
    # Breakpoint thresholds
    # ========================================================================

    eps_yoy_threshold: float = Field(default=0.15, ge=0.0)
    """
    EPS YoY significance threshold.

    Deployments have used values from 0.05 (sensitive) to 0.20 (conservative).
    """

    rev_yoy_threshold: float = Field(default=0.15, ge=0.0)
    """Revenue YoY significance threshold."""

    # ========================================================================
    # Earnings reconciliation / EPS normalization
    # ========================================================================

    reconcile_tolerance_days: int = Field(default=45, ge=0)
    """
    Max calendar-day distance for merging the same event across providers.

    Report date vs filing date vs press-release date typically differ by up to
    45-75 days depending on the provider pairing.
    """

    eps_fact_tolerance_days: int = Field(default=120, ge=0)
    eps_fact_relaxed_tolerance_days: int = Field(default=180, ge=0)
    eps_fact_max_gap_days: int = Field(default=200, ge=0)

    allow_vendor_eps: bool = False
    """Allow vendor-reported EPS when no structured or ratio fact exists."""

    # ========================================================================
    # Logging
    # ========================================================================

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="EVENT_STUDY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("car_windows")
    @classmethod
    def _validate_windows(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("car_windows must not be empty")
        for label in value:
            match = WINDOW_LABEL_PATTERN.match(label)
            if match is None:
                raise ValueError(f"Invalid window label: {label!r}")
            if int(match.group(1)) >= int(match.group(2)):
                raise ValueError(f"Window start must be < end: {label!r}")
        return value

    @field_validator("benchmark_symbol")
    @classmethod
    def _upper_benchmark(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @model_validator(mode="after")
    def _validate_tolerances(self) -> EventStudySettings:
        if not (
            self.eps_fact_tolerance_days
            <= self.eps_fact_relaxed_tolerance_days
            <= self.eps_fact_max_gap_days
        ):
            raise ValueError(
                "EPS fact tolerances must satisfy "
                "tolerance <= relaxed_tolerance <= max_gap"
            )
        return self

    def resolve_benchmark(self, requested: str | None) -> str:
        """Return ``requested`` if it is an allowed benchmark, else the default."""
        if requested and requested.strip().upper() in {b.upper() for b in self.allowed_benchmarks}:
            return requested.strip().upper()
        return self.benchmark_symbol


@lru_cache(maxsize=1)
def get_settings() -> EventStudySettings:
    """Return the process-wide settings, loaded once from the environment."""
    return EventStudySettings()
