"""Tests for EventStudySettings and the exception hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from earnings_car.common.exceptions import (
    DataProviderError,
    EventStudyError,
    InvalidSeriesError,
    WindowUnsatisfiableError,
)
from earnings_car.config import EventStudySettings, get_settings


class TestEventStudySettings:
    """Tests for settings defaults, validation and environment overrides."""

    def test_defaults(self) -> None:
        """Defaults match the documented reference values."""
        settings = EventStudySettings()

        assert settings.benchmark_symbol == "SPY"
        assert settings.car_windows == ["[-1,+5]", "[-5,+20]"]
        assert settings.use_market_model is False
        assert settings.estimation_window == 252
        assert settings.min_estimation_obs == 20
        assert settings.eps_yoy_threshold == 0.15
        assert settings.rev_yoy_threshold == 0.15
        assert settings.reconcile_tolerance_days == 45
        assert (
            settings.eps_fact_tolerance_days,
            settings.eps_fact_relaxed_tolerance_days,
            settings.eps_fact_max_gap_days,
        ) == (120, 180, 200)
        assert settings.allow_vendor_eps is False

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """EVENT_STUDY_* variables override defaults."""
        monkeypatch.setenv("EVENT_STUDY_EPS_YOY_THRESHOLD", "0.05")
        monkeypatch.setenv("EVENT_STUDY_USE_MARKET_MODEL", "true")
        monkeypatch.setenv("EVENT_STUDY_CAR_WINDOWS", '["[0,+1]"]')

        settings = get_settings()

        assert settings.eps_yoy_threshold == 0.05
        assert settings.use_market_model is True
        assert settings.car_windows == ["[0,+1]"]

    @pytest.mark.parametrize("windows", [[], ["[5,-1]"], ["[1,1]"], ["-1..5"]])
    def test_invalid_windows(self, windows: list[str]) -> None:
        """Windows must be non-empty, well-formed and start < end."""
        with pytest.raises(ValidationError):
            EventStudySettings(car_windows=windows)

    def test_negative_threshold(self) -> None:
        """Thresholds must be non-negative."""
        with pytest.raises(ValidationError):
            EventStudySettings(eps_yoy_threshold=-0.1)

    def test_inverted_tolerances(self) -> None:
        """EPS fact tolerances must be ordered."""
        with pytest.raises(ValidationError, match="tolerance"):
            EventStudySettings(eps_fact_tolerance_days=190, eps_fact_relaxed_tolerance_days=180)

    def test_invalid_log_level(self) -> None:
        """Unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            EventStudySettings(log_level="LOUD")

    def test_resolve_benchmark(self) -> None:
        """Allowed benchmarks pass through; anything else uses the default."""
        settings = EventStudySettings()

        assert settings.resolve_benchmark("xle") == "XLE"
        assert settings.resolve_benchmark("DOGE") == "SPY"
        assert settings.resolve_benchmark(None) == "SPY"

    def test_get_settings_cached(self) -> None:
        """get_settings returns the same instance."""
        assert get_settings() is get_settings()


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self) -> None:
        """All library errors derive from EventStudyError."""
        assert issubclass(InvalidSeriesError, EventStudyError)
        assert issubclass(InvalidSeriesError, ValueError)
        assert issubclass(WindowUnsatisfiableError, EventStudyError)
        assert issubclass(DataProviderError, EventStudyError)

    def test_window_unsatisfiable_attributes(self) -> None:
        """The window and clamped indices are kept for reporting."""
        error = WindowUnsatisfiableError("[+1,+5]", 5, 4)

        assert (error.window_label, error.start_index, error.end_index) == ("[+1,+5]", 5, 4)
        assert "[+1,+5]" in str(error)

    def test_data_provider_default_message(self) -> None:
        """DataProviderError names the provider."""
        error = DataProviderError("finnhub")
        assert error.provider_name == "finnhub"
        assert "finnhub" in str(error)
