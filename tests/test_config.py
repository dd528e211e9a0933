"""Tests for pydantic-settings configuration defaults and env overrides."""

from datetime import date
from decimal import Decimal

import pytest

from ipo_yield.config import ApiSettings, DatasetSettings, EstimatorSettings
from ipo_yield.estimation.engine import DAYS_PER_YEAR, RESERVE


class TestEstimatorSettings:
    def test_defaults_match_engine_constants(self) -> None:
        settings = EstimatorSettings()
        assert settings.reserve == RESERVE
        assert settings.days_per_year == DAYS_PER_YEAR
        assert settings.default_risk_free_rate == Decimal("0.014")
        assert settings.default_window_start == date(2025, 1, 1)
        assert settings.default_window_end == date(2025, 7, 21)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ESTIMATOR_RESERVE_BASE", "50000000")
        monkeypatch.setenv("ESTIMATOR_DEFAULT_WINDOW_START", "2024-07-01")
        settings = EstimatorSettings()
        assert settings.reserve == Decimal("60000000")
        assert settings.default_window_start == date(2024, 7, 1)


class TestDatasetSettings:
    def test_candidate_order(self) -> None:
        assert DatasetSettings().candidate_files == [
            "excel_data_optimized.json",
            "excel_data_summary.json",
            "newest_data.json",
        ]

    def test_env_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATASET_PATH", "/srv/ipo/latest.json")
        assert DatasetSettings().path == "/srv/ipo/latest.json"


def test_api_port_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_PORT", "9000")
    assert ApiSettings().port == 9000
