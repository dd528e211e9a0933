"""Configuration system using pydantic-settings with environment variable loading."""

from datetime import date
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class EstimatorSettings(BaseSettings):
    """Return estimator parameters.

    The reserve is the float an offline investor must keep to stay eligible
    for subscription; it earns only the risk-free rate.
    """

    model_config = SettingsConfigDict(env_prefix="ESTIMATOR_")

    reserve_multiplier: Decimal = Decimal("1.2")
    reserve_base: Decimal = Decimal("80000000")  # CNY
    days_per_year: int = 365
    default_risk_free_rate: Decimal = Decimal("0.014")  # 1.4%
    default_window_start: date = date(2025, 1, 1)
    default_window_end: date = date(2025, 7, 21)

    @property
    def reserve(self) -> Decimal:
        """Non-deployable floor in currency units."""
        return self.reserve_multiplier * self.reserve_base


class DatasetSettings(BaseSettings):
    """Location of the JSON dataset export.

    When ``path`` is a directory, ``candidate_files`` are tried in order.
    """

    model_config = SettingsConfigDict(env_prefix="DATASET_")

    path: str = "data"
    candidate_files: list[str] = [
        "excel_data_optimized.json",
        "excel_data_summary.json",
        "newest_data.json",
    ]


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    estimator: EstimatorSettings = EstimatorSettings()
    dataset: DatasetSettings = DatasetSettings()
    api: ApiSettings = ApiSettings()
