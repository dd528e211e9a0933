"""Shared test fixtures for the IPO return estimator."""

from datetime import date
from decimal import Decimal

import pytest

from ipo_yield.config import AppSettings, DatasetSettings, EstimatorSettings
from ipo_yield.models import Board, IPOAllotmentRecord


def make_record(
    name: str = "TEST",
    listing_date: date = date(2025, 3, 3),
    board: Board | None = Board.MAIN_BOARD_SH,
    max_buy: str | None = "1000000",
    pct_change: str | None = "0.20",
    lottery_b: str | None = "0.0003",
    **extra: object,
) -> IPOAllotmentRecord:
    """Build a record from string amounts so every value is an exact Decimal."""
    return IPOAllotmentRecord(
        security_name=name,
        listing_date=listing_date,
        board=board,
        offline_max_buy_amount=Decimal(max_buy) if max_buy is not None else None,
        first_day_price_change=Decimal(pct_change) if pct_change is not None else None,
        offline_lottery_rate_b=Decimal(lottery_b) if lottery_b is not None else None,
        **extra,
    )


@pytest.fixture
def mixed_records() -> list[IPOAllotmentRecord]:
    """Records across boards, one outside the 2025 H1 window, one incomplete."""
    return [
        make_record("SH-A", date(2025, 1, 10), Board.MAIN_BOARD_SH, "2000000", "1.50", "0.0004"),
        make_record("STAR", date(2025, 2, 14), Board.SCI_TECH, "30000000", "2.00", "0.0002"),
        make_record("GEM", date(2025, 4, 1), Board.CHINEXT, "5000000", "0.80", "0.0005"),
        make_record("BSE", date(2025, 5, 20), Board.BEIJING, "800000", "3.00", "0.0010"),
        make_record("OLD", date(2024, 12, 31), Board.MAIN_BOARD_SZ, "9000000", "1.00", "0.0003"),
        make_record("NOLOT", date(2025, 6, 2), Board.MAIN_BOARD_SZ, "9000000", "1.00", None),
    ]


@pytest.fixture
def estimator_settings() -> EstimatorSettings:
    """Default estimator settings (reserve 96M, 365-day year)."""
    return EstimatorSettings()


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    """AppSettings pointing the dataset at an empty temp directory."""
    return AppSettings(
        log_level="DEBUG",
        estimator=EstimatorSettings(),
        dataset=DatasetSettings(path=str(tmp_path)),
    )
