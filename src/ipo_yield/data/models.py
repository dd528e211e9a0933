"""Data models for the IPO dataset snapshot and its auxiliary series.

CRITICAL: All amounts, rates and multiples use Decimal. Missing values are
None; NaN never survives ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ipo_yield.models import Board, IPOAllotmentRecord


@dataclass(frozen=True)
class ContributionPoint:
    """Annualized yield contribution for one week or month."""

    label: str
    contribution: Decimal | None


@dataclass(frozen=True)
class LotteryRateRow:
    """Weekly offline allotment rates by investor class."""

    label: str
    lottery_a: Decimal | None
    lottery_b: Decimal | None
    lottery_a2b: Decimal | None  # ratio of class A to class B rate


@dataclass(frozen=True)
class IssuanceRow:
    """Weekly issuance volume."""

    label: str
    stock_count: int | None
    total_raised_fund: Decimal | None  # 100M CNY


@dataclass(frozen=True)
class BoardPerformanceRow:
    """Average first-day change per board for one week or month."""

    label: str
    changes: dict[Board, Decimal | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ValuationRow:
    """Weekly average valuation multiples."""

    label: str
    ipo_pe: Decimal | None
    industry_pe: Decimal | None


@dataclass(frozen=True)
class IPODataset:
    """Immutable snapshot handed to the estimator and summary statistics.

    A reload produces a new snapshot; nothing mutates an existing one.
    """

    records: tuple[IPOAllotmentRecord, ...] = ()
    weekly_contributions: tuple[ContributionPoint, ...] = ()
    beijing_contributions: tuple[ContributionPoint, ...] = ()
    lottery_rates: tuple[LotteryRateRow, ...] = ()
    issuance: tuple[IssuanceRow, ...] = ()
    board_performance: tuple[BoardPerformanceRow, ...] = ()
    valuations: tuple[ValuationRow, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.records
