"""Descriptive statistics over the IPO dataset snapshot.

Pure Decimal arithmetic. Every average drops missing values from both the
numerator and the denominator; an empty eligible set yields zero (or None
where a "best" selection has no candidate).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ipo_yield.data.models import (
    BoardPerformanceRow,
    ContributionPoint,
    IPODataset,
    IssuanceRow,
    LotteryRateRow,
    ValuationRow,
)
from ipo_yield.logging import get_logger
from ipo_yield.models import Board, IPOAllotmentRecord

logger = get_logger(__name__)

_ZERO = Decimal("0")


def _present(values: Iterable[Decimal | None]) -> list[Decimal]:
    return [v for v in values if v is not None and not v.is_nan()]


def mean(values: Iterable[Decimal | None]) -> Decimal:
    """Arithmetic mean of the present values, or 0 when none are present."""
    present = _present(values)
    if not present:
        return _ZERO
    return sum(present, _ZERO) / Decimal(len(present))


# ---------------------------------------------------------------------------
# Raw listing statistics
# ---------------------------------------------------------------------------


def average_first_day_return(records: Iterable[IPOAllotmentRecord]) -> Decimal:
    """Mean first-day price change over records that report one."""
    return mean(r.first_day_price_change for r in records)


def first_day_success_rate(records: Iterable[IPOAllotmentRecord]) -> Decimal:
    """Share of records with a positive first-day change, among those reporting one.

    Returns:
        Fraction in [0, 1]; 0 when no record reports a change.
    """
    changes = _present(r.first_day_price_change for r in records)
    if not changes:
        return _ZERO
    positive = sum(1 for c in changes if c > _ZERO)
    return Decimal(positive) / Decimal(len(changes))


def average_ipo_pe(records: Iterable[IPOAllotmentRecord]) -> Decimal:
    """Mean issue P/E over records with a strictly positive multiple."""
    return mean(r.ipo_pe for r in records if r.ipo_pe is not None and r.ipo_pe > _ZERO)


def total_raised_fund(records: Iterable[IPOAllotmentRecord]) -> Decimal:
    """Sum of raised funds, missing values counted as nothing."""
    return sum(_present(r.raised_fund for r in records), _ZERO)


def average_online_lottery_rate(
    records: Iterable[IPOAllotmentRecord],
    board: Board = Board.BEIJING,
) -> Decimal:
    """Mean online lottery rate for listings on ``board``."""
    return mean(r.online_lottery_rate for r in records if r.board == board)


def monthly_listing_counts(
    records: Iterable[IPOAllotmentRecord],
) -> dict[str, dict[Board, int]]:
    """Count listings per calendar month and board.

    Every month with a listing appears, keyed "YYYY-MM" in ascending order;
    listings on an unknown board add the month but no board count.
    """
    counts: dict[str, dict[Board, int]] = {}
    for record in records:
        month = record.listing_date.strftime("%Y-%m")
        per_board = counts.setdefault(month, {board: 0 for board in Board})
        if record.board is not None:
            per_board[record.board] += 1
    return {month: counts[month] for month in sorted(counts)}


def peak_listing_month(counts: dict[str, dict[Board, int]]) -> tuple[str, int] | None:
    """Earliest month with the highest total listing count, or None."""
    peak: tuple[str, int] | None = None
    for month in sorted(counts):
        total = sum(counts[month].values())
        if total > 0 and (peak is None or total > peak[1]):
            peak = (month, total)
    return peak


# ---------------------------------------------------------------------------
# Auxiliary series statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LotteryAverages:
    """Mean allotment rates by offline investor class."""

    lottery_a: Decimal
    lottery_b: Decimal
    a_to_b_ratio: Decimal


def average_lottery_rates(rows: Iterable[LotteryRateRow]) -> LotteryAverages:
    """Average class A rate, class B rate and A/B ratio over weekly rows."""
    rows = list(rows)
    return LotteryAverages(
        lottery_a=mean(r.lottery_a for r in rows),
        lottery_b=mean(r.lottery_b for r in rows),
        a_to_b_ratio=mean(r.lottery_a2b for r in rows),
    )


def best_board(rows: Iterable[BoardPerformanceRow]) -> tuple[Board, Decimal] | None:
    """Board with the highest average first-day change.

    Boards with no reported value are not candidates. Ties keep the board
    that comes first in Board order.

    Returns:
        (board, average change), or None if no board has data.
    """
    rows = list(rows)
    best: tuple[Board, Decimal] | None = None
    for board in Board:
        values = _present(r.changes.get(board) for r in rows)
        if not values:
            continue
        average = sum(values, _ZERO) / Decimal(len(values))
        if best is None or average > best[1]:
            best = (board, average)
    return best


@dataclass(frozen=True)
class ValuationAverages:
    """Mean issue and industry P/E multiples."""

    ipo_pe: Decimal
    industry_pe: Decimal


def average_valuation(rows: Iterable[ValuationRow]) -> ValuationAverages:
    rows = list(rows)
    return ValuationAverages(
        ipo_pe=mean(r.ipo_pe for r in rows),
        industry_pe=mean(r.industry_pe for r in rows),
    )


def issuance_totals(rows: Iterable[IssuanceRow]) -> tuple[int, Decimal]:
    """Total number of issues and total raised funds over weekly rows."""
    rows = list(rows)
    count = sum(r.stock_count for r in rows if r.stock_count is not None)
    raised = sum(_present(r.total_raised_fund for r in rows), _ZERO)
    return count, raised


@dataclass(frozen=True)
class ContributionSummary:
    """Mean, maximum and sum of periodic annualized contributions."""

    count: int
    mean: Decimal
    maximum: Decimal
    total: Decimal


def contribution_summary(points: Iterable[ContributionPoint]) -> ContributionSummary:
    values = _present(p.contribution for p in points)
    if not values:
        return ContributionSummary(count=0, mean=_ZERO, maximum=_ZERO, total=_ZERO)
    total = sum(values, _ZERO)
    return ContributionSummary(
        count=len(values),
        mean=total / Decimal(len(values)),
        maximum=max(values),
        total=total,
    )


# ---------------------------------------------------------------------------
# Composite summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardSummary:
    """All headline statistics for one dataset snapshot."""

    total_listings: int
    total_raised_fund: Decimal
    average_first_day_return: Decimal
    first_day_success_rate: Decimal
    average_ipo_pe: Decimal
    average_online_lottery_rate_beijing: Decimal
    lottery: LotteryAverages
    valuation: ValuationAverages
    issued_count: int
    issued_raised_fund: Decimal
    weekly: ContributionSummary
    beijing: ContributionSummary
    best_board: tuple[Board, Decimal] | None
    peak_month: tuple[str, int] | None

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "total_listings": self.total_listings,
            "total_raised_fund": str(self.total_raised_fund),
            "average_first_day_return": str(self.average_first_day_return),
            "first_day_success_rate": str(self.first_day_success_rate),
            "average_ipo_pe": str(self.average_ipo_pe),
            "average_online_lottery_rate_beijing": str(
                self.average_online_lottery_rate_beijing
            ),
            "lottery": {
                "lottery_a": str(self.lottery.lottery_a),
                "lottery_b": str(self.lottery.lottery_b),
                "a_to_b_ratio": str(self.lottery.a_to_b_ratio),
            },
            "valuation": {
                "ipo_pe": str(self.valuation.ipo_pe),
                "industry_pe": str(self.valuation.industry_pe),
            },
            "issuance": {
                "count": self.issued_count,
                "raised_fund": str(self.issued_raised_fund),
            },
            "weekly_contribution": _contribution_dict(self.weekly),
            "beijing_contribution": _contribution_dict(self.beijing),
            "best_board": (
                {"board": self.best_board[0].value, "average_change": str(self.best_board[1])}
                if self.best_board
                else None
            ),
            "peak_month": (
                {"month": self.peak_month[0], "count": self.peak_month[1]}
                if self.peak_month
                else None
            ),
        }


def _contribution_dict(summary: ContributionSummary) -> dict:
    return {
        "count": summary.count,
        "mean": str(summary.mean),
        "max": str(summary.maximum),
        "total": str(summary.total),
    }


def build_dashboard_summary(dataset: IPODataset) -> DashboardSummary:
    """Compute every headline statistic for ``dataset``."""
    records = dataset.records
    issued_count, issued_raised = issuance_totals(dataset.issuance)

    summary = DashboardSummary(
        total_listings=len(records),
        total_raised_fund=total_raised_fund(records),
        average_first_day_return=average_first_day_return(records),
        first_day_success_rate=first_day_success_rate(records),
        average_ipo_pe=average_ipo_pe(records),
        average_online_lottery_rate_beijing=average_online_lottery_rate(records),
        lottery=average_lottery_rates(dataset.lottery_rates),
        valuation=average_valuation(dataset.valuations),
        issued_count=issued_count,
        issued_raised_fund=issued_raised,
        weekly=contribution_summary(dataset.weekly_contributions),
        beijing=contribution_summary(dataset.beijing_contributions),
        best_board=best_board(dataset.board_performance),
        peak_month=peak_listing_month(monthly_listing_counts(records)),
    )

    logger.debug(
        "dashboard_summary_computed",
        total_listings=summary.total_listings,
        best_board=summary.best_board[0].value if summary.best_board else None,
    )
    return summary
