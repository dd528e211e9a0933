"""Allocation recommendation and calculation breakdown.

Maps excess return over the risk-free rate (in percentage points) to a
coarse recommended allocation:

  excess <= 0      -> 0%
  0 < excess < 3   -> 30%
  3 <= excess < 6  -> 50%
  6 <= excess < 10 -> 70%
  excess >= 10     -> 85%
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ipo_yield.estimation.engine import DAYS_PER_YEAR
from ipo_yield.models import EstimationRequest, EstimationResult

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

# (exclusive upper bound in pp, allocation %), checked in order
_ALLOCATION_STEPS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("3"), 30),
    (Decimal("6"), 50),
    (Decimal("10"), 70),
)
_MAX_ALLOCATION = 85


def excess_return_pp(total_yield: Decimal, risk_free_rate: Decimal) -> Decimal:
    """Total yield above the risk-free rate, in percentage points."""
    return (total_yield - risk_free_rate) * _HUNDRED


def recommend_allocation(total_yield: Decimal, risk_free_rate: Decimal) -> int:
    """Recommended allocation percentage, one of 0, 30, 50, 70, 85."""
    excess = excess_return_pp(total_yield, risk_free_rate)
    if excess <= _ZERO:
        return 0
    for upper, allocation in _ALLOCATION_STEPS:
        if excess < upper:
            return allocation
    return _MAX_ALLOCATION


@dataclass(frozen=True)
class EstimationBreakdown:
    """Presentation-ready figures derived from a request and its result.

    Amounts are in currency units, yields are fractions, excess return is
    in percentage points. No rounding is applied.
    """

    excess_return: Decimal
    expected_profit: Decimal
    annual_ipo_profit: Decimal
    annual_idle_cash_profit: Decimal
    window_years: Decimal
    recommended_allocation: int

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "excess_return": str(self.excess_return),
            "expected_profit": str(self.expected_profit),
            "annual_ipo_profit": str(self.annual_ipo_profit),
            "annual_idle_cash_profit": str(self.annual_idle_cash_profit),
            "window_years": str(self.window_years),
            "recommended_allocation": self.recommended_allocation,
        }


def build_breakdown(
    request: EstimationRequest,
    result: EstimationResult,
    days_per_year: int = DAYS_PER_YEAR,
) -> EstimationBreakdown:
    """Derive profit figures and the allocation bucket for display."""
    return EstimationBreakdown(
        excess_return=excess_return_pp(result.total_yield, request.risk_free_rate),
        expected_profit=request.aum * result.total_yield,
        annual_ipo_profit=request.aum * result.ipo_yield,
        annual_idle_cash_profit=request.aum * result.idle_cash_yield,
        window_years=Decimal(result.window_days) / Decimal(days_per_year),
        recommended_allocation=recommend_allocation(
            result.total_yield, request.risk_free_rate
        ),
    )
