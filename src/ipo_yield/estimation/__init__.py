"""Return estimation engine.

Window filtering, capped per-record subscription yield, board
re-aggregation, annualization, idle-cash blending and the allocation
recommendation derived from the blended yield.
"""

from ipo_yield.estimation.engine import (
    DAYS_PER_YEAR,
    RESERVE,
    ReturnEstimator,
    aggregate_subscription_gain,
    annualize,
    compute_window_days,
    estimate,
    filter_boards,
    filter_window,
    idle_cash_yield,
    subscription_contribution,
)
from ipo_yield.estimation.recommendation import (
    EstimationBreakdown,
    build_breakdown,
    excess_return_pp,
    recommend_allocation,
)

__all__ = [
    "DAYS_PER_YEAR",
    "EstimationBreakdown",
    "RESERVE",
    "ReturnEstimator",
    "aggregate_subscription_gain",
    "annualize",
    "build_breakdown",
    "compute_window_days",
    "estimate",
    "excess_return_pp",
    "filter_boards",
    "filter_window",
    "idle_cash_yield",
    "recommend_allocation",
    "subscription_contribution",
]
