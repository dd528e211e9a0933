"""Return estimation engine for IPO offline allotment.

Turns a snapshot of historical allotment records into a blended annualized
return. Pure Decimal arithmetic, no I/O and no shared state: every call works
on its own filtered copies.

Core formula:
  contribution = min(aum, offline_max_buy_amount) * first_day_price_change * lottery_b
  ipo_yield = (days_per_year / window_days) * (sum(contribution) / aum)
  idle_cash_yield = risk_free_rate * (aum - reserve) / aum
  total_yield = ipo_yield + idle_cash_yield
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from ipo_yield.config import EstimatorSettings
from ipo_yield.exceptions import InvalidCapital, InvalidWindow
from ipo_yield.logging import get_logger
from ipo_yield.models import EstimationRequest, EstimationResult, IPOAllotmentRecord

logger = get_logger(__name__)

RESERVE = Decimal("1.2") * Decimal("80000000")
DAYS_PER_YEAR = 365
_ZERO = Decimal("0")


def filter_window(
    records: Iterable[IPOAllotmentRecord],
    window_start: date,
    window_end: date,
) -> list[IPOAllotmentRecord]:
    """Return records listed within [window_start, window_end], order preserved."""
    return [r for r in records if window_start <= r.listing_date <= window_end]


def filter_boards(
    records: Iterable[IPOAllotmentRecord],
    boards: frozenset[str],
) -> list[IPOAllotmentRecord]:
    """Return records whose board label is in ``boards``.

    An empty ``boards`` set keeps every record, which is the same as
    passing every board label present in ``records``.
    """
    if not boards:
        return list(records)
    return [r for r in records if r.board_label in boards]


def subscription_contribution(record: IPOAllotmentRecord, aum: Decimal) -> Decimal | None:
    """Expected first-day gain of one offline subscription, in currency units.

    The committed amount is capped by both the investor's capital and the
    issue's offline ceiling. Returns None when an input is missing.
    """
    if not record.has_subscription_inputs:
        return None
    committed = min(aum, record.offline_max_buy_amount)
    return committed * record.first_day_price_change * record.offline_lottery_rate_b


def aggregate_subscription_gain(
    records: Iterable[IPOAllotmentRecord],
    aum: Decimal,
) -> tuple[Decimal, int]:
    """Sum contributions over ``records``.

    Returns:
        (total gain, number of records that contributed).
    """
    total = _ZERO
    count = 0
    for record in records:
        contribution = subscription_contribution(record, aum)
        if contribution is None:
            continue
        total += contribution
        count += 1
    return total, count


def compute_window_days(window_start: date, window_end: date) -> int:
    """Whole-day span of the window. Raises InvalidWindow if not positive."""
    days = (window_end - window_start).days
    if days <= 0:
        raise InvalidWindow(
            f"window must span at least one day, got {window_start} to {window_end}"
        )
    return days


def annualize(
    total_gain: Decimal,
    aum: Decimal,
    window_days: int,
    days_per_year: int = DAYS_PER_YEAR,
) -> Decimal:
    """Linearly extrapolate the window's gain over a fixed-length year."""
    return (Decimal(days_per_year) / Decimal(window_days)) * (total_gain / aum)


def idle_cash_yield(
    aum: Decimal,
    risk_free_rate: Decimal,
    reserve: Decimal = RESERVE,
) -> Decimal:
    """Risk-free return on capital outside the reserve, as a fraction of aum.

    Negative when aum is below the reserve; the value is not clamped.
    """
    return risk_free_rate * (aum - reserve) / aum


def estimate(
    records: Sequence[IPOAllotmentRecord],
    request: EstimationRequest,
    *,
    reserve: Decimal = RESERVE,
    days_per_year: int = DAYS_PER_YEAR,
) -> EstimationResult:
    """Estimate the blended annualized return for ``request``.

    Steps:
    1. Validate capital and window
    2. Window-filter records by listing date
    3. Re-derive the board subset (if any) and aggregate contributions
    4. Annualize the gain and blend with the idle-cash yield

    Raises:
        InvalidCapital: aum <= 0.
        InvalidWindow: window spans zero or negative days.
    """
    aum = request.aum
    if aum <= _ZERO:
        raise InvalidCapital(f"aum must be positive, got {aum}")
    window_days = compute_window_days(request.window_start, request.window_end)

    in_window = filter_window(records, request.window_start, request.window_end)
    selected = filter_boards(in_window, request.boards)
    total_gain, matched = aggregate_subscription_gain(selected, aum)

    ipo = annualize(total_gain, aum, window_days, days_per_year)
    idle = idle_cash_yield(aum, request.risk_free_rate, reserve)

    if matched == 0:
        logger.info(
            "empty_dataset",
            total_records=len(records),
            in_window=len(in_window),
            boards=sorted(request.boards),
        )

    result = EstimationResult(
        ipo_yield=ipo,
        idle_cash_yield=idle,
        total_yield=ipo + idle,
        matched_record_count=matched,
        total_subscription_gain=total_gain,
        window_days=window_days,
    )

    logger.debug(
        "estimate_computed",
        aum=aum,
        window_days=window_days,
        in_window=len(in_window),
        matched=matched,
        total_gain=total_gain,
        total_yield=result.total_yield,
    )
    return result


class ReturnEstimator:
    """Estimator bound to configured reserve and year length.

    Args:
        settings: Estimator settings (reserve, days per year, defaults).
    """

    def __init__(self, settings: EstimatorSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> EstimatorSettings:
        return self._settings

    def build_request(
        self,
        aum: Decimal,
        risk_free_rate: Decimal | None = None,
        boards: Iterable[str] = (),
        window_start: date | None = None,
        window_end: date | None = None,
    ) -> EstimationRequest:
        """Create a request, filling omitted fields from settings defaults."""
        return EstimationRequest(
            aum=aum,
            risk_free_rate=(
                self._settings.default_risk_free_rate
                if risk_free_rate is None
                else risk_free_rate
            ),
            window_start=window_start or self._settings.default_window_start,
            window_end=window_end or self._settings.default_window_end,
            boards=frozenset(boards),
        )

    def estimate(
        self,
        records: Sequence[IPOAllotmentRecord],
        request: EstimationRequest,
    ) -> EstimationResult:
        """Run ``estimate`` with the configured reserve and year length."""
        return estimate(
            records,
            request,
            reserve=self._settings.reserve,
            days_per_year=self._settings.days_per_year,
        )
