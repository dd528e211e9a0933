"""Tests for the return estimation engine.

Verifies:
- Closed-interval window filtering preserves order
- Capped per-record contribution and exclusion of incomplete records
- Board re-aggregation (subset, unknown labels, empty set = all boards)
- Whole-day annualization and InvalidWindow / InvalidCapital guards
- Idle-cash blending with the 96M reserve, including negative values
- Additive law and idempotence of estimate()
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_record
from ipo_yield.config import EstimatorSettings
from ipo_yield.estimation.engine import (
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
from ipo_yield.exceptions import InvalidCapital, InvalidWindow
from ipo_yield.models import Board, EstimationRequest, IPOAllotmentRecord

H1_START = date(2025, 1, 1)
H1_END = date(2025, 7, 21)


def _request(
    aum: str = "10000000",
    rf: str = "0.014",
    boards: frozenset = frozenset(),
    start: date = H1_START,
    end: date = H1_END,
) -> EstimationRequest:
    return EstimationRequest(
        aum=Decimal(aum),
        risk_free_rate=Decimal(rf),
        window_start=start,
        window_end=end,
        boards=boards,
    )


# ===========================================================================
# Window filter
# ===========================================================================


class TestFilterWindow:
    def test_inclusive_on_both_ends(self) -> None:
        records = [
            make_record("before", date(2024, 12, 31)),
            make_record("start", H1_START),
            make_record("middle", date(2025, 4, 1)),
            make_record("end", H1_END),
            make_record("after", date(2025, 7, 22)),
        ]
        result = filter_window(records, H1_START, H1_END)
        assert [r.security_name for r in result] == ["start", "middle", "end"]

    def test_preserves_original_order(self) -> None:
        records = [
            make_record("late", date(2025, 6, 1)),
            make_record("early", date(2025, 2, 1)),
        ]
        result = filter_window(records, H1_START, H1_END)
        assert [r.security_name for r in result] == ["late", "early"]

    def test_empty_result_is_not_an_error(self) -> None:
        records = [make_record("old", date(2020, 1, 1))]
        assert filter_window(records, H1_START, H1_END) == []

    def test_input_is_not_mutated(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        snapshot = list(mixed_records)
        filter_window(mixed_records, H1_START, H1_END)
        assert mixed_records == snapshot


# ===========================================================================
# Per-record contribution
# ===========================================================================


class TestSubscriptionContribution:
    def test_single_record_scenario(self) -> None:
        """min(10M, 1M) * 0.20 * 0.0003 = 60."""
        record = make_record(max_buy="1000000", pct_change="0.20", lottery_b="0.0003")
        assert subscription_contribution(record, Decimal("10000000")) == Decimal("60")

    def test_capped_by_aum(self) -> None:
        """Offline ceiling above capital: committed amount is the capital."""
        record = make_record(max_buy="50000000", pct_change="1.00", lottery_b="0.001")
        # min(2M, 50M) * 1.00 * 0.001 = 2000
        assert subscription_contribution(record, Decimal("2000000")) == Decimal("2000")

    def test_capping_law(self) -> None:
        """Contribution at ceiling == aum equals contribution at any larger ceiling."""
        aum = Decimal("7500000")
        at_aum = make_record(max_buy="7500000", pct_change="0.45", lottery_b="0.00021")
        for ceiling in ("7500001", "15000000", "900000000"):
            above = make_record(max_buy=ceiling, pct_change="0.45", lottery_b="0.00021")
            assert subscription_contribution(above, aum) == subscription_contribution(
                at_aum, aum
            )

    def test_negative_price_change_gives_loss(self) -> None:
        record = make_record(max_buy="1000000", pct_change="-0.10", lottery_b="0.001")
        assert subscription_contribution(record, Decimal("10000000")) == Decimal("-100")

    @pytest.mark.parametrize("missing", ["max_buy", "pct_change", "lottery_b"])
    def test_missing_input_returns_none(self, missing: str) -> None:
        record = make_record(**{missing: None})
        assert subscription_contribution(record, Decimal("10000000")) is None


class TestAggregateSubscriptionGain:
    def test_sums_and_counts_complete_records(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        in_window = filter_window(mixed_records, H1_START, H1_END)
        total, count = aggregate_subscription_gain(in_window, Decimal("10000000"))
        # 1200 + 4000 + 2000 + 2400; NOLOT has no lottery rate
        assert total == Decimal("9600")
        assert count == 4

    def test_empty_input(self) -> None:
        total, count = aggregate_subscription_gain([], Decimal("10000000"))
        assert total == Decimal("0")
        assert count == 0


# ===========================================================================
# Board filter
# ===========================================================================


class TestFilterBoards:
    def test_empty_set_keeps_everything(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        assert filter_boards(mixed_records, frozenset()) == mixed_records

    def test_subset(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        result = filter_boards(mixed_records, frozenset({Board.SCI_TECH.value}))
        assert [r.security_name for r in result] == ["STAR"]

    def test_unknown_label_matches_nothing(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        assert filter_boards(mixed_records, frozenset({"港股"})) == []

    def test_unrecognised_venue_matches_its_own_label(self) -> None:
        records = [
            make_record("HK", board=None, board_label="港股"),
            make_record("SH"),
        ]
        all_known = frozenset(b.value for b in Board)
        assert [r.security_name for r in filter_boards(records, all_known)] == ["SH"]
        assert [r.security_name for r in filter_boards(records, frozenset({"港股"}))] == ["HK"]


# ===========================================================================
# Window days and annualization
# ===========================================================================


class TestWindowDays:
    def test_first_half_2025_is_201_days(self) -> None:
        assert compute_window_days(H1_START, H1_END) == 201

    def test_single_day(self) -> None:
        assert compute_window_days(date(2025, 1, 1), date(2025, 1, 2)) == 1

    def test_zero_span_raises(self) -> None:
        with pytest.raises(InvalidWindow):
            compute_window_days(H1_START, H1_START)

    def test_inverted_window_raises(self) -> None:
        with pytest.raises(InvalidWindow):
            compute_window_days(H1_END, H1_START)


class TestAnnualize:
    def test_full_year_window(self) -> None:
        # 365/365 * (50000 / 1000000) = 0.05
        assert annualize(Decimal("50000"), Decimal("1000000"), 365) == Decimal("0.05")

    def test_half_window_doubles(self) -> None:
        # 365/73 = 5; 5 * (1000 / 100000) = 0.05
        assert annualize(Decimal("1000"), Decimal("100000"), 73) == Decimal("0.05")

    def test_custom_year_length(self) -> None:
        assert annualize(Decimal("1000"), Decimal("100000"), 90, days_per_year=360) == Decimal(
            "0.04"
        )


# ===========================================================================
# Idle cash
# ===========================================================================


class TestIdleCashYield:
    def test_reserve_constant(self) -> None:
        assert RESERVE == Decimal("96000000")

    def test_boundary_value(self) -> None:
        """0.014 * (500M - 96M) / 500M = 0.011312."""
        result = idle_cash_yield(Decimal("500000000"), Decimal("0.014"))
        assert result == Decimal("0.011312")

    def test_negative_below_reserve_is_preserved(self) -> None:
        """0.014 * (50M - 96M) / 50M = -0.01288."""
        result = idle_cash_yield(Decimal("50000000"), Decimal("0.014"))
        assert result == Decimal("-0.01288")

    def test_zero_at_reserve(self) -> None:
        assert idle_cash_yield(RESERVE, Decimal("0.02")) == Decimal("0")


# ===========================================================================
# estimate()
# ===========================================================================


class TestEstimate:
    def test_blended_result(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        request = _request(aum="500000000")
        result = estimate(mixed_records, request)

        # 1200 + min(500M, 30M)*2*0.0002=12000 + 2000 + 2400
        assert result.total_subscription_gain == Decimal("17600")
        assert result.matched_record_count == 4
        assert result.window_days == 201
        assert result.ipo_yield == (Decimal(365) / Decimal(201)) * (
            Decimal("17600") / Decimal("500000000")
        )
        assert result.idle_cash_yield == Decimal("0.011312")

    def test_additive_law(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        for aum in ("1000000", "96000000", "500000000", "3000000000"):
            result = estimate(mixed_records, _request(aum=aum))
            assert result.total_yield == result.ipo_yield + result.idle_cash_yield

    def test_board_subset_recomputes_from_window(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        request = _request(boards=frozenset({Board.SCI_TECH, Board.BEIJING}))
        result = estimate(mixed_records, request)
        # STAR 4000 + BSE 2400
        assert result.total_subscription_gain == Decimal("6400")
        assert result.matched_record_count == 2

    def test_board_outside_window_is_not_reintroduced(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        """OLD is on MainBoardSZ but listed before the window; NOLOT lacks inputs."""
        result = estimate(mixed_records, _request(boards=frozenset({Board.MAIN_BOARD_SZ})))
        assert result.matched_record_count == 0
        assert result.total_subscription_gain == Decimal("0")

    def test_board_labels_and_members_are_equivalent(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        by_member = estimate(mixed_records, _request(boards=frozenset({Board.CHINEXT})))
        by_label = estimate(mixed_records, _request(boards=frozenset({"创业板"})))
        assert by_member == by_label

    def test_empty_board_set_equals_all_present_boards(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        in_window = filter_window(mixed_records, H1_START, H1_END)
        present = frozenset(r.board_label for r in in_window)

        unfiltered = estimate(mixed_records, _request())
        filtered = estimate(mixed_records, _request(boards=present))
        assert unfiltered == filtered

    def test_equivalence_holds_with_unrecognised_venue(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        records = [
            *mixed_records,
            make_record("HK", date(2025, 3, 3), None, "1000000", "0.20", "0.0003", board_label="港股"),
        ]
        present = frozenset(r.board_label for r in filter_window(records, H1_START, H1_END))

        unfiltered = estimate(records, _request())
        filtered = estimate(records, _request(boards=present))
        assert "港股" in present
        assert unfiltered == filtered
        assert filtered.matched_record_count == 5

    def test_board_member_names_are_accepted(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        by_name = estimate(mixed_records, _request(boards=frozenset({"SCI_TECH"})))
        by_label = estimate(mixed_records, _request(boards=frozenset({"科创板"})))
        assert by_name == by_label
        assert by_name.matched_record_count == 1

    def test_unknown_board_only_matches_nothing(
        self, mixed_records: list[IPOAllotmentRecord]
    ) -> None:
        result = estimate(mixed_records, _request(boards=frozenset({"NASDAQ"})))
        assert result.matched_record_count == 0
        assert result.ipo_yield == Decimal("0")

    def test_idempotent(self, mixed_records: list[IPOAllotmentRecord]) -> None:
        request = _request(aum="250000000", boards=frozenset({Board.SCI_TECH}))
        assert estimate(mixed_records, request) == estimate(mixed_records, request)

    def test_empty_dataset_returns_idle_cash_only(self) -> None:
        result = estimate([], _request(aum="500000000"))
        assert result.is_empty
        assert result.ipo_yield == Decimal("0")
        assert result.total_subscription_gain == Decimal("0")
        assert result.total_yield == result.idle_cash_yield == Decimal("0.011312")

    @pytest.mark.parametrize("aum", ["0", "-1", "-500000000"])
    def test_non_positive_aum_raises(self, aum: str) -> None:
        with pytest.raises(InvalidCapital):
            estimate([make_record()], _request(aum=aum))

    def test_inverted_window_raises(self) -> None:
        with pytest.raises(InvalidWindow):
            estimate([make_record()], _request(start=H1_END, end=H1_START))

    def test_capital_checked_before_window(self) -> None:
        with pytest.raises(InvalidCapital):
            estimate([], _request(aum="0", start=H1_END, end=H1_START))


# ===========================================================================
# ReturnEstimator
# ===========================================================================


class TestReturnEstimator:
    def test_defaults_match_module_function(
        self,
        estimator_settings: EstimatorSettings,
        mixed_records: list[IPOAllotmentRecord],
    ) -> None:
        estimator = ReturnEstimator(estimator_settings)
        request = _request(aum="500000000")
        assert estimator.estimate(mixed_records, request) == estimate(mixed_records, request)

    def test_configured_reserve(self) -> None:
        settings = EstimatorSettings(reserve_base=Decimal("0"))
        estimator = ReturnEstimator(settings)
        result = estimator.estimate([], _request(aum="1000000", rf="0.02"))
        # No reserve: idle cash earns the full risk-free rate
        assert result.idle_cash_yield == Decimal("0.02")

    def test_build_request_fills_defaults(self, estimator_settings: EstimatorSettings) -> None:
        estimator = ReturnEstimator(estimator_settings)
        request = estimator.build_request(aum=Decimal("1000000"), boards=["科创板"])

        assert request.risk_free_rate == Decimal("0.014")
        assert request.window_start == H1_START
        assert request.window_end == H1_END
        assert request.boards == frozenset({"科创板"})

    def test_build_request_keeps_explicit_zero_rate(
        self, estimator_settings: EstimatorSettings
    ) -> None:
        estimator = ReturnEstimator(estimator_settings)
        request = estimator.build_request(aum=Decimal("1000000"), risk_free_rate=Decimal("0"))
        assert request.risk_free_rate == Decimal("0")
