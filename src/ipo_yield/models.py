"""Shared data models for the IPO return estimator.

CRITICAL: All monetary values, rates and yields use Decimal. Never use float
for amounts, allotment rates or price changes.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from ipo_yield.exceptions import InvalidRecord

_ZERO = Decimal("0")
_ONE = Decimal("1")

_DECIMAL_FIELDS = (
    "offline_max_buy_amount",
    "first_day_price_change",
    "offline_lottery_rate_b",
    "online_lottery_rate",
    "raised_fund",
    "ipo_pe",
)


class Board(str, Enum):
    """Listing venue. Values are the labels used by the dataset export."""

    MAIN_BOARD_SH = "上证主板"
    MAIN_BOARD_SZ = "深证主板"
    SCI_TECH = "科创板"
    CHINEXT = "创业板"
    BEIJING = "北交所"

    @classmethod
    def from_label(cls, label: str | Board | None) -> Board | None:
        """Resolve a dataset label or member name; unknown labels give None."""
        if label is None:
            return None
        if isinstance(label, Board):
            return label
        text = str(label).strip()
        for board in cls:
            if text in (board.value, board.name):
                return board
        return None


@dataclass(frozen=True)
class IPOAllotmentRecord:
    """One historical new-share listing.

    The three subscription inputs are optional; a record missing any of them
    is ignored by the estimator. Invariants are enforced on construction so
    consumers never re-check them.

    ``board_label`` is what board filters match on. It is the Board value
    for known venues and the raw export label otherwise, so a listing on an
    unrecognised venue still forms its own board.
    """

    security_name: str
    listing_date: date
    board: Board | None
    offline_max_buy_amount: Decimal | None = None
    first_day_price_change: Decimal | None = None  # fractional, 0.30 = +30%
    offline_lottery_rate_b: Decimal | None = None  # allotment ratio in [0, 1]
    online_lottery_rate: Decimal | None = None
    raised_fund: Decimal | None = None  # 100M CNY
    ipo_pe: Decimal | None = None
    board_label: str | None = None

    def __post_init__(self) -> None:
        if self.board is not None:
            object.__setattr__(self, "board_label", self.board.value)
        elif self.board_label is not None:
            object.__setattr__(self, "board_label", self.board_label.strip() or None)
        if self.board_label is None:
            raise InvalidRecord(f"{self.security_name}: missing board")

        for name in _DECIMAL_FIELDS:
            value = getattr(self, name)
            if value is not None and not value.is_finite():
                raise InvalidRecord(f"{self.security_name}: {name} must be finite, got {value}")

        if self.offline_max_buy_amount is not None and self.offline_max_buy_amount < _ZERO:
            raise InvalidRecord(
                f"{self.security_name}: offline_max_buy_amount must be >= 0, "
                f"got {self.offline_max_buy_amount}"
            )
        for name in ("offline_lottery_rate_b", "online_lottery_rate"):
            rate = getattr(self, name)
            if rate is not None and not (_ZERO <= rate <= _ONE):
                raise InvalidRecord(
                    f"{self.security_name}: {name} must be within [0, 1], got {rate}"
                )

    @property
    def has_subscription_inputs(self) -> bool:
        """True when all three inputs of the subscription yield are present."""
        return (
            self.offline_max_buy_amount is not None
            and self.first_day_price_change is not None
            and self.offline_lottery_rate_b is not None
        )


def _normalize_boards(boards: Iterable[Board | str]) -> frozenset[str]:
    labels = set()
    for item in boards:
        board = Board.from_label(item)
        labels.add(board.value if board is not None else str(item).strip())
    return frozenset(labels)


@dataclass(frozen=True)
class EstimationRequest:
    """Parameters of a single estimate.

    ``boards`` holds dataset labels; an empty set means every board. Member
    names such as "SCI_TECH" resolve to their label. Other strings are kept
    as-is and match only records carrying that raw board label.
    """

    aum: Decimal
    risk_free_rate: Decimal
    window_start: date
    window_end: date
    boards: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "boards", _normalize_boards(self.boards))


@dataclass(frozen=True)
class EstimationResult:
    """Annualized yield estimate for one request."""

    ipo_yield: Decimal
    idle_cash_yield: Decimal
    total_yield: Decimal
    matched_record_count: int
    total_subscription_gain: Decimal  # currency units, not normalized by aum
    window_days: int

    @property
    def is_empty(self) -> bool:
        """True when no record contributed to the subscription gain."""
        return self.matched_record_count == 0

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "ipo_yield": str(self.ipo_yield),
            "idle_cash_yield": str(self.idle_cash_yield),
            "total_yield": str(self.total_yield),
            "matched_record_count": self.matched_record_count,
            "total_subscription_gain": str(self.total_subscription_gain),
            "window_days": self.window_days,
        }
