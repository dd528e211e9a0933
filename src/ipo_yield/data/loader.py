"""JSON dataset loader for the weekly IPO statistics export.

The export is a mapping of sheet name to ``{"data": [row, ...]}``. Nullable
numeric fields are converted to Decimal exactly once here; downstream code
only ever sees Decimal or None.

Malformed rows are logged and skipped. Only an unreadable or structurally
invalid file raises.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, TypeVar

from ipo_yield.data.models import (
    BoardPerformanceRow,
    ContributionPoint,
    IPODataset,
    IssuanceRow,
    LotteryRateRow,
    ValuationRow,
)
from ipo_yield.exceptions import DatasetFormatError, DatasetNotFound, InvalidRecord
from ipo_yield.logging import get_logger
from ipo_yield.models import Board, IPOAllotmentRecord

logger = get_logger(__name__)

SHEET_RAW = "原始数据"
SHEET_WEEKLY_RETURNS = "周度收益"
SHEET_BEIJING = "北交所"
SHEET_LOTTERY = "中签率统计"
SHEET_ISSUANCE = "发行统计"
SHEET_BOARD_PERFORMANCE = "板块涨跌幅"
SHEET_VALUATION = "市盈率统计"

T = TypeVar("T")


def parse_decimal(value: Any) -> Decimal | None:
    """Convert a raw cell to Decimal; None, blanks, NaN and junk become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return result


def parse_int(value: Any) -> int | None:
    """Convert a raw cell to int via parse_decimal (truncating)."""
    number = parse_decimal(value)
    return None if number is None else int(number)


def parse_date(value: Any) -> date | None:
    """Parse ISO dates, ISO datetimes, or epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_record(row: Mapping[str, Any]) -> IPOAllotmentRecord:
    """Build an IPOAllotmentRecord from a raw listing row.

    Unrecognised ``ipo_board`` labels are kept verbatim in ``board_label``.

    Raises:
        InvalidRecord: listing date or board missing, or invariants violated.
    """
    name = str(row.get("sec_name") or "").strip()
    raw_board = row.get("ipo_board")
    listing_date = parse_date(row.get("listing_date"))
    if listing_date is None:
        raise InvalidRecord(f"{name or '<unnamed>'}: missing listing_date")

    return IPOAllotmentRecord(
        security_name=name,
        listing_date=listing_date,
        board=Board.from_label(raw_board),
        offline_max_buy_amount=parse_decimal(row.get("offline_maxbuyamt")),
        first_day_price_change=parse_decimal(row.get("pctchg")),
        offline_lottery_rate_b=parse_decimal(row.get("lottery_b")),
        online_lottery_rate=parse_decimal(row.get("lottery_online")),
        raised_fund=parse_decimal(row.get("actual_raised_fund")),
        ipo_pe=parse_decimal(row.get("ipo_pe")),
        board_label=str(raw_board) if raw_board is not None else None,
    )


def _sheet_rows(payload: Mapping[str, Any], sheet: str) -> list[Mapping[str, Any]]:
    section = payload.get(sheet)
    if section is None:
        return []
    if not isinstance(section, Mapping):
        raise DatasetFormatError(f"sheet {sheet!r} must be an object with a 'data' list")
    rows = section.get("data") or []
    if not isinstance(rows, list):
        raise DatasetFormatError(f"sheet {sheet!r} 'data' must be a list")
    return [r for r in rows if isinstance(r, Mapping)]


def _parse_rows(
    payload: Mapping[str, Any],
    sheet: str,
    parse: Callable[[Mapping[str, Any]], T],
) -> tuple[T, ...]:
    parsed: list[T] = []
    for index, row in enumerate(_sheet_rows(payload, sheet)):
        try:
            parsed.append(parse(row))
        except (InvalidRecord, ValueError, TypeError) as e:
            logger.warning("record_skipped", sheet=sheet, index=index, error=str(e))
    return tuple(parsed)


def _period_label(row: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def _month_label(value: Any) -> str:
    parsed = parse_date(value)
    return parsed.strftime("%Y-%m") if parsed is not None else str(value or "")


def _board_performance(row: Mapping[str, Any]) -> BoardPerformanceRow:
    return BoardPerformanceRow(
        label=_period_label(row, "month_label", "week_label"),
        changes={board: parse_decimal(row.get(board.value)) for board in Board},
    )


def load_dataset(payload: Mapping[str, Any]) -> IPODataset:
    """Build an IPODataset snapshot from a decoded JSON export."""
    if not isinstance(payload, Mapping):
        raise DatasetFormatError("dataset root must be an object keyed by sheet name")

    dataset = IPODataset(
        records=_parse_rows(payload, SHEET_RAW, parse_record),
        weekly_contributions=_parse_rows(
            payload,
            SHEET_WEEKLY_RETURNS,
            lambda r: ContributionPoint(
                label=_period_label(r, "week_label"),
                contribution=parse_decimal(r.get("年化收益贡献")),
            ),
        ),
        beijing_contributions=_parse_rows(
            payload,
            SHEET_BEIJING,
            lambda r: ContributionPoint(
                label=_month_label(r.get("listing_date")),
                contribution=parse_decimal(r.get("北交所年化收益贡献")),
            ),
        ),
        lottery_rates=_parse_rows(
            payload,
            SHEET_LOTTERY,
            lambda r: LotteryRateRow(
                label=_period_label(r, "week_label"),
                lottery_a=parse_decimal(r.get("lottery_a")),
                lottery_b=parse_decimal(r.get("lottery_b")),
                lottery_a2b=parse_decimal(r.get("lottery_a2b")),
            ),
        ),
        issuance=_parse_rows(
            payload,
            SHEET_ISSUANCE,
            lambda r: IssuanceRow(
                label=_period_label(r, "week_label"),
                stock_count=parse_int(r.get("stock_count")),
                total_raised_fund=parse_decimal(r.get("total_raised_fund")),
            ),
        ),
        board_performance=_parse_rows(payload, SHEET_BOARD_PERFORMANCE, _board_performance),
        valuations=_parse_rows(
            payload,
            SHEET_VALUATION,
            lambda r: ValuationRow(
                label=_period_label(r, "week_label"),
                ipo_pe=parse_decimal(r.get("ipo_pe")),
                industry_pe=parse_decimal(r.get("industry_pe")),
            ),
        ),
    )

    logger.info(
        "dataset_loaded",
        records=len(dataset.records),
        weekly_contributions=len(dataset.weekly_contributions),
        lottery_rates=len(dataset.lottery_rates),
        issuance=len(dataset.issuance),
        board_performance=len(dataset.board_performance),
        valuations=len(dataset.valuations),
    )
    return dataset


def resolve_dataset_path(path: str | Path, candidates: list[str]) -> Path:
    """Return ``path`` itself, or the first existing candidate inside it.

    Raises:
        DatasetNotFound: nothing exists at ``path`` or in its candidates.
    """
    base = Path(path)
    if base.is_file():
        return base
    if base.is_dir():
        for name in candidates:
            candidate = base / name
            if candidate.is_file():
                return candidate
            logger.debug("dataset_candidate_missing", path=str(candidate))
    raise DatasetNotFound(f"no dataset found at {base} (tried {', '.join(candidates)})")


def load_dataset_file(path: str | Path, candidates: list[str] | None = None) -> IPODataset:
    """Locate, read and parse a dataset export.

    Raises:
        DatasetNotFound: no file could be located.
        DatasetFormatError: the file is not valid JSON or not a sheet mapping.
    """
    resolved = resolve_dataset_path(path, candidates or [])
    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DatasetFormatError(f"{resolved}: invalid JSON ({e})") from e

    logger.info("dataset_file_read", path=str(resolved))
    return load_dataset(payload)
