"""Dataset provider.

Loads the JSON statistics export into an immutable IPODataset snapshot of
allotment records and auxiliary weekly/monthly series.
"""

from ipo_yield.data.loader import (
    load_dataset,
    load_dataset_file,
    parse_date,
    parse_decimal,
    parse_record,
    resolve_dataset_path,
)
from ipo_yield.data.models import (
    BoardPerformanceRow,
    ContributionPoint,
    IPODataset,
    IssuanceRow,
    LotteryRateRow,
    ValuationRow,
)

__all__ = [
    "BoardPerformanceRow",
    "ContributionPoint",
    "IPODataset",
    "IssuanceRow",
    "LotteryRateRow",
    "ValuationRow",
    "load_dataset",
    "load_dataset_file",
    "parse_date",
    "parse_decimal",
    "parse_record",
    "resolve_dataset_path",
]
