"""
Wallet data feed: polling, pagination and display rows.
"""

from qwallet.feed.feed import RefreshHandle, SyncState, TransactionFeed, sort_newest_first
from qwallet.feed.pagination import (
    DEFAULT_ROWS_PER_PAGE,
    RowsPerPage,
    TransactionPage,
    empty_rows,
    page_count,
    paginate,
)
from qwallet.feed.rows import (
    UNCONFIRMED_LABEL,
    AmountClass,
    DisplayRow,
    EntryLine,
    build_row,
    build_rows,
    crop_string,
    epoch_to_ago,
)

__all__ = [
    "DEFAULT_ROWS_PER_PAGE",
    "UNCONFIRMED_LABEL",
    "AmountClass",
    "DisplayRow",
    "EntryLine",
    "RefreshHandle",
    "RowsPerPage",
    "SyncState",
    "TransactionFeed",
    "TransactionPage",
    "build_row",
    "build_rows",
    "crop_string",
    "empty_rows",
    "epoch_to_ago",
    "page_count",
    "paginate",
    "sort_newest_first",
]
