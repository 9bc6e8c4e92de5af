"""
Transaction table pagination.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class RowsPerPage(IntEnum):
    FIVE = 5
    TEN = 10
    TWENTY_FIVE = 25
    ALL = -1  # unbounded


DEFAULT_ROWS_PER_PAGE = RowsPerPage.TWENTY_FIVE


def _is_unbounded(rows_per_page: int | None) -> bool:
    return rows_per_page is None or rows_per_page <= 0


def empty_rows(total: int, rows_per_page: int | None, page: int) -> int:
    """
    Padding rows needed to keep a short final page the height of a full one.

    The first page is never padded, and neither is an unbounded page.
    """
    if _is_unbounded(rows_per_page) or page <= 0:
        return 0
    return max(0, (page + 1) * rows_per_page - total)


def page_count(total: int, rows_per_page: int | None) -> int:
    if _is_unbounded(rows_per_page):
        return 1
    return max(1, -(-total // rows_per_page))


@dataclass(frozen=True)
class TransactionPage(Generic[T]):
    """One visible slice of the transaction table"""

    page_index: int
    rows_per_page: int
    total_rows: int
    rows: list[T] = field(default_factory=list)

    @property
    def empty_rows(self) -> int:
        return empty_rows(self.total_rows, self.rows_per_page, self.page_index)

    @property
    def page_count(self) -> int:
        return page_count(self.total_rows, self.rows_per_page)

    @property
    def is_last(self) -> bool:
        return self.page_index >= self.page_count - 1


def paginate(
    rows: Sequence[T], page: int = 0, rows_per_page: int | None = DEFAULT_ROWS_PER_PAGE
) -> TransactionPage[T]:
    """Slice ``rows`` for a zero-based ``page``."""
    if page < 0:
        raise ValueError(f"page must be >= 0, got {page}")

    if _is_unbounded(rows_per_page):
        return TransactionPage(
            page_index=page, rows_per_page=RowsPerPage.ALL, total_rows=len(rows), rows=list(rows)
        )

    start = page * rows_per_page
    return TransactionPage(
        page_index=page,
        rows_per_page=int(rows_per_page),
        total_rows=len(rows),
        rows=list(rows[start : start + rows_per_page]),
    )
