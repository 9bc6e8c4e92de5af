"""
Display rows for the transaction table.

Each ledger entry becomes a row with per-line 8-decimal amounts. Whether a row
is a credit or a debit comes only from the sign of the bridge-computed total,
never from re-adding the inputs and outputs.
"""

from __future__ import annotations

import math
import time
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from qwallet.constants import DECIMAL_ROUND_UP
from qwallet.fees import from_smallest_unit
from qwallet.models import Transaction, TxEntry

UNCONFIRMED_LABEL = "unconfirmed"

# Relative time buckets in milliseconds, largest first
_TIME_SEGMENTS: list[tuple[float, str, str]] = [
    (3.154e10, "year", "1 year ago"),
    (2.628e9, "month", "1 month ago"),
    (6.048e8, "week", "1 week ago"),
    (8.64e7, "day", "1 day ago"),
    (3.6e6, "hour", "an hour ago"),
    (60_000, "minute", "a minute ago"),
]


class AmountClass(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    MUTED = "muted"


def format_amount(amount: Decimal) -> str:
    return f"{amount:.{DECIMAL_ROUND_UP}f}"


def epoch_to_ago(epoch_ms: int | float, now_ms: int | float | None = None) -> str:
    """Relative age of a millisecond timestamp, e.g. ``3 days ago``."""
    if now_ms is None:
        now_ms = time.time() * 1000
    elapsed = now_ms - epoch_ms
    for segment, unit, singular in _TIME_SEGMENTS:
        if elapsed >= segment:
            if elapsed >= 2 * segment:
                return f"{math.floor(elapsed / segment)} {unit}s ago"
            return singular
    return "just now"


def crop_string(text: str, max_length: int = 24) -> str:
    """Shorten long hashes to ``head...tail``, each a third of ``max_length``."""
    if len(text) <= max_length:
        return text
    third = max_length // 3
    return f"{text[:third]}...{text[len(text) - third:]}"


@dataclass(frozen=True)
class EntryLine:
    address: str
    in_wallet: bool
    amount: Decimal

    @property
    def amount_text(self) -> str:
        return format_amount(self.amount)


@dataclass(frozen=True)
class DisplayRow:
    tx_hash: str
    short_hash: str
    inputs: list[EntryLine]
    outputs: list[EntryLine]
    total: Decimal
    total_text: str
    amount_class: AmountClass
    fee: Decimal
    fee_text: str
    fee_class: AmountClass
    timestamp: int | None
    time_label: str

    @property
    def confirmed(self) -> bool:
        return self.timestamp is not None


def _line(entry: TxEntry) -> EntryLine:
    return EntryLine(
        address=entry.address or "",
        in_wallet=entry.in_wallet,
        amount=from_smallest_unit(entry.amount),
    )


def build_row(tx: Transaction, now_ms: int | float | None = None) -> DisplayRow:
    total = from_smallest_unit(tx.total_amount)
    fee = from_smallest_unit(tx.fee_amount)

    if tx.is_credit:
        amount_class = AmountClass.CREDIT
        total_text = f"+{format_amount(total)}"
        fee_class = AmountClass.MUTED
    else:
        amount_class = AmountClass.DEBIT
        total_text = format_amount(total)
        fee_class = AmountClass.DEBIT

    timestamp = tx.timestamp or None
    return DisplayRow(
        tx_hash=tx.tx_hash,
        short_hash=crop_string(tx.tx_hash),
        inputs=[_line(e) for e in tx.inputs],
        outputs=[_line(e) for e in tx.outputs],
        total=total,
        total_text=total_text,
        amount_class=amount_class,
        fee=fee,
        fee_text=f"-{format_amount(fee)}",
        fee_class=fee_class,
        timestamp=timestamp,
        time_label=epoch_to_ago(timestamp, now_ms) if timestamp else UNCONFIRMED_LABEL,
    )


def build_rows(
    transactions: Iterable[Transaction], now_ms: int | float | None = None
) -> list[DisplayRow]:
    return [build_row(tx, now_ms) for tx in transactions]
