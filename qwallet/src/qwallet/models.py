"""
Wallet data models.

Wire-facing models (``SendRequest``, ``Transaction``) are pydantic so bridge
payloads are validated on the way in; derived values are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CoinType(str, Enum):
    BTC = "BTC"
    DOGE = "DOGE"
    LTC = "LTC"
    RVN = "RVN"
    DGB = "DGB"
    ARRR = "ARRR"
    QORT = "QORT"


class ValidationErrorKind(str, Enum):
    REQUIRED = "required"
    INVALID_FORMAT = "invalid-format"
    TOO_LONG = "too-long"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of a local address format check"""

    valid: bool
    reason: ValidationErrorKind | None = None

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return cls(valid=True)

    @classmethod
    def fail(cls, reason: ValidationErrorKind) -> ValidationOutcome:
        return cls(valid=False, reason=reason)


@dataclass(frozen=True)
class FeeQuote:
    """Fee figures derived from a raw fee-rate signal"""

    coin: CoinType
    per_unit_rate: Decimal
    rounded_fee: Decimal
    estimated_network_fee: Decimal

    @property
    def is_zero(self) -> bool:
        return self.rounded_fee <= 0


@dataclass
class WalletSnapshot:
    """Current receive address and balance for one coin"""

    address: str = ""
    balance: Decimal = Decimal(0)


class SendRequest(BaseModel):
    """
    A composed outbound transaction.

    Only constructible with a positive amount, a finite positive fee and a
    recipient that passes the coin's address check.
    """

    model_config = ConfigDict(frozen=True)

    coin: CoinType
    recipient: str
    amount: Decimal = Field(..., gt=0, allow_inf_nan=False, decimal_places=8)
    fee: Decimal = Field(..., gt=0, allow_inf_nan=False)
    memo: str | None = None

    @field_validator("recipient", mode="before")
    @classmethod
    def strip_recipient(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_recipient(self) -> SendRequest:
        from qwallet.validation.address import check

        outcome = check(self.coin, self.recipient)
        if not outcome.valid:
            reason = outcome.reason.value if outcome.reason else "invalid"
            raise ValueError(f"recipient is not a valid {self.coin.value} address ({reason})")
        return self


class TxEntry(BaseModel):
    """One input or output line of a historical transaction"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str | None = None
    in_wallet: bool = Field(default=False, alias="addressInWallet")
    amount: int = 0


class Transaction(BaseModel):
    """
    One ledger entry as reported by ``GET_USER_WALLET_TRANSACTIONS``.

    Amounts are smallest-unit integers. ``total_amount`` is signed from the
    wallet's point of view; a missing ``timestamp`` means unconfirmed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tx_hash: str = Field(default="", alias="txHash")
    inputs: list[TxEntry] = Field(default_factory=list)
    outputs: list[TxEntry] = Field(default_factory=list)
    total_amount: int = Field(default=0, alias="totalAmount")
    fee_amount: int = Field(default=0, alias="feeAmount")
    timestamp: int | None = None

    @property
    def confirmed(self) -> bool:
        return bool(self.timestamp)

    @property
    def is_credit(self) -> bool:
        return self.total_amount > 0
