"""
Per-coin behaviour profiles.

Everything that differs between the supported ledgers (fee model, response
ceilings, what the send call carries) lives here so the controller and feed
stay coin-agnostic.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from qwallet.constants import (
    ARRR_BALANCE_TIMEOUT,
    ARRR_FEE,
    BALANCE_TIMEOUT,
    BTC_FEE,
    DGB_FEE,
    DOGE_FEE,
    HISTORY_TIMEOUT,
    LTC_FEE,
    QORT_DEFAULT_FEE,
    QORT_REFRESH_INTERVAL,
    REFRESH_INTERVAL,
    RVN_FEE,
)
from qwallet.models import CoinType


class FeePolicy(BaseModel):
    """How a coin's fee is derived."""

    multiplier: Decimal = Field(default=Decimal(0), ge=0)
    fixed_fee: Decimal | None = Field(default=None, gt=0)

    @property
    def is_fixed(self) -> bool:
        return self.fixed_fee is not None


class CoinProfile(BaseModel):
    """Static behaviour of one supported coin."""

    coin: CoinType
    name: str
    fee: FeePolicy
    balance_timeout: float = Field(default=BALANCE_TIMEOUT, gt=0)
    history_timeout: float = Field(default=HISTORY_TIMEOUT, gt=0)
    refresh_interval: float = Field(default=REFRESH_INTERVAL, gt=0)
    sends_fee: bool = True
    sends_memo: bool = False
    sort_history: bool = False
    requires_sync: bool = False


COIN_PROFILES: dict[CoinType, CoinProfile] = {
    CoinType.BTC: CoinProfile(coin=CoinType.BTC, name="Bitcoin", fee=FeePolicy(multiplier=BTC_FEE)),
    CoinType.DOGE: CoinProfile(
        coin=CoinType.DOGE, name="Dogecoin", fee=FeePolicy(multiplier=DOGE_FEE)
    ),
    CoinType.LTC: CoinProfile(coin=CoinType.LTC, name="Litecoin", fee=FeePolicy(multiplier=LTC_FEE)),
    CoinType.RVN: CoinProfile(
        coin=CoinType.RVN, name="Ravencoin", fee=FeePolicy(multiplier=RVN_FEE)
    ),
    CoinType.DGB: CoinProfile(coin=CoinType.DGB, name="DigiByte", fee=FeePolicy(multiplier=DGB_FEE)),
    CoinType.ARRR: CoinProfile(
        coin=CoinType.ARRR,
        name="Pirate Chain",
        fee=FeePolicy(fixed_fee=ARRR_FEE),
        balance_timeout=ARRR_BALANCE_TIMEOUT,
        sends_fee=False,
        sends_memo=True,
        sort_history=True,
        requires_sync=True,
    ),
    CoinType.QORT: CoinProfile(
        coin=CoinType.QORT,
        name="Qortal",
        fee=FeePolicy(fixed_fee=QORT_DEFAULT_FEE),
        refresh_interval=QORT_REFRESH_INTERVAL,
        sends_fee=False,
    ),
}


def get_profile(coin: CoinType) -> CoinProfile:
    """Look up a coin profile, raising ``KeyError`` for unsupported coins."""
    return COIN_PROFILES[coin]


def with_multiplier_overrides(overrides: dict[str, Decimal]) -> dict[CoinType, CoinProfile]:
    """Copy of the profile table with configured fee multipliers applied."""
    profiles = dict(COIN_PROFILES)
    for tag, multiplier in overrides.items():
        coin = CoinType(tag.upper())
        profile = profiles[coin]
        if profile.fee.is_fixed:
            raise ValueError(f"{coin.value} uses a fixed fee; multiplier override not allowed")
        fee = profile.fee.model_copy(update={"multiplier": Decimal(multiplier)})
        profiles[coin] = profile.model_copy(update={"fee": fee})
    return profiles
