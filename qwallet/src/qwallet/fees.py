"""
Fee quoting and max-sendable computation.

All arithmetic is done in ``Decimal`` at 8-decimal fixed point. Fees are
always rounded up so a quote never understates the real cost.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_DOWN, Decimal, InvalidOperation

from loguru import logger

from qwallet.coins import COIN_PROFILES, CoinProfile
from qwallet.constants import COIN_UNIT, FEE_RATE_DIVISOR, QUANTUM
from qwallet.models import CoinType, FeeQuote


def to_decimal(value: int | float | str | Decimal | None) -> Decimal:
    """Coerce a bridge number to Decimal. ``None`` and garbage become zero."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so 0.1 stays 0.1 instead of its binary expansion
            result = Decimal(str(value))
        except InvalidOperation:
            logger.warning(f"Not a number: {value!r}")
            return Decimal(0)
    if not result.is_finite():
        logger.warning(f"Non-finite amount treated as zero: {value!r}")
        return Decimal(0)
    return result


def round_up(value: Decimal) -> Decimal:
    """Round up to 8 decimals."""
    return value.quantize(QUANTUM, rounding=ROUND_CEILING)


def truncate(value: Decimal) -> Decimal:
    """Drop digits past 8 decimals without rounding."""
    return value.quantize(QUANTUM, rounding=ROUND_DOWN)


def from_smallest_unit(amount: int | str | None) -> Decimal:
    """Smallest-unit integer to an 8-decimal coin value."""
    return (to_decimal(amount) / COIN_UNIT).quantize(QUANTUM)


class FeeCalculator:
    """
    Pure fee conversions for every supported coin.

    Rate-based coins turn a per-kilobyte fee rate (smallest units) into a per
    byte coin fee and estimate the network fee with a fixed per-coin
    multiplier. Fixed-fee coins ignore the rate.
    """

    def __init__(self, profiles: dict[CoinType, CoinProfile] | None = None):
        self.profiles = profiles or COIN_PROFILES

    def quote(self, raw_fee_rate: int | float | str | Decimal | None, coin: CoinType) -> FeeQuote:
        """
        Quote fees for a raw fee-rate signal.

        A zero or unset rate yields a well-formed zero quote; blocking the
        submission is left to the send flow.
        """
        policy = self.profiles[coin].fee
        if policy.fixed_fee is not None:
            return FeeQuote(
                coin=coin,
                per_unit_rate=Decimal(0),
                rounded_fee=policy.fixed_fee,
                estimated_network_fee=policy.fixed_fee,
            )

        raw = to_decimal(raw_fee_rate)
        if raw < 0:
            logger.warning(f"Negative {coin.value} fee rate {raw} treated as zero")
            raw = Decimal(0)

        per_unit_rate = raw / FEE_RATE_DIVISOR
        rounded_fee = round_up(per_unit_rate / COIN_UNIT)
        return FeeQuote(
            coin=coin,
            per_unit_rate=per_unit_rate,
            rounded_fee=rounded_fee,
            estimated_network_fee=rounded_fee * policy.multiplier,
        )

    def quote_unit_fee(
        self, raw_unit_fee: int | float | str | Decimal | None, coin: CoinType = CoinType.QORT
    ) -> FeeQuote:
        """
        Quote a node-reported flat fee given in smallest units.

        Falls back to the coin's configured fixed fee when the node reports
        nothing usable.
        """
        fee = round_up(to_decimal(raw_unit_fee) / COIN_UNIT)
        if fee <= 0:
            return self.quote(None, coin)
        return FeeQuote(
            coin=coin, per_unit_rate=Decimal(0), rounded_fee=fee, estimated_network_fee=fee
        )

    @staticmethod
    def max_sendable(balance: int | float | str | Decimal | None, quote: FeeQuote) -> Decimal:
        """Balance minus the estimated network fee, never below zero."""
        remaining = to_decimal(balance) - quote.estimated_network_fee
        if remaining <= 0:
            return Decimal(0)
        return truncate(remaining)
