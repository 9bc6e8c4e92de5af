"""
Syntactic address checks per coin.

Validators are looked up in a registry keyed by ``CoinType``; adding a coin
means registering a validator, not editing a dispatch function. Checks are
pure: the same (coin, trimmed text) always gives the same outcome.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from loguru import logger

from qwallet.constants import QORT_RECIPIENT_MAX_LENGTH, QORT_RECIPIENT_MIN_LENGTH
from qwallet.models import CoinType, ValidationErrorKind, ValidationOutcome

# Base58: digits and letters without 0, O, I, l
BASE58 = "[1-9A-HJ-NP-Za-km-z]"


class CoinValidator(ABC):
    """Format check for a single coin. Receives already-trimmed, non-empty text."""

    max_length: int

    @abstractmethod
    def matches(self, address: str) -> bool:
        """Return True if the address has an accepted form"""

    def check(self, address: str) -> ValidationOutcome:
        if len(address) > self.max_length:
            return ValidationOutcome.fail(ValidationErrorKind.TOO_LONG)
        if not self.matches(address):
            return ValidationOutcome.fail(ValidationErrorKind.INVALID_FORMAT)
        return ValidationOutcome.ok()


class PatternValidator(CoinValidator):
    """Accepts any of a set of full-string regular expressions."""

    def __init__(self, *patterns: str):
        if not patterns:
            raise ValueError("at least one pattern is required")
        self.patterns = [re.compile(p) for p in patterns]
        self.max_length = max(_pattern_length(p) for p in patterns)

    def matches(self, address: str) -> bool:
        return any(p.fullmatch(address) for p in self.patterns)


class MinLengthValidator(CoinValidator):
    """
    Length floor only.

    Used for Qortal, where a recipient may be an address or a registered name
    and real validity needs a ledger lookup (see ``qwallet.validation.names``).
    """

    def __init__(self, min_length: int, max_length: int):
        self.min_length = min_length
        self.max_length = max_length

    def matches(self, address: str) -> bool:
        return len(address) >= self.min_length


def _pattern_length(pattern: str) -> int:
    """Length of strings matched by a fixed-width pattern like ``bc1[...]{39}``."""
    prefix, _, rest = pattern.partition("[")
    count = re.search(r"\{(\d+)\}$", rest)
    if count is None:
        raise ValueError(f"pattern must end with a fixed repeat count: {pattern}")
    return len(prefix) + int(count.group(1))


_VALIDATORS: dict[CoinType, CoinValidator] = {
    # P2PKH, P2SH, segwit
    CoinType.BTC: PatternValidator(
        f"1{BASE58}{{33}}", f"3{BASE58}{{33}}", "bc1[02-9A-HJ-NP-Za-z]{39}"
    ),
    CoinType.DOGE: PatternValidator(f"D{BASE58}{{33}}"),
    CoinType.LTC: PatternValidator(
        f"L{BASE58}{{33}}", f"M{BASE58}{{33}}", "ltc1[2-9A-HJ-NP-Za-z]{39}"
    ),
    CoinType.RVN: PatternValidator(f"R{BASE58}{{33}}"),
    CoinType.DGB: PatternValidator(
        f"D{BASE58}{{33}}", f"S{BASE58}{{33}}", "dgb1[2-9A-HJ-NP-Za-z]{39}"
    ),
    # Sapling shielded
    CoinType.ARRR: PatternValidator("zs1[a-zA-Z0-9]{75}"),
    CoinType.QORT: MinLengthValidator(QORT_RECIPIENT_MIN_LENGTH, QORT_RECIPIENT_MAX_LENGTH),
}


def register_validator(coin: CoinType, validator: CoinValidator) -> None:
    """Register (or replace) the validator for a coin."""
    _VALIDATORS[coin] = validator


def unregister_validator(coin: CoinType) -> CoinValidator | None:
    return _VALIDATORS.pop(coin, None)


def registered_coins() -> list[CoinType]:
    return list(_VALIDATORS)


def check(coin: CoinType | str, address: str | None) -> ValidationOutcome:
    """
    Check a candidate recipient for a coin.

    The text is trimmed first; empty input is ``required`` for every coin.
    An unknown coin is invalid and logged as a policy gap.
    """
    trimmed = (address or "").strip()
    if not trimmed:
        return ValidationOutcome.fail(ValidationErrorKind.REQUIRED)

    try:
        coin = CoinType(coin)
    except ValueError:
        logger.warning(f"Address validation not implemented for coin type: {coin}")
        return ValidationOutcome.fail(ValidationErrorKind.INVALID_FORMAT)

    validator = _VALIDATORS.get(coin)
    if validator is None:
        logger.warning(f"Address validation not implemented for coin type: {coin.value}")
        return ValidationOutcome.fail(ValidationErrorKind.INVALID_FORMAT)

    return validator.check(trimmed)


def validate(coin: CoinType | str, address: str | None) -> bool:
    """Boolean form of :func:`check`."""
    return check(coin, address).valid
