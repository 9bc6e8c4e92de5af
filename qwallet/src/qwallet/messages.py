"""
English texts for structured codes.

The core only ever produces codes (validation kinds, lookup statuses,
notification codes); turning them into words happens here, at the edge.
"""

from __future__ import annotations

from qwallet.coins import get_profile
from qwallet.models import CoinType, ValidationErrorKind, ValidationOutcome
from qwallet.send.controller import SEND_ERROR, SEND_SUCCESS
from qwallet.validation.names import LookupStatus

NOTIFICATION_TEXT = {
    SEND_SUCCESS: "Transaction submitted successfully",
    SEND_ERROR: "Something went wrong while sending; the transaction list will be refreshed",
}

LOOKUP_TEXT = {
    LookupStatus.PENDING: "Looking up recipient...",
    LookupStatus.NOT_FOUND: "Recipient not found",
    LookupStatus.FAILED: "Recipient lookup failed",
}


def validation_message(coin: CoinType, outcome: ValidationOutcome) -> str | None:
    """Text for a failed validation outcome, None when the outcome is valid."""
    if outcome.valid:
        return None
    name = get_profile(coin).name
    if outcome.reason == ValidationErrorKind.REQUIRED:
        return "Recipient is required"
    if outcome.reason == ValidationErrorKind.TOO_LONG:
        return f"Too long for a {name} address"
    if coin == CoinType.QORT:
        return "Recipient is too short"
    return f"Invalid {name} address"


def notification_message(code: str) -> str:
    return NOTIFICATION_TEXT.get(code, code)


def lookup_message(status: LookupStatus) -> str | None:
    return LOOKUP_TEXT.get(status)
