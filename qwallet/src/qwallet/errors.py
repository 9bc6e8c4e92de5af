"""
Exception taxonomy for the wallet core.
"""

from __future__ import annotations

from typing import Any

from qwallet.models import ValidationErrorKind


class WalletError(Exception):
    """Base class for wallet core errors."""


class AddressValidationError(WalletError):
    """Recipient failed the local syntactic check. Never reaches the network."""

    def __init__(self, kind: ValidationErrorKind, address: str = ""):
        self.kind = kind
        self.address = address
        super().__init__(f"Invalid recipient ({kind.value}): {address!r}")


class TransportError(WalletError):
    """Bridge request failed, raised or exceeded its response ceiling."""

    def __init__(self, message: str, action: str | None = None, timed_out: bool = False):
        self.action = action
        self.timed_out = timed_out
        super().__init__(message)


class ServiceError(WalletError):
    """Bridge answered with an explicit ``error`` field."""

    def __init__(self, error: Any, action: str | None = None):
        self.error = error
        self.action = action
        super().__init__(describe_error(error))


def describe_error(error: Any) -> str:
    """Readable text for a string or structured bridge error."""
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        for key in ("message", "error", "reason"):
            value = error.get(key)
            if isinstance(value, str) and value:
                return value
    return str(error)
