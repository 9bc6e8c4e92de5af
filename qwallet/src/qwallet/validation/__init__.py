"""
Recipient validation: local address formats and Qortal name resolution.
"""

from qwallet.validation.address import (
    CoinValidator,
    MinLengthValidator,
    PatternValidator,
    check,
    register_validator,
    registered_coins,
    validate,
)
from qwallet.validation.names import (
    LookupResult,
    LookupStatus,
    NameResolver,
    QortalNodeResolver,
    RecipientLookup,
)

__all__ = [
    "CoinValidator",
    "LookupResult",
    "LookupStatus",
    "MinLengthValidator",
    "NameResolver",
    "PatternValidator",
    "QortalNodeResolver",
    "RecipientLookup",
    "check",
    "register_validator",
    "registered_coins",
    "validate",
]
