"""
qwallet - multi-coin wallet dashboard core

Address validation, fee quoting, the send flow state machine and the
balance/transaction feed, all talking to an external wallet bridge.
"""

__version__ = "0.4.0"

from qwallet.bridge import BridgeAction, HttpWalletBridge, WalletBridge
from qwallet.errors import AddressValidationError, ServiceError, TransportError, WalletError
from qwallet.feed import RefreshHandle, TransactionFeed, paginate
from qwallet.fees import FeeCalculator
from qwallet.models import (
    CoinType,
    FeeQuote,
    SendRequest,
    Transaction,
    TxEntry,
    ValidationErrorKind,
    ValidationOutcome,
    WalletSnapshot,
)
from qwallet.send import SendFlowController
from qwallet.validation import check, validate

__all__ = [
    "AddressValidationError",
    "BridgeAction",
    "CoinType",
    "FeeCalculator",
    "FeeQuote",
    "HttpWalletBridge",
    "RefreshHandle",
    "SendFlowController",
    "SendRequest",
    "ServiceError",
    "Transaction",
    "TransactionFeed",
    "TransportError",
    "TxEntry",
    "ValidationErrorKind",
    "ValidationOutcome",
    "WalletBridge",
    "WalletError",
    "WalletSnapshot",
    "__version__",
    "check",
    "paginate",
    "validate",
]
