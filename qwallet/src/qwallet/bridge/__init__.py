"""
Wallet bridge clients.

Available bridges:
- HttpWalletBridge: JSON over HTTP to the wallet service
"""

from qwallet.bridge.base import BridgeAction, WalletBridge, raise_for_error
from qwallet.bridge.http import HttpWalletBridge

__all__ = [
    "BridgeAction",
    "HttpWalletBridge",
    "WalletBridge",
    "raise_for_error",
]
