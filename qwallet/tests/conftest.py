"""
Test fixtures for qwallet.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterator
from typing import Any

import pytest

from qwallet.bridge.base import BridgeAction, WalletBridge
from qwallet.models import CoinType

# Syntactically valid example recipients per coin
VALID_ADDRESSES: dict[CoinType, list[str]] = {
    CoinType.BTC: [
        "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa",
        "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy",
        "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq",
    ],
    CoinType.DOGE: ["DH5yaieqoZN36fDVciNyRueRGvGLR3mr7L"],
    CoinType.LTC: [
        "LVg2kJoFNg45Nbpy53h7Fe1wKyeXVRhMH9",
        "MGxNPPB7eBoWPUaprtX9v9CXJZoD2465zN",
        "ltc1qhxw7kgmn4n9ds2lyuw5fz3ka6cpqyw8dg5sj7e",
    ],
    CoinType.RVN: ["RNoSGCX8SPFscj8epDaJjqEpuZa2B5in88"],
    CoinType.DGB: [
        "DH5yaieqoZN36fDVciNyRueRGvGLR3mr7L",
        "SQ9EXABrHztGgefL9aH3FyeRjowdjtLfqw",
        "dgb1qhxw7kgmn4n9ds2lyuw5fz3ka6cpqyw8dg5sj7e",
    ],
    CoinType.ARRR: [
        "zs1ag2gpcd5n9mx8ve9xu3sxg7n9e3j9ur3rgmtwgpe6vms7hfvp5jc8w2t3pglaxzm7wmz6f0hy3p"
    ],
    CoinType.QORT: ["QdSnUy6sUiEnaN87dWmE92g1uQjrvPgrWG", "alice"],
}

LTC_ADDRESS = VALID_ADDRESSES[CoinType.LTC][0]


class FakeBridge(WalletBridge):
    """
    In-memory bridge.

    ``responses`` maps an action to a value, an exception to raise, a callable
    taking the params, or an iterator yielding successive responses.
    """

    def __init__(self, responses: dict[str, Any] | None = None):
        self.responses: dict[str, Any] = dict(responses or {})
        self.delays: dict[str, Any] = {}
        self.calls: list[tuple[str, dict[str, Any], float | None, float]] = []

    async def invoke(
        self, action: str, params: dict[str, Any], timeout: float | None = None
    ) -> Any:
        self.calls.append((action, dict(params), timeout, time.monotonic()))
        # picked at issue time so overlapping calls keep their own answer
        response = self.responses.get(action)
        if isinstance(response, Iterator):
            response = next(response)
        delay = self.delays.get(action, 0)
        if isinstance(delay, Iterator):
            delay = next(delay)
        if delay:
            await asyncio.sleep(delay)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response

    def calls_for(self, action: BridgeAction) -> list[tuple[str, dict[str, Any], float | None, float]]:
        return [c for c in self.calls if c[0] == action.value]

    def count(self, action: BridgeAction) -> int:
        return len(self.calls_for(action))


@pytest.fixture
def sample_transactions() -> list[dict[str, Any]]:
    """Raw history payload as the bridge returns it."""
    return [
        {
            "txHash": "a" * 64,
            "inputs": [{"address": "LSender1", "addressInWallet": False, "amount": 150000000}],
            "outputs": [
                {"address": LTC_ADDRESS, "addressInWallet": True, "amount": 100000000},
                {"address": "LChange1", "addressInWallet": False, "amount": 49990000},
            ],
            "totalAmount": 100000000,
            "feeAmount": 10000,
            "timestamp": 1700000000000,
        },
        {
            "txHash": "b" * 64,
            "inputs": [{"address": LTC_ADDRESS, "addressInWallet": True, "amount": "60000000"}],
            "outputs": [{"address": "LOther", "addressInWallet": False, "amount": 50000000}],
            "totalAmount": -50010000,
            "feeAmount": 10000,
        },
    ]


@pytest.fixture
def bridge(sample_transactions: list[dict[str, Any]]) -> FakeBridge:
    return FakeBridge(
        {
            BridgeAction.GET_USER_WALLET.value: {"address": LTC_ADDRESS},
            BridgeAction.GET_WALLET_BALANCE.value: 1.5,
            BridgeAction.GET_USER_WALLET_TRANSACTIONS.value: sample_transactions,
            BridgeAction.SEND_COIN.value: {"txHash": "c" * 64},
        }
    )
