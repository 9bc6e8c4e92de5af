"""
Tests for the balance and transaction history feed.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest
from conftest import LTC_ADDRESS, FakeBridge

from qwallet.bridge.base import BridgeAction
from qwallet.coins import CoinProfile, get_profile
from qwallet.feed.feed import SyncState, TransactionFeed, sort_newest_first
from qwallet.models import CoinType, Transaction

BALANCE = BridgeAction.GET_WALLET_BALANCE
HISTORY = BridgeAction.GET_USER_WALLET_TRANSACTIONS
WALLET = BridgeAction.GET_USER_WALLET
SYNC = BridgeAction.GET_ARRR_SYNC_STATUS


def fast_profile(coin: CoinType = CoinType.LTC, **update: float) -> CoinProfile:
    update.setdefault("refresh_interval", 0.01)
    return get_profile(coin).model_copy(update=update)


class TestActivation:
    @pytest.mark.asyncio
    async def test_populates_wallet_state(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        assert feed.balance_stale
        assert feed.loading_history

        handle = await feed.activate()
        try:
            assert feed.snapshot.address == LTC_ADDRESS
            assert feed.snapshot.balance == Decimal("1.5")
            assert [tx.tx_hash for tx in feed.transactions] == ["a" * 64, "b" * 64]
            assert not feed.balance_stale
            assert not feed.loading_history
            assert feed.balance_error is None
            assert feed.sync_state == SyncState.NOT_REQUIRED
            assert handle.active
            assert handle.scheduled
        finally:
            await handle.close()

    @pytest.mark.asyncio
    async def test_passes_coin_and_ceilings(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        async with await feed.activate():
            pass
        assert bridge.calls_for(WALLET)[0][1] == {"coin": "LTC"}
        assert bridge.calls_for(BALANCE)[0][2] == 300.0
        assert bridge.calls_for(HISTORY)[0][2] == 300.0

    @pytest.mark.asyncio
    async def test_timer_armed_only_after_all_initial_fetches(self, bridge: FakeBridge) -> None:
        bridge.delays[HISTORY.value] = 0.05
        feed = TransactionFeed(bridge, CoinType.LTC, profile=fast_profile())

        handle = await feed.activate()
        try:
            # the slow history read held the timer back
            assert bridge.count(BALANCE) == 1
            await asyncio.sleep(0.035)
            assert bridge.count(BALANCE) >= 2
        finally:
            await handle.close()

    @pytest.mark.asyncio
    async def test_ticks_refresh_balance_and_history_only(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC, profile=fast_profile())
        async with await feed.activate():
            await asyncio.sleep(0.055)
        assert bridge.count(BALANCE) >= 3
        assert bridge.count(HISTORY) >= 3
        assert bridge.count(WALLET) == 1

    @pytest.mark.asyncio
    async def test_activate_twice_rejected(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        handle = await feed.activate()
        try:
            with pytest.raises(RuntimeError, match="already active"):
                await feed.activate()
        finally:
            await handle.close()

    @pytest.mark.asyncio
    async def test_reactivate_after_close(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        first = await feed.activate()
        await first.close()

        second = await feed.activate()
        try:
            assert second.active
            assert not first.active
            assert bridge.count(WALLET) == 2
        finally:
            await second.close()


class TestTeardown:
    @pytest.mark.asyncio
    async def test_close_stops_ticks(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC, profile=fast_profile())
        handle = await feed.activate()
        await handle.close()
        calls = len(bridge.calls)

        await asyncio.sleep(0.05)
        assert len(bridge.calls) == calls
        assert not handle.active
        assert not handle.scheduled

    @pytest.mark.asyncio
    async def test_in_flight_response_discarded_after_close(self, bridge: FakeBridge) -> None:
        bridge.responses[BALANCE.value] = iter([1.5, 9, 9, 9])
        bridge.delays[BALANCE.value] = iter([0, 0.05, 0.05, 0.05])
        feed = TransactionFeed(bridge, CoinType.LTC, profile=fast_profile())

        handle = await feed.activate()
        await asyncio.sleep(0.02)
        assert bridge.count(BALANCE) >= 2
        await handle.close()

        await asyncio.sleep(0.08)
        assert feed.snapshot.balance == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_refresh_after_close_is_skipped(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        handle = await feed.activate()
        await handle.close()
        calls = len(bridge.calls)

        await feed.refresh()
        await feed.refresh_history()
        assert len(bridge.calls) == calls

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        handle = await feed.activate()
        await handle.close()
        await handle.close()
        assert not handle.active


class TestDegradation:
    @pytest.mark.asyncio
    async def test_balance_ceiling(self, bridge: FakeBridge) -> None:
        bridge.delays[BALANCE.value] = 1.0
        profile = fast_profile(balance_timeout=0.05, refresh_interval=180)
        feed = TransactionFeed(bridge, CoinType.LTC, profile=profile)

        loop = asyncio.get_running_loop()
        started = loop.time()
        async with await feed.activate():
            elapsed = loop.time() - started
            assert elapsed < 0.5
            assert feed.snapshot.balance == 0
            assert "timed out" in feed.balance_error
            assert not feed.balance_stale
            # other reads are unaffected
            assert feed.snapshot.address == LTC_ADDRESS
            assert len(feed.transactions) == 2

    @pytest.mark.asyncio
    async def test_failures_default_to_empty(self) -> None:
        bridge = FakeBridge(
            {
                WALLET.value: RuntimeError("bridge gone"),
                BALANCE.value: {"error": "wallet locked"},
                HISTORY.value: {"error": {"message": "node down"}},
            }
        )
        feed = TransactionFeed(bridge, CoinType.DOGE)
        async with await feed.activate():
            assert feed.snapshot.address == ""
            assert feed.snapshot.balance == 0
            assert feed.transactions == []
            assert "bridge gone" in feed.wallet_info_error
            assert feed.balance_error == "wallet locked"
            assert feed.history_error == "node down"
            assert not feed.loading_history

    @pytest.mark.asyncio
    async def test_malformed_history(self, bridge: FakeBridge) -> None:
        bridge.responses[HISTORY.value] = [{"txHash": "x", "totalAmount": "lots"}]
        feed = TransactionFeed(bridge, CoinType.LTC)
        async with await feed.activate():
            assert feed.transactions == []
            assert feed.history_error == "malformed transaction list"

    @pytest.mark.asyncio
    async def test_null_history_is_empty(self, bridge: FakeBridge) -> None:
        bridge.responses[HISTORY.value] = None
        feed = TransactionFeed(bridge, CoinType.LTC)
        async with await feed.activate():
            assert feed.transactions == []
            assert feed.history_error is None

    @pytest.mark.asyncio
    async def test_recovery_replaces_snapshot(self, bridge: FakeBridge) -> None:
        bridge.responses[BALANCE.value] = iter([{"error": "busy"}, "2.25"])
        feed = TransactionFeed(bridge, CoinType.LTC)
        async with await feed.activate():
            assert feed.balance_error == "busy"
            await feed.refresh()
            assert feed.snapshot.balance == Decimal("2.25")
            assert feed.balance_error is None


class TestConcurrentRefresh:
    @pytest.mark.asyncio
    async def test_last_to_complete_wins(self, bridge: FakeBridge) -> None:
        bridge.responses[BALANCE.value] = iter([2, 3])
        bridge.delays[BALANCE.value] = iter([0.05, 0])
        feed = TransactionFeed(bridge, CoinType.LTC)

        await asyncio.gather(feed.refresh(), feed.refresh())
        # the first-issued read finished last and overwrote the newer value
        assert feed.snapshot.balance == Decimal(2)

    @pytest.mark.asyncio
    async def test_refresh_history_only(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        await feed.refresh_history()
        assert bridge.count(HISTORY) == 1
        assert bridge.count(BALANCE) == 0

    def test_mark_balance_stale(self, bridge: FakeBridge) -> None:
        feed = TransactionFeed(bridge, CoinType.LTC)
        feed.balance_stale = False
        feed.mark_balance_stale()
        assert feed.balance_stale


class TestPirateChainSync:
    @pytest.fixture
    def arrr_history(self) -> list[dict]:
        return [
            {"txHash": "t1", "totalAmount": 5, "timestamp": 1000},
            {"txHash": "t3", "totalAmount": -5, "timestamp": 3000},
            {"txHash": "pending", "totalAmount": 5},
            {"txHash": "t2", "totalAmount": 5, "timestamp": 2000},
        ]

    @pytest.mark.asyncio
    async def test_waits_for_sync_then_sorts_history(
        self, bridge: FakeBridge, arrr_history: list[dict]
    ) -> None:
        bridge.responses[SYNC.value] = iter(
            ["Not initialized yet", "Initializing wallet...", "Synced 40%", "Synchronized"]
        )
        bridge.responses[HISTORY.value] = arrr_history
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0)
        assert feed.sync_state == SyncState.SYNCING

        async with await feed.activate() as handle:
            assert handle.scheduled
            assert feed.sync_state == SyncState.SYNCHRONIZED
            assert bridge.count(SYNC) == 4
            assert [tx.tx_hash for tx in feed.transactions] == ["pending", "t3", "t2", "t1"]
            assert bridge.calls_for(BALANCE)[0][2] == 120.0

    @pytest.mark.asyncio
    async def test_no_server(self, bridge: FakeBridge) -> None:
        bridge.responses[SYNC.value] = "<html><body>502 Bad Gateway</body></html>"
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0)

        async with await feed.activate() as handle:
            assert feed.sync_state == SyncState.NO_SERVER
            assert not handle.scheduled
            assert bridge.count(WALLET) == 0
            assert bridge.count(BALANCE) == 0

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self, bridge: FakeBridge) -> None:
        bridge.responses[SYNC.value] = lambda params: "Not initialized yet"
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0, sync_max_attempts=3)

        async with await feed.activate():
            assert feed.sync_state == SyncState.NO_SERVER
            assert bridge.count(SYNC) == 3

    @pytest.mark.asyncio
    async def test_gives_up_initializing(self, bridge: FakeBridge) -> None:
        bridge.responses[SYNC.value] = lambda params: "Initializing wallet..."
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0, init_max_attempts=2)

        assert await feed.wait_for_sync() == SyncState.NO_SERVER
        assert bridge.count(SYNC) == 2

    @pytest.mark.asyncio
    async def test_progress_messages_not_counted(self, bridge: FakeBridge) -> None:
        bridge.responses[SYNC.value] = iter(["Synced 10%", "Synced 90%", "Synchronized"])
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0, sync_max_attempts=1)

        assert await feed.wait_for_sync() == SyncState.SYNCHRONIZED
        assert feed.sync_message == ""

    @pytest.mark.asyncio
    async def test_transport_failure(self, bridge: FakeBridge) -> None:
        bridge.responses[SYNC.value] = ConnectionError("refused")
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0)

        assert await feed.wait_for_sync() == SyncState.FAILED
        assert "refused" in feed.sync_message

    @pytest.mark.asyncio
    async def test_service_error_counts_as_attempt(self, bridge: FakeBridge) -> None:
        bridge.responses[SYNC.value] = lambda params: {"error": "not ready"}
        feed = TransactionFeed(bridge, CoinType.ARRR, sync_poll_interval=0, sync_max_attempts=2)

        assert await feed.wait_for_sync() == SyncState.NO_SERVER
        assert bridge.count(SYNC) == 2


def test_sort_newest_first_unconfirmed_lead() -> None:
    txs = [
        Transaction(tx_hash="old", timestamp=1),
        Transaction(tx_hash="new", timestamp=2),
        Transaction(tx_hash="pending"),
    ]
    assert [tx.tx_hash for tx in sort_newest_first(txs)] == ["pending", "new", "old"]
