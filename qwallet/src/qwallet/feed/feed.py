"""
Balance and transaction history feed for one coin.

Activation fetches address, balance and history concurrently, waits for all
three to settle, and only then arms the recurring balance/history refresh.
The refresh schedule is owned by the ``RefreshHandle`` returned from
``activate()``; closing it stops the timer and fences off any response still
in flight so nothing mutates the feed after teardown.
"""

from __future__ import annotations

import asyncio
import contextlib
from decimal import Decimal
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from qwallet.bridge.base import BridgeAction, WalletBridge
from qwallet.coins import CoinProfile, get_profile
from qwallet.constants import (
    ARRR_INIT_MAX_ATTEMPTS,
    ARRR_SYNC_MAX_ATTEMPTS,
    ARRR_SYNC_POLL_INTERVAL,
)
from qwallet.errors import ServiceError, TransportError
from qwallet.fees import to_decimal
from qwallet.models import CoinType, Transaction, WalletSnapshot

_TRANSACTIONS = TypeAdapter(list[Transaction])

SYNCHRONIZED = "Synchronized"
NOT_INITIALIZED = "Not initialized yet"
INITIALIZING = "Initializing wallet..."


class SyncState(str, Enum):
    NOT_REQUIRED = "not-required"
    SYNCING = "syncing"
    SYNCHRONIZED = "synchronized"
    NO_SERVER = "no-server"
    FAILED = "failed"


class RefreshHandle:
    """
    Owned handle for a feed's background refresh.

    Must be closed by whoever activated the feed; also usable as an async
    context manager.
    """

    def __init__(self, feed: TransactionFeed, generation: int, task: asyncio.Task | None):
        self._feed = feed
        self._generation = generation
        self._task = task

    @property
    def active(self) -> bool:
        return self._feed._generation == self._generation and not self._feed._closed

    @property
    def scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    async def close(self) -> None:
        """Cancel the recurring refresh. In-flight requests finish but are discarded."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._feed._teardown(self._generation)

    async def __aenter__(self) -> RefreshHandle:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class TransactionFeed:
    """
    Eventually-consistent mirror of one coin's wallet state.

    Each successful read replaces the previous snapshot wholesale; a failed
    read degrades to an empty/zero default and records a readable error.
    Concurrent refreshes are not deduplicated: the last one to complete wins.
    """

    def __init__(
        self,
        bridge: WalletBridge,
        coin: CoinType,
        profile: CoinProfile | None = None,
        sync_poll_interval: float = ARRR_SYNC_POLL_INTERVAL,
        sync_max_attempts: int = ARRR_SYNC_MAX_ATTEMPTS,
        init_max_attempts: int = ARRR_INIT_MAX_ATTEMPTS,
    ):
        self.bridge = bridge
        self.coin = coin
        self.profile = profile or get_profile(coin)
        self.sync_poll_interval = sync_poll_interval
        self.sync_max_attempts = sync_max_attempts
        self.init_max_attempts = init_max_attempts

        self.snapshot = WalletSnapshot()
        self.transactions: list[Transaction] = []
        self.balance_stale = True
        self.loading_history = True
        self.wallet_info_error: str | None = None
        self.balance_error: str | None = None
        self.history_error: str | None = None
        self.sync_state = (
            SyncState.SYNCING if self.profile.requires_sync else SyncState.NOT_REQUIRED
        )
        self.sync_message = ""

        self._generation = 0
        self._closed = False
        self._handle: RefreshHandle | None = None
        self._ticks: set[asyncio.Task] = set()

    @property
    def params(self) -> dict[str, Any]:
        return {"coin": self.coin.value}

    def _current(self, generation: int) -> bool:
        return generation == self._generation and not self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def activate(self) -> RefreshHandle:
        """
        Run the initial fetches and arm the recurring refresh.

        Returns the handle that owns the schedule. If the coin needs a synced
        light wallet and sync does not complete, nothing is fetched and the
        returned handle has no schedule.
        """
        if self._handle is not None and self._handle.active:
            raise RuntimeError(f"{self.coin.value} feed is already active")

        self._closed = False
        generation = self._generation

        if self.profile.requires_sync:
            state = await self.wait_for_sync(generation)
            if state != SyncState.SYNCHRONIZED:
                logger.warning(f"{self.coin.value} wallet not synchronized: {state.value}")
                self._handle = RefreshHandle(self, generation, None)
                return self._handle

        await asyncio.gather(
            self.fetch_wallet_info(generation),
            self.fetch_balance(generation),
            self.fetch_history(generation),
        )

        task = None
        if self._current(generation):
            task = asyncio.create_task(self._refresh_loop(generation))
            logger.debug(
                f"{self.coin.value} refresh armed every {self.profile.refresh_interval}s"
            )
        self._handle = RefreshHandle(self, generation, task)
        return self._handle

    def _teardown(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._generation += 1
        self._closed = True
        logger.debug(f"{self.coin.value} feed deactivated")

    async def _refresh_loop(self, generation: int) -> None:
        while self._current(generation):
            await asyncio.sleep(self.profile.refresh_interval)
            if not self._current(generation):
                break
            # Ticks do not wait for the previous refresh to finish
            tick = asyncio.create_task(self._refresh(generation))
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def mark_balance_stale(self) -> None:
        self.balance_stale = True

    async def refresh(self) -> None:
        """Re-read balance and history. Does nothing once the feed is torn down."""
        if self._closed:
            logger.debug(f"{self.coin.value} feed closed; refresh skipped")
            return
        await self._refresh(self._generation)

    async def refresh_history(self) -> None:
        if self._closed:
            return
        await self.fetch_history(self._generation)

    async def _refresh(self, generation: int) -> None:
        await asyncio.gather(self.fetch_balance(generation), self.fetch_history(generation))

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    async def fetch_wallet_info(self, generation: int | None = None) -> None:
        generation = self._generation if generation is None else generation
        try:
            response = await self.bridge.request(BridgeAction.GET_USER_WALLET, self.params)
        except (TransportError, ServiceError) as e:
            logger.error(f"Error getting {self.coin.value} wallet info: {e}")
            if self._current(generation):
                self.snapshot = WalletSnapshot(address="", balance=self.snapshot.balance)
                self.wallet_info_error = str(e)
            return

        address = response.get("address", "") if isinstance(response, dict) else ""
        if self._current(generation):
            self.snapshot = WalletSnapshot(address=address or "", balance=self.snapshot.balance)
            self.wallet_info_error = None

    async def fetch_balance(self, generation: int | None = None) -> None:
        generation = self._generation if generation is None else generation
        if self._current(generation):
            self.balance_stale = True
        try:
            response = await self.bridge.request(
                BridgeAction.GET_WALLET_BALANCE,
                self.params,
                timeout=self.profile.balance_timeout,
            )
            balance = to_decimal(response)
            error = None
        except (TransportError, ServiceError) as e:
            logger.error(f"Error getting {self.coin.value} balance: {e}")
            balance = Decimal(0)
            error = str(e)

        if not self._current(generation):
            return
        self.snapshot = WalletSnapshot(address=self.snapshot.address, balance=balance)
        self.balance_error = error
        self.balance_stale = False

    async def fetch_history(self, generation: int | None = None) -> None:
        generation = self._generation if generation is None else generation
        if self._current(generation):
            self.loading_history = True
        try:
            response = await self.bridge.request(
                BridgeAction.GET_USER_WALLET_TRANSACTIONS,
                self.params,
                timeout=self.profile.history_timeout,
            )
            transactions = _TRANSACTIONS.validate_python(response or [])
            error = None
        except (TransportError, ServiceError) as e:
            logger.error(f"Error getting {self.coin.value} transactions: {e}")
            transactions, error = [], str(e)
        except ValidationError as e:
            logger.error(f"Malformed {self.coin.value} transaction list: {e}")
            transactions, error = [], "malformed transaction list"

        if self.profile.sort_history:
            transactions = sort_newest_first(transactions)

        if not self._current(generation):
            return
        self.transactions = transactions
        self.history_error = error
        self.loading_history = False

    # ------------------------------------------------------------------
    # Light wallet sync
    # ------------------------------------------------------------------

    async def wait_for_sync(self, generation: int | None = None) -> SyncState:
        """
        Poll the light wallet until it reports synchronized.

        Gives up after ``sync_max_attempts`` "not initialized" answers or
        ``init_max_attempts`` "initializing" answers, and immediately when the
        status is an HTML error page (no light wallet server reachable).
        """
        generation = self._generation if generation is None else generation
        attempts = 0
        init_attempts = 0
        self.sync_state = SyncState.SYNCING

        while attempts < self.sync_max_attempts and init_attempts < self.init_max_attempts:
            if not self._current(generation):
                return self.sync_state
            try:
                status = await self.bridge.request(BridgeAction.GET_ARRR_SYNC_STATUS)
            except TransportError as e:
                logger.error(f"Error getting {self.coin.value} sync status: {e}")
                self.sync_state, self.sync_message = SyncState.FAILED, str(e)
                return self.sync_state
            except ServiceError as e:
                logger.warning(f"{self.coin.value} sync status error: {e}")
                attempts += 1
                await asyncio.sleep(self.sync_poll_interval)
                continue

            status = str(status)
            if "<" in status:
                self.sync_state, self.sync_message = SyncState.NO_SERVER, ""
                return self.sync_state
            if status == SYNCHRONIZED:
                self.sync_state, self.sync_message = SyncState.SYNCHRONIZED, ""
                return self.sync_state

            if status == NOT_INITIALIZED:
                attempts += 1
            elif status == INITIALIZING:
                init_attempts += 1
            self.sync_message = status
            logger.debug(f"{self.coin.value} sync: {status}")
            await asyncio.sleep(self.sync_poll_interval)

        self.sync_state, self.sync_message = SyncState.NO_SERVER, ""
        return self.sync_state


def sort_newest_first(transactions: list[Transaction]) -> list[Transaction]:
    """Newest first; unconfirmed entries (no timestamp) lead."""
    return sorted(
        transactions,
        key=lambda tx: tx.timestamp if tx.timestamp else float("inf"),
        reverse=True,
    )
