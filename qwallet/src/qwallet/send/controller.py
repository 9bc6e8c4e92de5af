"""
Send flow state machine.

    Idle -> Composing -> Submitting -> ReconcilingSuccess | ReconcilingFailure -> Idle

The state is a single tagged value; each state carries only the data that is
meaningful in it. After every submission, whatever the outcome, the form is
cleared, a notification is shown, the balance is marked stale and, after a
settle delay, the feed is refreshed. A transport or service error does not
prove the transaction was not broadcast, so the refresh is never skipped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from loguru import logger
from pydantic import ValidationError

from qwallet.bridge.base import BridgeAction, WalletBridge
from qwallet.coins import CoinProfile, get_profile
from qwallet.constants import SETTLE_DELAY
from qwallet.errors import AddressValidationError, ServiceError, TransportError, WalletError
from qwallet.fees import FeeCalculator, to_decimal, truncate
from qwallet.feed.feed import TransactionFeed
from qwallet.models import CoinType, FeeQuote, SendRequest, ValidationErrorKind, ValidationOutcome
from qwallet.send.notifications import NotificationCenter, NotificationKind
from qwallet.validation.address import check
from qwallet.validation.names import RecipientLookup

SEND_SUCCESS = "send.success"
SEND_ERROR = "send.error"


class SendPhase(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    SUBMITTING = "submitting"
    RECONCILING_SUCCESS = "reconciling-success"
    RECONCILING_FAILURE = "reconciling-failure"


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[SendPhase] = SendPhase.IDLE


@dataclass(frozen=True)
class Composing:
    phase: ClassVar[SendPhase] = SendPhase.COMPOSING

    recipient: str = ""
    amount: Decimal = Decimal(0)
    outcome: ValidationOutcome = ValidationOutcome.fail(ValidationErrorKind.REQUIRED)
    memo: str = ""


@dataclass(frozen=True)
class Submitting:
    phase: ClassVar[SendPhase] = SendPhase.SUBMITTING

    request: SendRequest


@dataclass(frozen=True)
class ReconcilingSuccess:
    phase: ClassVar[SendPhase] = SendPhase.RECONCILING_SUCCESS

    request: SendRequest
    acknowledgment: Any = None


@dataclass(frozen=True)
class ReconcilingFailure:
    phase: ClassVar[SendPhase] = SendPhase.RECONCILING_FAILURE

    request: SendRequest
    error: WalletError


SendState = Idle | Composing | Submitting | ReconcilingSuccess | ReconcilingFailure


class SendFlowController:
    """
    Coordinates composing, submitting and reconciling one coin's sends.

    Args:
        bridge: Wallet bridge performing ``SEND_COIN``
        feed: Feed refreshed after every submission
        coin: Coin being sent
        settle_delay: Seconds to wait before the reconciliation refresh
        recipient_lookup: Optional ledger lookup gating the recipient (Qortal)
    """

    def __init__(
        self,
        bridge: WalletBridge,
        feed: TransactionFeed,
        coin: CoinType,
        profile: CoinProfile | None = None,
        fee_calculator: FeeCalculator | None = None,
        notifications: NotificationCenter | None = None,
        settle_delay: float = SETTLE_DELAY,
        recipient_lookup: RecipientLookup | None = None,
    ):
        self.bridge = bridge
        self.feed = feed
        self.coin = coin
        self.profile = profile or get_profile(coin)
        self.fee_calculator = fee_calculator or FeeCalculator({coin: self.profile})
        self.notifications = notifications or NotificationCenter()
        self.settle_delay = settle_delay
        self.recipient_lookup = recipient_lookup

        self.state: SendState = Idle()
        self.fee_quote: FeeQuote = self.fee_calculator.quote(None, coin)
        self.last_result: ReconcilingSuccess | ReconcilingFailure | None = None

    @property
    def phase(self) -> SendPhase:
        return self.state.phase

    # ------------------------------------------------------------------
    # Composing
    # ------------------------------------------------------------------

    def open(self, recipient: str = "") -> Composing:
        """Start composing, optionally prefilled (e.g. from the address book)."""
        if isinstance(self.state, (Submitting, ReconcilingSuccess, ReconcilingFailure)):
            raise RuntimeError(f"Cannot open send form while {self.phase.value}")
        self.state = Composing()
        if self.recipient_lookup is not None:
            self.recipient_lookup.reset()
        if recipient:
            return self.set_recipient(recipient)
        return self.state

    def close(self) -> None:
        """Discard the composed form."""
        if isinstance(self.state, Composing):
            if self.recipient_lookup is not None:
                self.recipient_lookup.reset()
            self.state = Idle()

    def _composing(self) -> Composing:
        if not isinstance(self.state, Composing):
            raise RuntimeError(f"Send form is not open ({self.phase.value})")
        return self.state

    def set_recipient(self, text: str) -> Composing:
        form = self._composing()
        recipient = text.strip()
        outcome = check(self.coin, recipient)
        if self.recipient_lookup is not None:
            self.recipient_lookup.update(recipient)
        self.state = Composing(
            recipient=recipient, amount=form.amount, outcome=outcome, memo=form.memo
        )
        return self.state

    def set_amount(self, amount: int | float | str | Decimal | None) -> Composing:
        form = self._composing()
        value = truncate(to_decimal(amount))
        if value < 0:
            raise ValueError(f"Amount cannot be negative: {value}")
        self.state = Composing(
            recipient=form.recipient, amount=value, outcome=form.outcome, memo=form.memo
        )
        return self.state

    def set_memo(self, memo: str) -> Composing:
        form = self._composing()
        self.state = Composing(
            recipient=form.recipient, amount=form.amount, outcome=form.outcome, memo=memo
        )
        return self.state

    def set_fee_rate(self, raw_fee_rate: int | float | str | Decimal | None) -> FeeQuote:
        self.fee_quote = self.fee_calculator.quote(raw_fee_rate, self.coin)
        return self.fee_quote

    def set_unit_fee(self, raw_unit_fee: int | float | str | Decimal | None) -> FeeQuote:
        self.fee_quote = self.fee_calculator.quote_unit_fee(raw_unit_fee, self.coin)
        return self.fee_quote

    @property
    def max_sendable(self) -> Decimal:
        return self.fee_calculator.max_sendable(self.feed.snapshot.balance, self.fee_quote)

    def send_max(self) -> Composing:
        """Set the amount to the whole balance minus the estimated fee (never negative)."""
        return self.set_amount(self.max_sendable)

    @property
    def exceeds_balance(self) -> bool:
        return isinstance(self.state, Composing) and self.state.amount > self.max_sendable

    def can_submit(self) -> bool:
        if not isinstance(self.state, Composing):
            return False
        form = self.state
        if form.amount <= 0 or form.recipient == "" or not form.outcome.valid:
            return False
        if self.fee_quote.is_zero:
            return False
        if self.recipient_lookup is not None and not self.recipient_lookup.result.is_sendable:
            return False
        if self.exceeds_balance:
            return False
        return True

    def build_request(self) -> SendRequest:
        """
        Turn the composed form into a ``SendRequest``.

        Raises:
            AddressValidationError: recipient fails the local check
            ValueError: amount or fee not positive, recipient lookup not found,
                or amount above the max sendable
        """
        form = self._composing()
        if not form.outcome.valid:
            raise AddressValidationError(
                form.outcome.reason or ValidationErrorKind.INVALID_FORMAT, form.recipient
            )
        if form.amount <= 0:
            raise ValueError("Amount must be greater than zero")
        if self.fee_quote.is_zero:
            raise ValueError(f"No {self.coin.value} fee available")
        if self.recipient_lookup is not None and not self.recipient_lookup.result.is_sendable:
            raise ValueError(
                f"Recipient not resolved ({self.recipient_lookup.result.status.value})"
            )
        if self.exceeds_balance:
            raise ValueError(
                f"Amount exceeds max sendable ({self.max_sendable} {self.coin.value})"
            )
        try:
            return SendRequest(
                coin=self.coin,
                recipient=form.recipient,
                amount=form.amount,
                fee=self.fee_quote.rounded_fee,
                memo=form.memo if self.profile.sends_memo else None,
            )
        except ValidationError as e:
            raise ValueError(str(e)) from e

    def request_params(self, request: SendRequest) -> dict[str, Any]:
        params: dict[str, Any] = {
            "coin": request.coin.value,
            "recipient": request.recipient,
            "amount": float(request.amount),
        }
        if self.profile.sends_fee:
            params["fee"] = float(request.fee)
        if self.profile.sends_memo:
            params["memo"] = request.memo or ""
        return params

    # ------------------------------------------------------------------
    # Submitting and reconciliation
    # ------------------------------------------------------------------

    async def submit(self) -> ReconcilingSuccess | ReconcilingFailure:
        """
        Submit the composed transaction and reconcile.

        Never retried. Returns the reconciliation state that was passed
        through; the controller is back in ``Idle`` when this returns.
        """
        request = self.build_request()
        self.state = Submitting(request)
        logger.info(f"Sending {request.amount} {self.coin.value} to {request.recipient}")

        result: ReconcilingSuccess | ReconcilingFailure
        try:
            ack = await self.bridge.request(BridgeAction.SEND_COIN, self.request_params(request))
        except (TransportError, ServiceError) as e:
            logger.error(f"Error sending {self.coin.value}: {e}")
            result = ReconcilingFailure(request=request, error=e)
        else:
            logger.info(f"{self.coin.value} send accepted")
            result = ReconcilingSuccess(request=request, acknowledgment=ack)

        await self._reconcile(result)
        return result

    async def _reconcile(self, result: ReconcilingSuccess | ReconcilingFailure) -> None:
        self.state = result
        self.last_result = result
        if self.recipient_lookup is not None:
            self.recipient_lookup.reset()

        if isinstance(result, ReconcilingSuccess):
            self.notifications.show(NotificationKind.SUCCESS, SEND_SUCCESS)
        else:
            self.notifications.show(NotificationKind.ERROR, SEND_ERROR, detail=str(result.error))

        self.feed.mark_balance_stale()
        try:
            await asyncio.sleep(self.settle_delay)
            await self.feed.refresh()
        finally:
            self.state = Idle()
