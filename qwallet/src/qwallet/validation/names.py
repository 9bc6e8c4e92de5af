"""
Qortal recipient resolution.

A Qortal recipient passes the local check with only a length floor; whether it
is a real address or a registered name is decided by asking a node. Lookups are
debounced so rapid typing issues one request, and a newer input cancels the
lookup still in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

import httpx
from loguru import logger

from qwallet.constants import NAME_LOOKUP_DEBOUNCE
from qwallet.errors import TransportError
from qwallet.models import CoinType, ValidationOutcome
from qwallet.validation.address import check


class NameResolver(ABC):
    """Resolves a Qortal address or registered name to its owner address."""

    @abstractmethod
    async def resolve(self, name: str) -> str | None:
        """Owner address, or None when neither an address nor a name matches.

        Raises:
            TransportError: the lookup itself failed
        """

    async def close(self) -> None:
        pass


class QortalNodeResolver(NameResolver):
    """Resolver backed by a Qortal node's HTTP API."""

    def __init__(self, node_url: str = "http://127.0.0.1:12391", timeout: float = 30.0):
        self.node_url = node_url.rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.node_url, timeout=timeout)

    async def _is_valid_address(self, candidate: str) -> bool:
        response = await self.client.get(f"/addresses/validate/{quote(candidate, safe='')}")
        response.raise_for_status()
        return response.json() is True

    async def _name_owner(self, candidate: str) -> str | None:
        response = await self.client.get(f"/names/{quote(candidate, safe='')}")
        if response.status_code != 200:
            logger.debug(f"No name found: {candidate}")
            return None
        data = response.json()
        return data.get("owner") if isinstance(data, dict) else None

    async def resolve(self, name: str) -> str | None:
        try:
            valid_address, owner = await asyncio.gather(
                self._is_valid_address(name), self._name_owner(name)
            )
        except httpx.HTTPError as e:
            logger.error(f"Recipient lookup failed: {e}")
            raise TransportError(f"Recipient lookup failed: {e}") from e
        except ValueError as e:
            logger.error(f"Recipient lookup returned a non-JSON body: {e}")
            raise TransportError(f"Recipient lookup returned invalid JSON: {e}") from e

        if valid_address:
            return name
        return owner

    async def close(self) -> None:
        await self.client.aclose()


class LookupStatus(str, Enum):
    IDLE = "idle"
    INVALID = "invalid"  # failed the local check, no lookup issued
    PENDING = "pending"
    FOUND = "found"
    NOT_FOUND = "not-found"
    FAILED = "failed"


@dataclass(frozen=True)
class LookupResult:
    status: LookupStatus
    recipient: str = ""
    owner: str | None = None
    outcome: ValidationOutcome | None = None

    @property
    def is_sendable(self) -> bool:
        return self.status == LookupStatus.FOUND


class RecipientLookup:
    """
    Debounced recipient lookup with a caller-visible pending state.

    ``update()`` is called on every input change; the result is available as
    ``result`` and moves through ``PENDING`` while a lookup is scheduled or in
    flight.
    """

    def __init__(
        self,
        resolver: NameResolver,
        debounce: float = NAME_LOOKUP_DEBOUNCE,
        coin: CoinType = CoinType.QORT,
    ):
        self.resolver = resolver
        self.debounce = debounce
        self.coin = coin
        self.result = LookupResult(LookupStatus.IDLE)
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self.result.status == LookupStatus.PENDING

    def update(self, text: str) -> LookupResult:
        """Register a new candidate, cancelling any lookup for the previous one."""
        self._cancel()
        recipient = text.strip()

        outcome = check(self.coin, recipient)
        if not outcome.valid:
            self.result = LookupResult(LookupStatus.INVALID, recipient, outcome=outcome)
            return self.result

        self.result = LookupResult(LookupStatus.PENDING, recipient, outcome=outcome)
        self._task = asyncio.create_task(self._lookup(recipient))
        return self.result

    async def _lookup(self, recipient: str) -> None:
        await asyncio.sleep(self.debounce)
        try:
            owner = await self.resolver.resolve(recipient)
        except TransportError:
            self.result = LookupResult(LookupStatus.FAILED, recipient)
            return

        if owner is None:
            logger.debug(f"Recipient not found: {recipient}")
            self.result = LookupResult(LookupStatus.NOT_FOUND, recipient)
        else:
            self.result = LookupResult(LookupStatus.FOUND, recipient, owner=owner)

    async def wait(self) -> LookupResult:
        """Wait for the current lookup (if any) and return its result."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        return self.result

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def reset(self) -> None:
        self._cancel()
        self.result = LookupResult(LookupStatus.IDLE)
