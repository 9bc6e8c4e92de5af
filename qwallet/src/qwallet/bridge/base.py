"""
Base wallet bridge interface.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from loguru import logger

from qwallet.errors import ServiceError, TransportError, WalletError


class BridgeAction(str, Enum):
    GET_USER_WALLET = "GET_USER_WALLET"
    GET_WALLET_BALANCE = "GET_WALLET_BALANCE"
    GET_USER_WALLET_TRANSACTIONS = "GET_USER_WALLET_TRANSACTIONS"
    SEND_COIN = "SEND_COIN"
    GET_ARRR_SYNC_STATUS = "GET_ARRR_SYNC_STATUS"


def raise_for_error(response: Any, action: str | None = None) -> Any:
    """Return the payload, or raise ``ServiceError`` if it carries an ``error`` field."""
    if isinstance(response, dict) and response.get("error"):
        raise ServiceError(response["error"], action=action)
    return response


class WalletBridge(ABC):
    """
    Abstract request/response primitive of the external wallet service.

    The bridge signs and broadcasts; this side only asks.
    """

    @abstractmethod
    async def invoke(
        self, action: str, params: dict[str, Any], timeout: float | None = None
    ) -> Any:
        """Perform one bridge request and return the raw response"""

    async def request(
        self,
        action: BridgeAction | str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Invoke an action and normalise its failure modes.

        Args:
            action: Bridge action name
            params: Action parameters (usually at least ``coin``)
            timeout: Response ceiling in seconds, None for unbounded

        Returns:
            The response payload

        Raises:
            TransportError: the call raised or exceeded ``timeout``
            ServiceError: the response carried an ``error`` field
        """
        name = action.value if isinstance(action, BridgeAction) else action
        call = self.invoke(name, params or {}, timeout)
        try:
            if timeout is None:
                response = await call
            else:
                response = await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"{name} timed out after {timeout}s")
            raise TransportError(
                f"{name} timed out after {timeout}s", action=name, timed_out=True
            ) from e
        except WalletError:
            raise
        except Exception as e:
            raise TransportError(f"{name} failed: {e}", action=name) from e

        return raise_for_error(response, action=name)

    async def close(self) -> None:
        """Close bridge connection"""
        pass
