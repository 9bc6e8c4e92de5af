"""
Wallet bridge over HTTP.

Each action is POSTed as a JSON object ``{"action": ..., **params}`` to a single
endpoint; the JSON body of the answer is the response.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from qwallet.bridge.base import WalletBridge
from qwallet.errors import TransportError


class HttpWalletBridge(WalletBridge):
    """Bridge client talking JSON over HTTP to the wallet service."""

    def __init__(self, url: str, api_key: str | None = None):
        self.url = url
        headers = {"x-api-key": api_key} if api_key else {}
        # No client-wide timeout; ceilings are per call
        self.client = httpx.AsyncClient(timeout=None, headers=headers)

    async def invoke(
        self, action: str, params: dict[str, Any], timeout: float | None = None
    ) -> Any:
        payload = {"action": action, **params}
        try:
            response = await self.client.post(
                self.url, json=payload, timeout=httpx.Timeout(timeout)
            )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Bridge call timed out: {action} - {e}")
            raise TransportError(f"{action} timed out", action=action, timed_out=True) from e
        except httpx.HTTPError as e:
            logger.error(f"Bridge call failed: {action} - {e}")
            raise TransportError(f"{action} failed: {e}", action=action) from e
        except ValueError as e:
            raise TransportError(f"{action} returned invalid JSON", action=action) from e

    async def close(self) -> None:
        await self.client.aclose()
