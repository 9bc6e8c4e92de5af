"""
Configuration management for the wallet dashboard core.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from qwallet.coins import CoinProfile, with_multiplier_overrides
from qwallet.constants import (
    ARRR_INIT_MAX_ATTEMPTS,
    ARRR_SYNC_MAX_ATTEMPTS,
    ARRR_SYNC_POLL_INTERVAL,
    NAME_LOOKUP_DEBOUNCE,
    NOTIFICATION_WINDOW,
    SETTLE_DELAY,
)
from qwallet.models import CoinType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QWALLET_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    bridge_url: str = "http://127.0.0.1:12391/bridge"
    bridge_api_key: str | None = None
    qortal_node_url: str = "http://127.0.0.1:12391"

    log_level: str = "INFO"

    # Unset means the per-coin default from qwallet.coins
    refresh_interval: float | None = Field(default=None, gt=0)
    balance_timeout: float | None = Field(default=None, gt=0)
    history_timeout: float | None = Field(default=None, gt=0)
    settle_delay: float = Field(default=SETTLE_DELAY, ge=0)
    notification_window: float = Field(default=NOTIFICATION_WINDOW, gt=0)
    name_lookup_debounce: float = Field(default=NAME_LOOKUP_DEBOUNCE, ge=0)

    # e.g. QWALLET_FEE_MULTIPLIERS='{"LTC": 1200}'
    fee_multipliers: dict[str, Decimal] = Field(default_factory=dict)

    arrr_sync_poll_interval: float = Field(default=ARRR_SYNC_POLL_INTERVAL, ge=0)
    arrr_sync_max_attempts: int = Field(default=ARRR_SYNC_MAX_ATTEMPTS, ge=1)
    arrr_init_max_attempts: int = Field(default=ARRR_INIT_MAX_ATTEMPTS, ge=1)

    def coin_profiles(self) -> dict[CoinType, CoinProfile]:
        """Coin profiles with fee multiplier and timing overrides applied."""
        profiles = with_multiplier_overrides(self.fee_multipliers)
        timing = {
            key: value
            for key, value in (
                ("refresh_interval", self.refresh_interval),
                ("balance_timeout", self.balance_timeout),
                ("history_timeout", self.history_timeout),
            )
            if value is not None
        }
        if not timing:
            return profiles
        return {coin: p.model_copy(update=timing) for coin, p in profiles.items()}


def get_settings() -> Settings:
    return Settings()
