"""
Wallet-wide amount, fee and timing constants.

Amounts travel over the bridge either as smallest-unit integers (history
entries) or as 8-decimal coin values (balances, send amounts).
"""

from __future__ import annotations

from decimal import Decimal

# Fixed point precision for every displayed or submitted coin amount
DECIMAL_ROUND_UP = 8
QUANTUM = Decimal(1).scaleb(-DECIMAL_ROUND_UP)  # 0.00000001

# Smallest units per coin (satoshi-style)
COIN_UNIT = 100_000_000

# Fee rates arrive per kilobyte, quotes are per byte
FEE_RATE_DIVISOR = 1000

# Multiplier applied to the rounded per-byte fee to estimate the network fee
BTC_FEE = Decimal(500)
DGB_FEE = Decimal(10)
DOGE_FEE = Decimal(5000)
LTC_FEE = Decimal(1000)
RVN_FEE = Decimal(1500)

# Coins with a flat fee instead of a rate
ARRR_FEE = Decimal("0.0001")
QORT_DEFAULT_FEE = Decimal("0.001")

# Timing defaults (seconds)
REFRESH_INTERVAL = 180.0  # 3 minutes
QORT_REFRESH_INTERVAL = 60.0
BALANCE_TIMEOUT = 300.0  # 5 minutes
ARRR_BALANCE_TIMEOUT = 120.0
HISTORY_TIMEOUT = 300.0
SETTLE_DELAY = 3.0
NOTIFICATION_WINDOW = 4.0
NOTIFICATION_HISTORY = 20
NAME_LOOKUP_DEBOUNCE = 1.0

# QORT recipients are addresses (34 chars) or registered names, capped at address length
QORT_RECIPIENT_MIN_LENGTH = 3
QORT_RECIPIENT_MAX_LENGTH = 34

# Pirate Chain light wallet synchronisation polling
ARRR_SYNC_POLL_INTERVAL = 5.0
ARRR_SYNC_MAX_ATTEMPTS = 36
ARRR_INIT_MAX_ATTEMPTS = 60
