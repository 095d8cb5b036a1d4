# src/stakepool/ledger/constants.py
from __future__ import annotations

"""Staking pool accrual constants.

Rate model:
- ANNUAL_RATE_SCALE is a fixed-point "100% per annum" reference rate
- DAILY_RATE is the per-unit, per-day accrual (integer division by 365)
- Projection curve is sampled at BREAKPOINT_DAYS
"""

# Clock granularity
DAY_SECONDS: int = 24 * 60 * 60

# Fixed-point reference rate (1e9 == 100% p.a.)
ANNUAL_RATE_SCALE: int = 1_000_000_000
DAYS_PER_YEAR: int = 365

# 1_000_000_000 // 365 == 2_739_726
DAILY_RATE: int = ANNUAL_RATE_SCALE // DAYS_PER_YEAR

# Projection curve sample points (day offsets)
BREAKPOINT_DAYS: tuple[int, ...] = (0, 10, 30)

# Secondary scaling applied to curve values for presentation
PRESENTATION_DIVISOR: int = 100

# Accrual policies (see stakepool.ledger.yield_engine)
ACCRUAL_BASES = ("per_transaction", "current_balance")
ACCRUAL_ROUNDINGS = ("ceil", "floor_min_one", "floor_plus_one")

DEFAULT_ACCRUAL_BASIS: str = "per_transaction"
DEFAULT_ACCRUAL_ROUNDING: str = "ceil"
