# src/stakepool/ledger/yield_engine.py
from __future__ import annotations

"""Time-weighted yield computation.

Everything here is pure: inputs are a transaction history, a timestamp and
policy knobs; nothing is mutated and nothing external is called.

Accrual basis:
  - per_transaction: each STAKE opens a principal lot aged from its own
    timestamp. A WITHDRAW consumes principal from the oldest open lots first.
  - current_balance: the whole current balance is aged from the most recent
    balance-changing transaction.

Accrual rounding (whole days credited for an elapsed duration):
  - ceil:           max(1, ceil(elapsed / day))
  - floor_min_one:  max(1, floor(elapsed / day))
  - floor_plus_one: floor(elapsed / day) + 1

All three credit a deposit younger than one day with exactly one day.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from stakepool.ledger.constants import (
    ACCRUAL_BASES,
    ACCRUAL_ROUNDINGS,
    BREAKPOINT_DAYS,
    DAILY_RATE,
    DAY_SECONDS,
    DEFAULT_ACCRUAL_BASIS,
    DEFAULT_ACCRUAL_ROUNDING,
    PRESENTATION_DIVISOR,
)
from stakepool.ledger.types import PoolData, StakeRecord, Transaction, TxKind, YieldCurve, YieldPoint


@dataclass(frozen=True, slots=True)
class AccrualPolicy:
    basis: str = DEFAULT_ACCRUAL_BASIS
    rounding: str = DEFAULT_ACCRUAL_ROUNDING
    daily_rate: int = DAILY_RATE

    def __post_init__(self) -> None:
        if self.basis not in ACCRUAL_BASES:
            raise ValueError(f"accrual basis must be one of {ACCRUAL_BASES}; got: {self.basis!r}")
        if self.rounding not in ACCRUAL_ROUNDINGS:
            raise ValueError(f"accrual rounding must be one of {ACCRUAL_ROUNDINGS}; got: {self.rounding!r}")
        if int(self.daily_rate) < 0:
            raise ValueError(f"daily_rate must be >= 0; got: {self.daily_rate}")


def accrual_days(elapsed_s: int, rounding: str = DEFAULT_ACCRUAL_ROUNDING) -> int:
    """Whole days credited for `elapsed_s` seconds under `rounding`."""
    e = max(int(elapsed_s), 0)
    whole, rem = divmod(e, DAY_SECONDS)
    if rounding == "ceil":
        return max(1, whole + (1 if rem else 0))
    if rounding == "floor_min_one":
        return max(1, whole)
    if rounding == "floor_plus_one":
        return whole + 1
    raise ValueError(f"unknown accrual rounding: {rounding!r}")


def _open_lots(transactions: Iterable[Transaction]) -> List[List[int]]:
    """Replay history into [amount, timestamp] lots still holding principal."""
    lots: List[List[int]] = []
    for tx in transactions:
        if tx.kind == TxKind.STAKE:
            lots.append([int(tx.amount), int(tx.timestamp)])
            continue
        remaining = int(tx.amount)
        while remaining > 0 and lots:
            head = lots[0]
            take = min(head[0], remaining)
            head[0] -= take
            remaining -= take
            if head[0] == 0:
                lots.pop(0)
    return lots


def _per_transaction_yield(record: StakeRecord, now: int, policy: AccrualPolicy) -> int:
    total = 0
    for amount, ts in _open_lots(record.transactions):
        total += amount * policy.daily_rate * accrual_days(now - ts, policy.rounding)
    return total


def _current_balance_yield(record: StakeRecord, now: int, policy: AccrualPolicy) -> int:
    if record.balance <= 0 or not record.transactions:
        return 0
    last_ts = int(record.transactions[-1].timestamp)
    return int(record.balance) * policy.daily_rate * accrual_days(now - last_ts, policy.rounding)


def calculate_stake_yield(record: StakeRecord | None, now: int, policy: AccrualPolicy | None = None) -> int:
    """Cumulative entitlement for one participant as of `now` (scaled int)."""
    if record is None:
        return 0
    p = policy or AccrualPolicy()
    if p.basis == "current_balance":
        return _current_balance_yield(record, int(now), p)
    return _per_transaction_yield(record, int(now), p)


def yield_curve(
    breakpoint_days: Sequence[int] = BREAKPOINT_DAYS,
    daily_rate: int = DAILY_RATE,
) -> YieldCurve:
    """Projection curve, independent of any participant."""
    out: List[YieldPoint] = []
    for d in breakpoint_days:
        cumulative = int(d) * int(daily_rate)
        out.append(YieldPoint(cumulative_value=cumulative, rate=cumulative // PRESENTATION_DIVISOR))
    return tuple(out)


def pool_data(
    *,
    total_assets: int,
    total_staked: int,
    record: StakeRecord | None,
    now: int,
    policy: AccrualPolicy | None = None,
) -> PoolData:
    p = policy or AccrualPolicy()
    return PoolData(
        total_assets=int(total_assets),
        total_staked=int(total_staked),
        daily_rate=int(p.daily_rate),
        reserved=0,
        projected_yield=calculate_stake_yield(record, int(now) + DAY_SECONDS, p),
        balance=int(record.balance) if record is not None else 0,
    )


__all__ = ["AccrualPolicy", "accrual_days", "calculate_stake_yield", "yield_curve", "pool_data"]
