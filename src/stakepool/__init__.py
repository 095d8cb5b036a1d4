"""stakepool: time-weighted token-staking accrual ledger."""

from __future__ import annotations

from stakepool.ledger.errors import (
    AuthorizationError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidAmountError,
    PoolError,
    ReentrancyError,
    TransferFailedError,
)
from stakepool.ledger.pool import StakingPool
from stakepool.ledger.types import PoolData, StakeRecord, Transaction, TxKind, YieldPoint
from stakepool.ledger.yield_engine import AccrualPolicy

__version__ = "0.1.0"

__all__ = [
    "StakingPool",
    "AccrualPolicy",
    "StakeRecord",
    "Transaction",
    "TxKind",
    "YieldPoint",
    "PoolData",
    "PoolError",
    "AuthorizationError",
    "InsufficientBalanceError",
    "InsufficientReserveError",
    "InvalidAmountError",
    "ReentrancyError",
    "TransferFailedError",
]
