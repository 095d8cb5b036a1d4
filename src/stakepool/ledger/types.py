"""stakepool.ledger.types

Pool state object model + JSON interop.

This module defines:
  - TxKind: explicit tag for a history entry (never inferred from position)
  - Transaction: immutable history entry
  - StakeRecord: per-participant balance + append-only history
  - PoolState: pool-wide counters and immutable identity fields
  - YieldPoint / PoolData: read-side result shapes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, NamedTuple, Tuple

Json = Dict[str, Any]


def _coerce_int(v: Any, *, field: str) -> int:
    try:
        # bool is an int subclass; disallow it explicitly
        if isinstance(v, bool):
            raise ValueError("bool is not a valid int")
        return int(v)
    except Exception as e:
        raise ValueError(f"PoolState schema error: field '{field}' must be int-coercible (got {type(v).__name__})") from e


def _coerce_str(v: Any, *, field: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"PoolState schema error: field '{field}' must be a non-empty string")
    return v


class TxKind(IntEnum):
    STAKE = 0
    WITHDRAW = 1

    @classmethod
    def parse(cls, v: Any) -> "TxKind":
        if isinstance(v, TxKind):
            return v
        if isinstance(v, str) and v.strip().upper() in cls.__members__:
            return cls[v.strip().upper()]
        if isinstance(v, int) and not isinstance(v, bool) and v in cls._value2member_map_:
            return cls(v)
        raise ValueError(f"PoolState schema error: unknown transaction kind {v!r}")


@dataclass(frozen=True, slots=True)
class Transaction:
    amount: int
    timestamp: int
    kind: TxKind

    def to_dict(self) -> Json:
        return {"amount": int(self.amount), "timestamp": int(self.timestamp), "kind": self.kind.name.lower()}

    @classmethod
    def from_dict(cls, d: Any) -> "Transaction":
        if not isinstance(d, dict):
            raise ValueError(f"PoolState schema error: transaction must be dict (got {type(d).__name__})")
        return cls(
            amount=_coerce_int(d.get("amount"), field="transaction.amount"),
            timestamp=_coerce_int(d.get("timestamp"), field="transaction.timestamp"),
            kind=TxKind.parse(d.get("kind")),
        )


@dataclass(slots=True)
class StakeRecord:
    """Balance + history for one participant. Never deleted once created."""

    balance: int = 0
    transactions: List[Transaction] = field(default_factory=list)

    def copy(self) -> "StakeRecord":
        return StakeRecord(balance=self.balance, transactions=list(self.transactions))

    def to_dict(self) -> Json:
        return {"balance": int(self.balance), "transactions": [t.to_dict() for t in self.transactions]}

    @classmethod
    def from_dict(cls, d: Any) -> "StakeRecord":
        if not isinstance(d, dict):
            raise ValueError(f"PoolState schema error: stake record must be dict (got {type(d).__name__})")
        txs = d.get("transactions") or []
        if not isinstance(txs, list):
            raise ValueError("PoolState schema error: field 'transactions' must be list")
        return cls(
            balance=_coerce_int(d.get("balance", 0), field="stake.balance"),
            transactions=[Transaction.from_dict(t) for t in txs],
        )


@dataclass(slots=True)
class PoolState:
    owner: str
    creation_time: int
    total_staked: int = 0
    total_assets: int = 0
    total_carbon_credits: int = 0

    def to_dict(self) -> Json:
        return {
            "owner": self.owner,
            "creation_time": int(self.creation_time),
            "total_staked": int(self.total_staked),
            "total_assets": int(self.total_assets),
            "total_carbon_credits": int(self.total_carbon_credits),
        }

    @classmethod
    def from_dict(cls, d: Any) -> "PoolState":
        if not isinstance(d, dict):
            raise ValueError(f"PoolState schema error: pool must be dict (got {type(d).__name__})")
        return cls(
            owner=_coerce_str(d.get("owner"), field="owner"),
            creation_time=_coerce_int(d.get("creation_time"), field="creation_time"),
            total_staked=_coerce_int(d.get("total_staked", 0), field="total_staked"),
            total_assets=_coerce_int(d.get("total_assets", 0), field="total_assets"),
            total_carbon_credits=_coerce_int(d.get("total_carbon_credits", 0), field="total_carbon_credits"),
        )


class YieldPoint(NamedTuple):
    cumulative_value: int
    rate: int


class PoolData(NamedTuple):
    total_assets: int
    total_staked: int
    daily_rate: int
    reserved: int
    projected_yield: int
    balance: int


YieldCurve = Tuple[YieldPoint, ...]


__all__ = [
    "Json",
    "TxKind",
    "Transaction",
    "StakeRecord",
    "PoolState",
    "YieldPoint",
    "YieldCurve",
    "PoolData",
]
