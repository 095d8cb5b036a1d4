from __future__ import annotations

"""Pydantic request/response schemas for the public API.

These exist only for HTTP input validation and UX stability; the ledger's
own types live in stakepool.ledger.types.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt

from stakepool.ledger.types import PoolData, StakeRecord, Transaction, YieldPoint
from stakepool.runtime.events import PoolEvent


class AmountRequest(BaseModel):
    # Sign is checked by the pool so non-positive amounts surface as invalid_amount.
    amount: StrictInt = Field(..., description="Positive integer amount in base units")

    model_config = {"extra": "forbid"}


class TransactionOut(BaseModel):
    amount: int
    timestamp: int
    kind: str

    @classmethod
    def from_tx(cls, tx: Transaction) -> "TransactionOut":
        return cls(amount=tx.amount, timestamp=tx.timestamp, kind=tx.kind.name.lower())


class StakeOut(BaseModel):
    ok: bool = True
    participant: str
    balance: int
    transactions: List[TransactionOut]

    @classmethod
    def from_record(cls, participant: str, rec: StakeRecord) -> "StakeOut":
        return cls(
            participant=participant,
            balance=rec.balance,
            transactions=[TransactionOut.from_tx(t) for t in rec.transactions],
        )


class YieldPointOut(BaseModel):
    days: int
    cumulative_value: int
    rate: int


class YieldsOut(BaseModel):
    ok: bool = True
    yields: List[YieldPointOut]

    @classmethod
    def from_curve(cls, days: tuple[int, ...], curve: tuple[YieldPoint, ...]) -> "YieldsOut":
        return cls(
            yields=[YieldPointOut(days=d, cumulative_value=p.cumulative_value, rate=p.rate) for d, p in zip(days, curve)]
        )


class PoolDataOut(BaseModel):
    ok: bool = True
    participant: str
    total_assets: int
    total_staked: int
    daily_rate: int
    reserved: int
    projected_yield: int
    balance: int

    @classmethod
    def from_data(cls, participant: str, d: PoolData) -> "PoolDataOut":
        return cls(participant=participant, **d._asdict())


class EventOut(BaseModel):
    seq: int
    name: str
    timestamp: int
    amount: int
    participant: Optional[str] = None

    @classmethod
    def from_event(cls, e: PoolEvent) -> "EventOut":
        return cls(**e.to_dict())
