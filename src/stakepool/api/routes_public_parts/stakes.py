from __future__ import annotations

from fastapi import APIRouter, Request

from stakepool.api.routes_public_parts.common import _caller, _pool
from stakepool.api.schemas import AmountRequest, StakeOut, TransactionOut

router = APIRouter()


@router.get("/stakes/{participant}", response_model=StakeOut)
def get_stake(participant: str, request: Request) -> StakeOut:
    pool = _pool(request)
    return StakeOut.from_record(participant, pool.get_stake(participant))


@router.get("/stakes/{participant}/transactions")
def get_transactions(participant: str, request: Request):
    pool = _pool(request)
    txs = pool.get_transactions(participant)
    return {
        "ok": True,
        "participant": participant,
        "transactions": [TransactionOut.from_tx(t).model_dump() for t in txs],
    }


@router.get("/stakes/{participant}/yield")
def get_stake_yield(participant: str, request: Request):
    pool = _pool(request)
    return {
        "ok": True,
        "participant": participant,
        "as_of": pool.now(),
        "yield": pool.calculate_stake_yield(participant),
    }


@router.post("/stake", response_model=StakeOut)
def stake(body: AmountRequest, request: Request) -> StakeOut:
    pool = _pool(request)
    caller = _caller(request)
    return StakeOut.from_record(caller, pool.stake(caller, body.amount))


@router.post("/withdraw", response_model=StakeOut)
def withdraw(body: AmountRequest, request: Request) -> StakeOut:
    pool = _pool(request)
    caller = _caller(request)
    return StakeOut.from_record(caller, pool.withdraw(caller, body.amount))
