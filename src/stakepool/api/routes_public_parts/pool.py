from __future__ import annotations

from fastapi import APIRouter, Request

from stakepool.api.routes_public_parts.common import _pool
from stakepool.api.schemas import PoolDataOut, YieldsOut

router = APIRouter()


@router.get("/pool")
def pool_summary(request: Request):
    pool = _pool(request)
    return {
        "ok": True,
        "owner": pool.owner,
        "creation_time": pool.creation_time,
        "total_staked": pool.total_staked(),
        "total_assets": pool.total_assets(),
        "total_carbon_credits": pool.total_carbon_credits(),
        "participants": len(pool.participants()),
    }


@router.get("/pool/yields", response_model=YieldsOut)
def pool_yields(request: Request) -> YieldsOut:
    pool = _pool(request)
    return YieldsOut.from_curve(pool.breakpoint_days, pool.get_yields())


@router.get("/pool/data/{participant}", response_model=PoolDataOut)
def pool_data(participant: str, request: Request) -> PoolDataOut:
    pool = _pool(request)
    return PoolDataOut.from_data(participant, pool.get_pool_data(participant))
