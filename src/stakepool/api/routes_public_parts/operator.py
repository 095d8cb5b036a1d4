from __future__ import annotations

from fastapi import APIRouter, Request

from stakepool.api.routes_public_parts.common import _caller, _pool
from stakepool.api.schemas import AmountRequest

router = APIRouter()


@router.post("/assets/add")
def assets_add(body: AmountRequest, request: Request):
    pool = _pool(request)
    return {"ok": True, "total_assets": pool.add_assets(_caller(request), body.amount)}


@router.post("/assets/remove")
def assets_remove(body: AmountRequest, request: Request):
    pool = _pool(request)
    return {"ok": True, "total_assets": pool.remove_assets(_caller(request), body.amount)}


@router.post("/carbon-credits/add")
def carbon_credits_add(body: AmountRequest, request: Request):
    pool = _pool(request)
    return {"ok": True, "total_carbon_credits": pool.add_carbon_credits(_caller(request), body.amount)}
