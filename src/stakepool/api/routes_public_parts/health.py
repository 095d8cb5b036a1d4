from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request):
    pool = getattr(request.app.state, "pool", None)
    return {
        "ok": pool is not None,
        "pool_id": getattr(request.app.state, "pool_id", ""),
        "ts_ms": int(time.time() * 1000),
    }
