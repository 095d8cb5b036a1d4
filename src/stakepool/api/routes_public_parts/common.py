from __future__ import annotations

from fastapi import Request

from stakepool.api.errors import ApiError
from stakepool.api.structured_logging import note_caller
from stakepool.ledger.pool import StakingPool

CALLER_HEADER = "x-stakepool-caller"


def _pool(request: Request) -> StakingPool:
    pool = getattr(request.app.state, "pool", None)
    if pool is None:
        raise ApiError.internal("not_ready", "pool not attached to app.state", {})
    return pool


def _caller(request: Request) -> str:
    """Caller identity as asserted by the authenticating gateway."""
    c = (request.headers.get(CALLER_HEADER) or "").strip()
    if not c:
        raise ApiError.unauthorized("missing_caller", f"{CALLER_HEADER} header is required", {})
    note_caller(request, c)
    return c
