from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from stakepool.api.errors import ApiError
from stakepool.api.routes_public_parts.common import _pool
from stakepool.api.schemas import EventOut
from stakepool.runtime.events import EVENT_NAMES

router = APIRouter()

_MAX_LIMIT = 1000


@router.get("/events")
def list_events(
    request: Request,
    name: Optional[str] = None,
    participant: Optional[str] = None,
    since_seq: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=_MAX_LIMIT),
):
    if name is not None and name not in EVENT_NAMES:
        raise ApiError.bad_request("unknown_event", f"unknown event name: {name}", {"allowed": list(EVENT_NAMES)})
    pool = _pool(request)
    items = pool.events.query(name=name, participant=participant, since_seq=since_seq, limit=limit)
    return {"ok": True, "events": [EventOut.from_event(e).model_dump(exclude_none=True) for e in items]}
