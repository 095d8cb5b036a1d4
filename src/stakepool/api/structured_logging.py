# src/stakepool/api/structured_logging.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from stakepool.runtime.logging_util import log_event
from stakepool.runtime.metrics import inc_counter

REQUEST_ID_HEADER = "x-request-id"

log = logging.getLogger("stakepool.http")


def note_caller(request: Request, caller: str) -> None:
    request.state.caller = caller


def note_error(request: Request, code: str) -> None:
    request.state.error_code = code


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One JSONL line per request on the `stakepool.http` logger.

    Route helpers record the resolved caller and the exception handlers record
    the error code on request.state; both end up in the line. Requests are
    also counted per status class (`http_2xx`, `http_4xx`, ...).
    """

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        status = 500
        unhandled: Optional[str] = None
        try:
            response = await call_next(request)
        except Exception as e:
            unhandled = type(e).__name__
            self._record(request, request_id, status, started, unhandled)
            raise

        status = int(response.status_code)
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        self._record(request, request_id, status, started, unhandled)
        return response

    def _record(self, request: Request, request_id: str, status: int, started: float, unhandled: Optional[str]) -> None:
        inc_counter(f"http_{status // 100}xx")
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "duration_ms": int((time.monotonic() - started) * 1000),
        }
        caller = getattr(request.state, "caller", None)
        if caller is not None:
            fields["caller"] = caller
        code = getattr(request.state, "error_code", None)
        if code is not None:
            fields["error_code"] = code
        if unhandled is not None:
            fields["unhandled"] = unhandled
        log_event(log, "http_request", **fields)


__all__ = ["RequestLogMiddleware", "note_caller", "note_error"]
