from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from stakepool.api.structured_logging import note_error
from stakepool.ledger.errors import PoolError


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def unauthorized(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(401, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})


_POOL_ERROR_STATUS = {
    "unauthorized": 403,
    "insufficient_balance": 409,
    "insufficient_reserve": 409,
    "invalid_amount": 400,
    "transfer_failed": 502,
    "reentrant_call": 409,
    "invariant_violation": 500,
}


def api_error_from_pool_error(err: PoolError) -> ApiError:
    status = _POOL_ERROR_STATUS.get(err.code, 400)
    return ApiError(status, err.code, err.reason, dict(err.details or {}))


def error_response(err: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=err.status_code,
        content={"ok": False, "error": {"code": err.code, "message": err.message, "details": err.details}},
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    note_error(request, exc.code)
    return error_response(exc)


async def pool_error_handler(request: Request, exc: PoolError) -> JSONResponse:
    note_error(request, exc.code)
    return error_response(api_error_from_pool_error(exc))
