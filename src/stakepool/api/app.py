from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from stakepool.api.errors import ApiError, api_error_handler, pool_error_handler
from stakepool.api.routes_public import public_router
from stakepool.api.structured_logging import RequestLogMiddleware
from stakepool.ledger.errors import PoolError
from stakepool.ledger.pool import StakingPool
from stakepool.runtime.clock import SystemClock
from stakepool.runtime.logging_util import configure_structured_logging
from stakepool.runtime.pool_config import PoolConfig, load_pool_config
from stakepool.runtime.transfer import InMemoryAssetLedger


def build_pool(cfg: PoolConfig) -> StakingPool:
    """Build a StakingPool for API runtime.

    This wrapper exists so tests can monkeypatch `stakepool.api.app.build_pool`.
    The in-memory asset ledger stands in for an external token ledger and is
    funded from cfg.initial_balances.
    """
    ledger = InMemoryAssetLedger()
    for account, amount in sorted(cfg.initial_balances.items()):
        ledger.mint(account, amount)
    return StakingPool(
        owner=cfg.owner,
        transfer=ledger,
        clock=SystemClock(),
        policy=cfg.accrual_policy(),
        breakpoint_days=cfg.breakpoint_days,
    )


def create_app(*, pool: Optional[StakingPool] = None, config: Optional[PoolConfig] = None) -> FastAPI:
    """Create the FastAPI application.

    pool:
      - given: attached as-is (tests, embedding)
      - None: built from config via build_pool()
    config:
      - None: load_pool_config() (STAKEPOOL_CONFIG_PATH or defaults)
    """
    cfg = config or load_pool_config()
    configure_structured_logging(cfg.log_level)

    # Disable docs in production.
    if cfg.mode == "prod":
        app = FastAPI(title="stakepool API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="stakepool API")

    app.state.cfg = cfg
    app.state.pool_id = cfg.pool_id
    app.state.pool = pool if pool is not None else build_pool(cfg)

    app.add_middleware(RequestLogMiddleware)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(PoolError, pool_error_handler)

    app.include_router(public_router)

    return app
