# src/stakepool/runtime/pool_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from stakepool.ledger.constants import (
    ACCRUAL_BASES,
    ACCRUAL_ROUNDINGS,
    ANNUAL_RATE_SCALE,
    BREAKPOINT_DAYS,
    DAYS_PER_YEAR,
    DEFAULT_ACCRUAL_BASIS,
    DEFAULT_ACCRUAL_ROUNDING,
)
from stakepool.ledger.yield_engine import AccrualPolicy


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_int_tuple(v: Any, default: Tuple[int, ...]) -> Tuple[int, ...]:
    if v is None:
        return tuple(default)
    if isinstance(v, str):
        v = [p for p in v.split(",") if p.strip()]
    if not isinstance(v, (list, tuple)):
        return tuple(default)
    try:
        return tuple(int(x) for x in v)
    except (TypeError, ValueError):
        return tuple(default)


def _as_balances(v: Any) -> Dict[str, int]:
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ValueError("initial_balances must be a mapping of account -> amount")
    out: Dict[str, int] = {}
    for k, amt in v.items():
        if isinstance(amt, bool) or not isinstance(amt, int):
            raise ValueError(f"initial_balances[{k!r}] must be an integer; got: {amt!r}")
        out[str(k)] = amt
    return out


@dataclass(frozen=True)
class PoolConfig:
    pool_id: str
    owner: str
    mode: str  # "dev" | "testnet" | "prod"

    annual_rate_scale: int
    breakpoint_days: Tuple[int, ...]
    accrual_basis: str
    accrual_rounding: str

    api_host: str
    api_port: int

    log_level: str

    # Dev seed for the in-memory asset ledger; empty in production.
    initial_balances: Dict[str, int] = field(default_factory=dict)

    @property
    def daily_rate(self) -> int:
        return int(self.annual_rate_scale) // DAYS_PER_YEAR

    def accrual_policy(self) -> AccrualPolicy:
        return AccrualPolicy(basis=self.accrual_basis, rounding=self.accrual_rounding, daily_rate=self.daily_rate)


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_pool_config(cfg: PoolConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.pool_id, str) or not cfg.pool_id.strip():
        raise ValueError("pool_id must be a non-empty string")

    if not isinstance(cfg.owner, str) or not cfg.owner.strip():
        raise ValueError("owner must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.annual_rate_scale) <= 0:
        raise ValueError(f"annual_rate_scale must be > 0; got: {cfg.annual_rate_scale}")

    if not cfg.breakpoint_days:
        raise ValueError("breakpoint_days must not be empty")
    prev = -1
    for d in cfg.breakpoint_days:
        if int(d) < 0:
            raise ValueError(f"breakpoint_days must be >= 0; got: {d}")
        if int(d) <= prev:
            raise ValueError(f"breakpoint_days must be strictly increasing; got: {cfg.breakpoint_days}")
        prev = int(d)

    if cfg.accrual_basis not in ACCRUAL_BASES:
        raise ValueError(f"accrual_basis must be one of {ACCRUAL_BASES}; got: {cfg.accrual_basis!r}")

    if cfg.accrual_rounding not in ACCRUAL_ROUNDINGS:
        raise ValueError(f"accrual_rounding must be one of {ACCRUAL_ROUNDINGS}; got: {cfg.accrual_rounding!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    for account, amount in (cfg.initial_balances or {}).items():
        if not isinstance(account, str) or not account.strip():
            raise ValueError("initial_balances keys must be non-empty account names")
        if int(amount) <= 0:
            raise ValueError(f"initial_balances[{account!r}] must be > 0; got: {amount}")


def default_pool_config() -> PoolConfig:
    return PoolConfig(
        pool_id="stakepool-dev",
        owner="operator",
        mode="prod",
        annual_rate_scale=ANNUAL_RATE_SCALE,
        breakpoint_days=tuple(BREAKPOINT_DAYS),
        accrual_basis=DEFAULT_ACCRUAL_BASIS,
        accrual_rounding=DEFAULT_ACCRUAL_ROUNDING,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _read_raw(p: Path) -> Any:
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def read_pool_config_file(path: str) -> PoolConfig:
    raw = _read_raw(Path(path))
    if not isinstance(raw, dict):
        raise ValueError("pool config must be a mapping")

    d = default_pool_config()

    cfg = PoolConfig(
        pool_id=_as_str(raw.get("pool_id"), d.pool_id),
        owner=_as_str(raw.get("owner"), d.owner),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        annual_rate_scale=_as_int(raw.get("annual_rate_scale"), d.annual_rate_scale),
        breakpoint_days=_as_int_tuple(raw.get("breakpoint_days"), d.breakpoint_days),
        accrual_basis=_as_str(raw.get("accrual_basis"), d.accrual_basis).strip().lower(),
        accrual_rounding=_as_str(raw.get("accrual_rounding"), d.accrual_rounding).strip().lower(),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level),
        initial_balances=_as_balances(raw.get("initial_balances")),
    )

    validate_pool_config(cfg)
    return cfg


def load_pool_config(*, config_path: Optional[str] = None) -> PoolConfig:
    p = config_path or os.environ.get("STAKEPOOL_CONFIG_PATH")
    if p:
        return read_pool_config_file(p)

    cfg = default_pool_config()
    validate_pool_config(cfg)
    return cfg


__all__ = [
    "PoolConfig",
    "default_pool_config",
    "validate_pool_config",
    "read_pool_config_file",
    "load_pool_config",
]
