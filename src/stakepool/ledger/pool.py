# src/stakepool/ledger/pool.py
from __future__ import annotations

"""StakingPool: stake ledger + asset pool + yield engine reads.

Call discipline:
  - every public mutation runs to completion or raises a PoolError with no
    state change and no event
  - deposit path: pull funds first, commit state only after the pull succeeded
  - payout path: commit state first, then push funds; a reported push failure
    rolls the commit back
  - a mutating call made while another one is in progress (re-entry from the
    transfer collaborator) is rejected with ReentrancyError
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

from stakepool.ledger.constants import BREAKPOINT_DAYS
from stakepool.ledger.errors import (
    AuthorizationError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidAmountError,
    InvariantError,
    PoolError,
    ReentrancyError,
    TransferFailedError,
)
from stakepool.ledger.types import (
    Json,
    PoolData,
    PoolState,
    StakeRecord,
    Transaction,
    TxKind,
    YieldCurve,
)
from stakepool.ledger.yield_engine import AccrualPolicy, calculate_stake_yield, pool_data, yield_curve
from stakepool.runtime import events as ev
from stakepool.runtime.clock import Clock, SystemClock
from stakepool.runtime.events import EventLog
from stakepool.runtime.logging_util import log_event
from stakepool.runtime.metrics import inc_counter, record_pool_totals
from stakepool.runtime.transfer import AssetTransfer

log = logging.getLogger("stakepool.pool")

SNAPSHOT_VERSION: int = 1


def _require_positive(amount: Any, operation: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount, operation)
    return int(amount)


def _require_identity(v: Any, field: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return v


class StakingPool:
    def __init__(
        self,
        *,
        owner: str,
        transfer: AssetTransfer,
        clock: Optional[Clock] = None,
        policy: Optional[AccrualPolicy] = None,
        breakpoint_days: Tuple[int, ...] = BREAKPOINT_DAYS,
        events: Optional[EventLog] = None,
        creation_time: Optional[int] = None,
    ) -> None:
        self._transfer = transfer
        self._clock: Clock = clock or SystemClock()
        self.policy = policy or AccrualPolicy()
        self.breakpoint_days = tuple(int(d) for d in breakpoint_days)
        self.events = events if events is not None else EventLog()

        ct = self._clock.now() if creation_time is None else int(creation_time)
        self._state = PoolState(owner=_require_identity(owner, "owner"), creation_time=ct)
        self._stakes: Dict[str, StakeRecord] = {}
        self._active: Optional[str] = None

    # ---- lifecycle / identity ----

    @property
    def owner(self) -> str:
        return self._state.owner

    @property
    def creation_time(self) -> int:
        return self._state.creation_time

    def now(self) -> int:
        return int(self._clock.now())

    @contextmanager
    def _non_reentrant(self, operation: str) -> Iterator[None]:
        if self._active is not None:
            inc_counter("reentrant_call_rejected")
            raise ReentrancyError(operation, self._active)
        self._active = operation
        try:
            yield
        finally:
            self._active = None

    def _only_owner(self, caller: str, operation: str) -> None:
        if caller != self._state.owner:
            raise AuthorizationError(caller, operation)

    def _rejected(self, operation: str, err: PoolError) -> None:
        inc_counter(f"{operation}_rejected_{err.code}")
        log_event(log, f"{operation}_rejected", code=err.code, reason=err.reason, details=err.details)

    def _committed(self, name: str, amount: int, participant: Optional[str] = None) -> None:
        e = self.events.emit(name, timestamp=self.now(), amount=amount, participant=participant)
        inc_counter(f"event_{name}")
        inc_counter(f"event_{name}_amount", amount)
        record_pool_totals(
            total_staked=self._state.total_staked,
            total_assets=self._state.total_assets,
            participants=len(self._stakes),
        )
        log_event(log, name, seq=e.seq, amount=amount, participant=participant)

    # ---- stake ledger ----

    def stake(self, participant: str, amount: int) -> StakeRecord:
        try:
            amt = _require_positive(amount, "stake")
            with self._non_reentrant("stake"):
                try:
                    ok = bool(self._transfer.transfer_into(participant, amt))
                except PoolError:
                    raise
                except Exception as e:
                    raise TransferFailedError("into", participant, amt) from e
                if not ok:
                    raise TransferFailedError("into", participant, amt)

                rec = self._stakes.get(participant)
                if rec is None:
                    rec = StakeRecord()
                    self._stakes[participant] = rec
                rec.balance += amt
                rec.transactions.append(Transaction(amount=amt, timestamp=self.now(), kind=TxKind.STAKE))
                self._state.total_staked += amt
        except PoolError as err:
            self._rejected("stake", err)
            raise

        self._committed(ev.STAKED, amt, participant)
        return rec.copy()

    def withdraw(self, participant: str, amount: int) -> StakeRecord:
        try:
            amt = _require_positive(amount, "withdraw")
            with self._non_reentrant("withdraw"):
                rec = self._stakes.get(participant)
                balance = rec.balance if rec is not None else 0
                if rec is None or amt > balance:
                    raise InsufficientBalanceError(participant, amt, balance)

                rec.balance -= amt
                rec.transactions.append(Transaction(amount=amt, timestamp=self.now(), kind=TxKind.WITHDRAW))
                self._state.total_staked -= amt

                try:
                    ok = bool(self._transfer.transfer_out_of(participant, amt))
                except Exception as e:
                    self._undo_withdraw(rec, amt)
                    if isinstance(e, PoolError):
                        raise
                    raise TransferFailedError("out_of", participant, amt) from e
                if not ok:
                    self._undo_withdraw(rec, amt)
                    raise TransferFailedError("out_of", participant, amt)
        except PoolError as err:
            self._rejected("withdraw", err)
            raise

        self._committed(ev.WITHDRAWN, amt, participant)
        return rec.copy()

    def _undo_withdraw(self, rec: StakeRecord, amt: int) -> None:
        rec.transactions.pop()
        rec.balance += amt
        self._state.total_staked += amt

    # ---- asset pool ----

    def add_assets(self, caller: str, amount: int) -> int:
        try:
            self._only_owner(caller, "add_assets")
            amt = _require_positive(amount, "add_assets")
            with self._non_reentrant("add_assets"):
                self._state.total_assets += amt
        except PoolError as err:
            self._rejected("add_assets", err)
            raise
        self._committed(ev.ASSETS_ADDED, amt)
        return self._state.total_assets

    def remove_assets(self, caller: str, amount: int) -> int:
        try:
            self._only_owner(caller, "remove_assets")
            amt = _require_positive(amount, "remove_assets")
            with self._non_reentrant("remove_assets"):
                if amt > self._state.total_assets:
                    raise InsufficientReserveError(amt, self._state.total_assets)
                self._state.total_assets -= amt
        except PoolError as err:
            self._rejected("remove_assets", err)
            raise
        self._committed(ev.ASSETS_REMOVED, amt)
        return self._state.total_assets

    def add_carbon_credits(self, caller: str, amount: int) -> int:
        try:
            self._only_owner(caller, "add_carbon_credits")
            amt = _require_positive(amount, "add_carbon_credits")
            with self._non_reentrant("add_carbon_credits"):
                self._state.total_carbon_credits += amt
        except PoolError as err:
            self._rejected("add_carbon_credits", err)
            raise
        self._committed(ev.CARBON_CREDITS_ADDED, amt)
        return self._state.total_carbon_credits

    # ---- read surface ----

    def total_staked(self) -> int:
        return self._state.total_staked

    def total_assets(self) -> int:
        return self._state.total_assets

    def total_carbon_credits(self) -> int:
        return self._state.total_carbon_credits

    def participants(self) -> Tuple[str, ...]:
        return tuple(self._stakes.keys())

    def get_stake(self, participant: str) -> StakeRecord:
        rec = self._stakes.get(participant)
        return rec.copy() if rec is not None else StakeRecord()

    def get_transactions(self, participant: str) -> Tuple[Transaction, ...]:
        rec = self._stakes.get(participant)
        return tuple(rec.transactions) if rec is not None else ()

    def get_yields(self) -> YieldCurve:
        return yield_curve(self.breakpoint_days, self.policy.daily_rate)

    def calculate_stake_yield(self, participant: str) -> int:
        return calculate_stake_yield(self._stakes.get(participant), self.now(), self.policy)

    def get_pool_data(self, participant: str) -> PoolData:
        return pool_data(
            total_assets=self._state.total_assets,
            total_staked=self._state.total_staked,
            record=self._stakes.get(participant),
            now=self.now(),
            policy=self.policy,
        )

    # ---- snapshot / restore ----

    def snapshot(self) -> Json:
        return {
            "version": SNAPSHOT_VERSION,
            "pool": self._state.to_dict(),
            "stakes": {p: r.to_dict() for p, r in self._stakes.items()},
        }

    @classmethod
    def restore(
        cls,
        snapshot: Json,
        *,
        transfer: AssetTransfer,
        clock: Optional[Clock] = None,
        policy: Optional[AccrualPolicy] = None,
        breakpoint_days: Tuple[int, ...] = BREAKPOINT_DAYS,
        events: Optional[EventLog] = None,
    ) -> "StakingPool":
        if not isinstance(snapshot, dict):
            raise InvariantError("snapshot must be a dict", type=type(snapshot).__name__)
        version = snapshot.get("version")
        if version != SNAPSHOT_VERSION:
            raise InvariantError("unsupported snapshot version", version=version)

        try:
            state = PoolState.from_dict(snapshot.get("pool"))
            raw_stakes = snapshot.get("stakes")
            if raw_stakes is None:
                raw_stakes = {}
            if not isinstance(raw_stakes, dict):
                raise ValueError("PoolState schema error: field 'stakes' must be dict")
            stakes = {str(p): StakeRecord.from_dict(r) for p, r in raw_stakes.items()}
        except (KeyError, ValueError) as e:
            raise InvariantError("malformed snapshot", error=str(e)) from e

        check_invariants(state, stakes)

        pool = cls(
            owner=state.owner,
            transfer=transfer,
            clock=clock,
            policy=policy,
            breakpoint_days=breakpoint_days,
            events=events,
            creation_time=state.creation_time,
        )
        pool._state = state
        pool._stakes = stakes
        return pool


def check_invariants(state: PoolState, stakes: Dict[str, StakeRecord]) -> None:
    """Raise InvariantError if the state layout breaks any ledger invariant."""
    for name in ("total_staked", "total_assets", "total_carbon_credits"):
        if getattr(state, name) < 0:
            raise InvariantError(f"{name} is negative", value=getattr(state, name))

    total = 0
    for p, rec in stakes.items():
        running = 0
        last_ts: Optional[int] = None
        for i, tx in enumerate(rec.transactions):
            if tx.amount <= 0:
                raise InvariantError("transaction amount must be positive", participant=p, index=i)
            if last_ts is not None and tx.timestamp < last_ts:
                raise InvariantError("transaction timestamps decrease", participant=p, index=i)
            last_ts = tx.timestamp
            running += tx.amount if tx.kind == TxKind.STAKE else -tx.amount
            if running < 0:
                raise InvariantError("history overdraws balance", participant=p, index=i)
        if running != rec.balance:
            raise InvariantError("balance does not match history", participant=p, balance=rec.balance, replay=running)
        total += rec.balance

    if total != state.total_staked:
        raise InvariantError("total_staked does not match balances", total_staked=state.total_staked, sum=total)


__all__ = ["StakingPool", "check_invariants", "SNAPSHOT_VERSION"]
