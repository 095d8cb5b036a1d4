from __future__ import annotations

import random

import pytest

from stakepool.ledger.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    ReentrancyError,
    TransferFailedError,
)
from stakepool.ledger.pool import StakingPool
from stakepool.ledger.types import TxKind
from stakepool.runtime import metrics
from stakepool.runtime.clock import ManualClock
from stakepool.runtime.transfer import InMemoryAssetLedger

from conftest import ALICE, BOB, OWNER


class _SwitchableTransfer:
    """Wraps a real ledger; can be told to report failure or raise."""

    def __init__(self, inner: InMemoryAssetLedger) -> None:
        self.inner = inner
        self.fail_into = False
        self.fail_out = False
        self.raise_out = False

    def transfer_into(self, source: str, amount: int) -> bool:
        if self.fail_into:
            return False
        return self.inner.transfer_into(source, amount)

    def transfer_out_of(self, destination: str, amount: int) -> bool:
        if self.raise_out:
            raise ConnectionError("asset ledger unreachable")
        if self.fail_out:
            return False
        return self.inner.transfer_out_of(destination, amount)


def test_stake_and_withdraw_moves_funds_and_records_history(pool: StakingPool, token: InMemoryAssetLedger) -> None:
    rec = pool.stake(ALICE, 100)
    assert rec.balance == 100
    assert token.balance_of(ALICE) == 900
    assert len(pool.get_stake(ALICE).transactions) == 1
    assert pool.total_staked() == 100

    rec = pool.withdraw(ALICE, 50)
    assert rec.balance == 50
    assert token.balance_of(ALICE) == 950
    assert pool.total_staked() == 50

    txs = pool.get_transactions(ALICE)
    assert len(txs) == 2
    assert (txs[0].amount, txs[0].kind) == (100, TxKind.STAKE)
    assert (txs[1].amount, txs[1].kind) == (50, TxKind.WITHDRAW)
    assert int(txs[0].kind) == 0
    assert int(txs[1].kind) == 1


def test_transactions_are_stamped_with_clock(pool: StakingPool, clock: ManualClock) -> None:
    pool.stake(ALICE, 10)
    clock.advance(3600)
    pool.stake(ALICE, 20)
    ts = [t.timestamp for t in pool.get_transactions(ALICE)]
    assert ts == [clock.now() - 3600, clock.now()]


def test_many_small_stakes_keep_call_order(pool: StakingPool) -> None:
    for i in range(10):
        pool.stake(ALICE, i + 1)
    txs = pool.get_transactions(ALICE)
    assert len(txs) == 10
    assert [t.amount for t in txs] == list(range(1, 11))
    assert pool.get_stake(ALICE).balance == 55


def test_withdraw_more_than_balance_fails_without_mutation(pool: StakingPool, token: InMemoryAssetLedger) -> None:
    pool.stake(ALICE, 100)
    with pytest.raises(InsufficientBalanceError) as e:
        pool.withdraw(ALICE, 101)
    assert e.value.code == "insufficient_balance"
    assert e.value.details["balance"] == 100
    assert pool.get_stake(ALICE).balance == 100
    assert len(pool.get_transactions(ALICE)) == 1
    assert pool.total_staked() == 100
    assert token.balance_of(ALICE) == 900
    assert [ev.name for ev in pool.events.query()] == ["Staked"]


def test_withdraw_for_unknown_participant_fails(pool: StakingPool) -> None:
    with pytest.raises(InsufficientBalanceError):
        pool.withdraw(BOB, 1)
    assert pool.participants() == ()


@pytest.mark.parametrize("amount", [0, -5, True, 1.5, "10"])
def test_non_positive_or_non_int_amounts_are_rejected(pool: StakingPool, amount) -> None:
    with pytest.raises(InvalidAmountError):
        pool.stake(ALICE, amount)
    pool.stake(ALICE, 10)
    with pytest.raises(InvalidAmountError):
        pool.withdraw(ALICE, amount)
    assert pool.get_stake(ALICE).balance == 10
    assert metrics.snapshot()["counters"]["stake_rejected_invalid_amount"] == 1


def test_withdraw_to_zero_keeps_record(pool: StakingPool) -> None:
    pool.stake(ALICE, 40)
    pool.withdraw(ALICE, 40)
    rec = pool.get_stake(ALICE)
    assert rec.balance == 0
    assert len(rec.transactions) == 2
    assert ALICE in pool.participants()


def test_failed_pull_leaves_no_trace(pool: StakingPool, token: InMemoryAssetLedger) -> None:
    with pytest.raises(TransferFailedError) as e:
        pool.stake(ALICE, 5000)
    assert e.value.details["direction"] == "into"
    assert pool.get_stake(ALICE).balance == 0
    assert pool.get_transactions(ALICE) == ()
    assert pool.total_staked() == 0
    assert token.balance_of(ALICE) == 1000
    assert len(pool.events) == 0


def test_failed_payout_rolls_back_commit(token: InMemoryAssetLedger, clock: ManualClock) -> None:
    transfer = _SwitchableTransfer(token)
    pool = StakingPool(owner=OWNER, transfer=transfer, clock=clock)
    pool.stake(ALICE, 100)

    transfer.fail_out = True
    with pytest.raises(TransferFailedError):
        pool.withdraw(ALICE, 30)

    assert pool.get_stake(ALICE).balance == 100
    assert len(pool.get_transactions(ALICE)) == 1
    assert pool.total_staked() == 100
    assert token.balance_of(ALICE) == 900
    assert [ev.name for ev in pool.events.query()] == ["Staked"]


def test_payout_exception_is_reported_as_transfer_failure(token: InMemoryAssetLedger, clock: ManualClock) -> None:
    transfer = _SwitchableTransfer(token)
    pool = StakingPool(owner=OWNER, transfer=transfer, clock=clock)
    pool.stake(ALICE, 100)

    transfer.raise_out = True
    with pytest.raises(TransferFailedError) as e:
        pool.withdraw(ALICE, 30)
    assert isinstance(e.value.__cause__, ConnectionError)
    assert pool.get_stake(ALICE).balance == 100


def test_total_staked_matches_sum_of_balances_under_random_ops(pool: StakingPool) -> None:
    rng = random.Random(7)
    people = [OWNER, ALICE, BOB]
    for _ in range(200):
        who = rng.choice(people)
        amt = rng.randint(1, 60)
        if rng.random() < 0.6:
            try:
                pool.stake(who, amt)
            except TransferFailedError:
                pass
        else:
            try:
                pool.withdraw(who, amt)
            except InsufficientBalanceError:
                pass
        balances = [pool.get_stake(p).balance for p in people]
        assert all(b >= 0 for b in balances)
        assert pool.total_staked() == sum(balances)

    for p in people:
        txs = pool.get_transactions(p)
        replay = sum(t.amount if t.kind == TxKind.STAKE else -t.amount for t in txs)
        assert replay == pool.get_stake(p).balance


def test_get_stake_returns_a_copy(pool: StakingPool) -> None:
    pool.stake(ALICE, 10)
    rec = pool.get_stake(ALICE)
    rec.balance = 999
    rec.transactions.clear()
    assert pool.get_stake(ALICE).balance == 10
    assert len(pool.get_transactions(ALICE)) == 1


class _ReentrantTransfer:
    """Asset ledger that calls back into the pool mid-transfer."""

    def __init__(self, inner: InMemoryAssetLedger) -> None:
        self.inner = inner
        self.pool: StakingPool | None = None
        self.reentry_errors: list[Exception] = []
        self.observed: list[tuple[int, int]] = []

    def _reenter(self, who: str) -> None:
        assert self.pool is not None
        self.observed.append((self.pool.get_stake(who).balance, self.pool.total_staked()))
        try:
            self.pool.stake(who, 1)
        except ReentrancyError as e:
            self.reentry_errors.append(e)

    def transfer_into(self, source: str, amount: int) -> bool:
        self._reenter(source)
        return self.inner.transfer_into(source, amount)

    def transfer_out_of(self, destination: str, amount: int) -> bool:
        self._reenter(destination)
        return self.inner.transfer_out_of(destination, amount)


def test_reentrant_calls_are_rejected_and_see_consistent_state(token: InMemoryAssetLedger, clock: ManualClock) -> None:
    transfer = _ReentrantTransfer(token)
    pool = StakingPool(owner=OWNER, transfer=transfer, clock=clock)
    transfer.pool = pool

    pool.stake(ALICE, 100)
    pool.withdraw(ALICE, 40)

    assert len(transfer.reentry_errors) == 2
    assert all(e.code == "reentrant_call" for e in transfer.reentry_errors)
    # deposit path: nothing committed yet; payout path: already committed
    assert transfer.observed == [(0, 0), (60, 60)]
    assert pool.get_stake(ALICE).balance == 60
    assert len(pool.get_transactions(ALICE)) == 2
    assert metrics.snapshot()["counters"]["reentrant_call_rejected"] == 2


def test_events_are_emitted_for_committed_stake_ops(pool: StakingPool, clock: ManualClock) -> None:
    pool.stake(ALICE, 100)
    clock.advance(10)
    pool.withdraw(ALICE, 25)

    staked = pool.events.query(name="Staked")
    withdrawn = pool.events.query(name="Withdrawn", participant=ALICE)
    assert [(e.participant, e.amount) for e in staked] == [(ALICE, 100)]
    assert [(e.participant, e.amount, e.timestamp) for e in withdrawn] == [(ALICE, 25, clock.now())]
    assert pool.events.last().seq == 1
