from __future__ import annotations

import pytest

from stakepool.ledger.errors import AuthorizationError, InsufficientReserveError, InvalidAmountError
from stakepool.ledger.pool import StakingPool
from stakepool.runtime import metrics
from stakepool.runtime.clock import ManualClock

from conftest import ALICE, OWNER


def test_add_assets_updates_reserve_and_emits(pool: StakingPool) -> None:
    assert pool.add_assets(OWNER, 100) == 100
    assert pool.total_assets() == 100
    assert pool.add_assets(OWNER, 200) == 300
    assert [e.amount for e in pool.events.query(name="AssetsAdded")] == [100, 200]


def test_remove_assets_beyond_reserve_fails(pool: StakingPool) -> None:
    pool.add_assets(OWNER, 100)
    with pytest.raises(InsufficientReserveError) as e:
        pool.remove_assets(OWNER, 150)
    assert e.value.details == {"amount": 150, "reserve": 100}
    assert pool.total_assets() == 100
    assert pool.events.query(name="AssetsRemoved") == []
    assert metrics.snapshot()["counters"]["remove_assets_rejected_insufficient_reserve"] == 1


def test_remove_assets_down_to_zero(pool: StakingPool) -> None:
    pool.add_assets(OWNER, 100)
    assert pool.remove_assets(OWNER, 60) == 40
    assert pool.remove_assets(OWNER, 40) == 0
    assert [e.amount for e in pool.events.query(name="AssetsRemoved")] == [60, 40]


@pytest.mark.parametrize("op", ["add_assets", "remove_assets", "add_carbon_credits"])
def test_non_owner_is_rejected(pool: StakingPool, op: str) -> None:
    pool.add_assets(OWNER, 10)
    with pytest.raises(AuthorizationError) as e:
        getattr(pool, op)(ALICE, 1)
    assert e.value.reason == "caller is not the owner"
    assert e.value.details["operation"] == op
    assert pool.total_assets() == 10
    assert pool.total_carbon_credits() == 0
    assert len(pool.events) == 1


def test_authorization_is_checked_before_amount(pool: StakingPool) -> None:
    with pytest.raises(AuthorizationError):
        pool.add_assets(ALICE, 0)
    with pytest.raises(InvalidAmountError):
        pool.add_assets(OWNER, 0)
    with pytest.raises(InvalidAmountError):
        pool.remove_assets(OWNER, -1)


def test_carbon_credits_are_a_separate_counter(pool: StakingPool) -> None:
    assert pool.add_carbon_credits(OWNER, 1000) == 1000
    assert pool.total_carbon_credits() == 1000
    assert pool.total_assets() == 0
    ev = pool.events.last()
    assert (ev.name, ev.amount, ev.participant) == ("CarbonCreditsAdded", 1000, None)


def test_reserve_is_independent_of_staked_principal(pool: StakingPool) -> None:
    pool.stake(ALICE, 100)
    pool.add_assets(OWNER, 100)
    pool.add_assets(OWNER, 200)
    assert pool.total_assets() == 300
    assert pool.total_staked() == 100


def test_owner_and_creation_time_are_fixed_at_construction(token, clock: ManualClock) -> None:
    pool = StakingPool(owner=OWNER, transfer=token, clock=clock)
    created = clock.now()
    clock.advance_days(3)
    pool.add_assets(OWNER, 1)
    assert pool.owner == OWNER
    assert pool.creation_time == created


def test_owner_must_be_named(token, clock: ManualClock) -> None:
    with pytest.raises(ValueError):
        StakingPool(owner="  ", transfer=token, clock=clock)
