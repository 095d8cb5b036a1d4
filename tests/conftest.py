from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "stakepool" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from stakepool.ledger.pool import StakingPool  # noqa: E402
from stakepool.runtime import metrics  # noqa: E402
from stakepool.runtime.clock import ManualClock  # noqa: E402
from stakepool.runtime.transfer import InMemoryAssetLedger  # noqa: E402

OWNER = "owner"
ALICE = "alice"
BOB = "bob"


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def token() -> InMemoryAssetLedger:
    t = InMemoryAssetLedger()
    for acct in (OWNER, ALICE, BOB):
        t.mint(acct, 1000)
    return t


@pytest.fixture
def pool(token: InMemoryAssetLedger, clock: ManualClock) -> StakingPool:
    return StakingPool(owner=OWNER, transfer=token, clock=clock)
